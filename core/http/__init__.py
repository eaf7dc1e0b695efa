"""
HTTP Client Module

HTTP access to the instance metadata service.
"""

from .client import HttpClient, HttpError, HttpResponse
from .metadata import InstanceMetadataClient, decode_document_text

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "InstanceMetadataClient",
    "decode_document_text",
]
