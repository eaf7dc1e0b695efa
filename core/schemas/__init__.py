"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import claim models
and the error taxonomy.
"""

# Instance identity claims
from .claims import (
    InstanceClaims,
    extract_claims,
)

# Error models and exceptions
from .errors import (
    AttestationException,
    BootstrapError,
    ConfigurationError,
    DecodeError,
    DigestMismatchError,
    ErrorCodes,
    ImageIdMismatchError,
    KeyhostError,
    KeyhostException,
    MetadataFetchError,
    SchemaError,
    SignatureVerificationError,
)

__all__ = [
    # Claims
    "InstanceClaims",
    "extract_claims",
    # Errors
    "AttestationException",
    "BootstrapError",
    "ConfigurationError",
    "DecodeError",
    "DigestMismatchError",
    "ErrorCodes",
    "ImageIdMismatchError",
    "KeyhostError",
    "KeyhostException",
    "MetadataFetchError",
    "SchemaError",
    "SignatureVerificationError",
]
