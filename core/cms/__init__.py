"""
CMS Decoding

Parsing of CMS/PKCS#7 SignedData documents.
"""
from .decoder import (
    MAX_DOCUMENT_SIZE,
    SUPPORTED_DIGEST_ALGORITHMS,
    SUPPORTED_SIGNATURE_ALGORITHMS,
    DecodedSignedMessage,
    certificate_matches_signer,
    decode_signed_message,
)

__all__ = [
    "MAX_DOCUMENT_SIZE",
    "SUPPORTED_DIGEST_ALGORITHMS",
    "SUPPORTED_SIGNATURE_ALGORITHMS",
    "DecodedSignedMessage",
    "certificate_matches_signer",
    "decode_signed_message",
]
