"""
Core cryptographic utilities.

Hashing, SignedData integrity/signature checks, attestation providers and
the bundled platform signing certificates.
"""
from .hashing import (
    hash_algorithm,
    hash_bytes,
    to_hex,
)
from .signatures import (
    verify_content_digest,
    verify_signature,
    verify_signed_message,
)
from .attestation import (
    AttestationProvider,
    Ec2AttestationProvider,
    inspect_document,
)
from .platform_certs import platform_signing_certificates

__all__ = [
    "hash_algorithm",
    "hash_bytes",
    "to_hex",
    "verify_content_digest",
    "verify_signature",
    "verify_signed_message",
    "AttestationProvider",
    "Ec2AttestationProvider",
    "inspect_document",
    "platform_signing_certificates",
]
