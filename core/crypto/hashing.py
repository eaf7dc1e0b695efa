"""
Hashing Utilities

Digest computation for the algorithms a SignedData document may declare.

This module provides:
- Content digests by algorithm name (asn1crypto naming: "sha256", ...)
- The matching `cryptography` hash objects for signature verification
- Hex encoding with 0x prefix for error details

Security/Determinism Notes:
- Always hash raw bytes exactly as received
- Algorithm names outside the supported set are rejected, never defaulted
"""
from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives import hashes


_HASH_ALGORITHMS: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def hash_bytes(data: bytes, algorithm: str = "sha256") -> bytes:
    """
    Compute the digest of raw bytes.

    Args:
        data: Raw bytes to hash
        algorithm: Algorithm name ("sha1", "sha224", "sha256", "sha384", "sha512")

    Returns:
        Digest bytes

    Raises:
        ValueError: If the algorithm is not supported

    Example:
        >>> hash_bytes(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    if algorithm not in _HASH_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    return hashlib.new(algorithm, data).digest()


def hash_algorithm(algorithm: str) -> hashes.HashAlgorithm:
    """Return the `cryptography` hash instance for an algorithm name."""
    try:
        return _HASH_ALGORITHMS[algorithm]()
    except KeyError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}") from None


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()
