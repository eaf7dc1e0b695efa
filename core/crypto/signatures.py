"""
Integrity & Signature Verifier

Checks a decoded SignedData document in two independent steps:

1. Content integrity: the digest of the enclosed content, computed with
   the declared digest algorithm, must equal the signed messageDigest
   attribute.
2. Signature: the signature must validate over the DER SET OF signed
   attributes under the signer certificate's public key.

The digest step runs first, so a document whose content was edited after
signing fails with DigestMismatchError while a document whose signature
bytes were edited fails with SignatureVerificationError.
"""
from __future__ import annotations

from typing import Optional

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dsa, ec, padding, rsa

from core.cms.decoder import DecodedSignedMessage
from core.crypto.hashing import hash_algorithm, hash_bytes, to_hex
from core.schemas.errors import DigestMismatchError, SignatureVerificationError


def verify_content_digest(decoded: DecodedSignedMessage) -> None:
    """
    Recompute the content digest and compare it with the signed attribute.

    Raises:
        DigestMismatchError: If the enclosed content was altered
    """
    computed = hash_bytes(decoded.content, decoded.digest_algorithm)
    if computed != decoded.message_digest:
        raise DigestMismatchError(
            "Message digest mismatch",
            details={
                "digest_algorithm": decoded.digest_algorithm,
                "signed_digest": to_hex(decoded.message_digest),
                "computed_digest": to_hex(computed),
            },
        )


def verify_signature(
    decoded: DecodedSignedMessage,
    certificate: x509.Certificate,
) -> None:
    """
    Verify the signature over the signed attributes.

    Args:
        decoded: Decoded SignedData
        certificate: Certificate whose public key made the signature

    Raises:
        SignatureVerificationError: If the signature does not validate,
            or the key type does not fit the declared algorithm
    """
    algorithm = decoded.signature_algorithm
    try:
        hash_alg = hash_algorithm(decoded.signature_hash_algorithm)
    except ValueError as e:
        raise SignatureVerificationError(str(e)) from e

    try:
        public_key = certificate.public_key()
    except (ValueError, UnsupportedAlgorithm) as e:
        raise SignatureVerificationError(
            f"Signer certificate key is unusable: {e}",
            details={"signature_algorithm": algorithm},
        ) from e
    data = decoded.signed_attributes
    signature = decoded.signature

    try:
        if algorithm == "rsassa_pkcs1v15" and isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signature, data, padding.PKCS1v15(), hash_alg)
        elif algorithm == "rsassa_pss" and isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(
                signature,
                data,
                padding.PSS(
                    mgf=padding.MGF1(hash_alg),
                    salt_length=decoded.pss_salt_length,
                ),
                hash_alg,
            )
        elif algorithm == "dsa" and isinstance(public_key, dsa.DSAPublicKey):
            public_key.verify(signature, data, hash_alg)
        elif algorithm == "ecdsa" and isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, data, ec.ECDSA(hash_alg))
        else:
            raise SignatureVerificationError(
                f"Signer key type {type(public_key).__name__} cannot verify {algorithm}",
                details={"signature_algorithm": algorithm},
            )
    except (InvalidSignature, ValueError) as e:
        raise SignatureVerificationError(
            "Signature verification failed",
            details={
                "signature_algorithm": algorithm,
                "hash_algorithm": decoded.signature_hash_algorithm,
            },
        ) from e


def verify_signed_message(
    decoded: DecodedSignedMessage,
    *,
    certificate: Optional[x509.Certificate] = None,
) -> None:
    """
    Run the digest check, then the signature check.

    Args:
        decoded: Decoded SignedData
        certificate: Signer certificate to use; defaults to the one
            embedded in the document

    Raises:
        DigestMismatchError: Content does not match the signed digest
        SignatureVerificationError: Signature invalid or no certificate
    """
    verify_content_digest(decoded)

    signer = certificate or decoded.signer_certificate
    if signer is None:
        raise SignatureVerificationError(
            "No signer certificate available to verify the signature"
        )
    verify_signature(decoded, signer)
