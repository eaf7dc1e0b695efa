"""
Attestation Providers

Startup attestation of the instance a process runs on. A provider is
configured once with the image identifier the process expects and then
answers one question per document: is this an authentic, unmodified
identity document for that image?

Verification pipeline (each stage raises its own error):
    decode -> content digest -> signature -> claims -> image id

Providers hold only immutable values set at construction, so a single
instance can be shared by concurrent callers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from cryptography import x509

from core.cms.decoder import (
    MAX_DOCUMENT_SIZE,
    DecodedSignedMessage,
    certificate_matches_signer,
    decode_signed_message,
)
from core.crypto.signatures import verify_content_digest, verify_signature
from core.schemas.claims import InstanceClaims, extract_claims
from core.schemas.errors import ImageIdMismatchError, SignatureVerificationError


class AttestationProvider(ABC):
    """Interface for verifying platform attestation documents."""

    name: str = "abstract"

    @abstractmethod
    def verify_attestation(self, document: bytes) -> None:
        """
        Verify an attestation document.

        Returns None on success; raises an AttestationException subclass
        describing the first failed stage otherwise.
        """
        raise NotImplementedError


class Ec2AttestationProvider(AttestationProvider):
    """
    Verifies EC2 instance identity documents (CMS SignedData over JSON).

    Signer certificate policy:
    - With trusted_certificates, the signer must be one of them (matched by
      issuer and serial number, or subject key identifier). A certificate
      embedded in the document is only accepted if it is identical to the
      matching pinned certificate.
    - Without trusted_certificates, the certificate embedded in the
      document is used.

    The signing time is not checked; a replayed document for the expected
    image verifies.
    """

    name = "ec2"

    def __init__(
        self,
        expected_image_id: str,
        *,
        trusted_certificates: Iterable[x509.Certificate] = (),
        max_document_size: int = MAX_DOCUMENT_SIZE,
    ) -> None:
        """
        Args:
            expected_image_id: Image id this process believes it runs on
            trusted_certificates: Pinned signer certificates
            max_document_size: Upper bound on document size in bytes
        """
        if not isinstance(expected_image_id, str) or not expected_image_id:
            raise ValueError("expected_image_id must be a non-empty string")
        self._expected_image_id = expected_image_id
        self._trusted_certificates = tuple(trusted_certificates)
        self._max_document_size = max_document_size

    @classmethod
    def from_local_document(
        cls,
        document: bytes,
        *,
        trusted_certificates: Iterable[x509.Certificate] = (),
        max_document_size: int = MAX_DOCUMENT_SIZE,
    ) -> "Ec2AttestationProvider":
        """
        Build a provider whose expected image id comes from this instance's
        own identity document.

        The local document is decoded, its content digest checked, and its
        claims extracted; the signature is not verified.
        """
        decoded = decode_signed_message(document, max_size=max_document_size)
        verify_content_digest(decoded)
        claims = extract_claims(decoded.content)
        return cls(
            claims.image_id,
            trusted_certificates=trusted_certificates,
            max_document_size=max_document_size,
        )

    @property
    def expected_image_id(self) -> str:
        return self._expected_image_id

    @property
    def trusted_certificates(self) -> tuple[x509.Certificate, ...]:
        return self._trusted_certificates

    def verify_attestation(self, document: bytes) -> None:
        """
        Verify a candidate identity document.

        Raises:
            DecodeError: Not a single-signer SignedData structure
            DigestMismatchError: Content altered after signing
            SignatureVerificationError: Signature invalid or signer untrusted
            SchemaError: Payload lacks a valid imageId
            ImageIdMismatchError: Authentic document for another image
        """
        decoded = decode_signed_message(document, max_size=self._max_document_size)

        verify_content_digest(decoded)
        verify_signature(decoded, self._resolve_signer(decoded))

        claims = extract_claims(decoded.content)
        if claims.image_id != self._expected_image_id:
            raise ImageIdMismatchError(self._expected_image_id, claims.image_id)

    def _resolve_signer(self, decoded: DecodedSignedMessage) -> x509.Certificate:
        embedded = decoded.signer_certificate

        if not self._trusted_certificates:
            if embedded is None:
                raise SignatureVerificationError(
                    "Document embeds no signer certificate and none are pinned"
                )
            return embedded

        for pinned in self._trusted_certificates:
            if not certificate_matches_signer(pinned, decoded):
                continue
            if embedded is not None and embedded != pinned:
                raise SignatureVerificationError(
                    "Embedded signer certificate differs from the pinned certificate"
                )
            return pinned

        details = {}
        if decoded.signer_serial_number is not None:
            details["signer_serial_number"] = format(decoded.signer_serial_number, "x")
        raise SignatureVerificationError(
            "Document signer is not a pinned certificate",
            details=details,
        )


def inspect_document(
    document: bytes,
    *,
    max_document_size: int = MAX_DOCUMENT_SIZE,
) -> tuple[DecodedSignedMessage, InstanceClaims]:
    """
    Decode a document and extract its claims without any trust decision.

    Intended for diagnostics; never use the result to grant trust.
    """
    decoded = decode_signed_message(document, max_size=max_document_size)
    return decoded, extract_claims(decoded.content)
