"""
CMS SignedData Decoder

Parses a CMS/PKCS#7 SignedData structure into the parts needed for
verification: enclosed content, algorithms, signer identifier, signer
certificate, signed attributes and signature.

Encoding Notes:
- BER indefinite-length constructed elements are accepted (the platform
  emits the identity document that way)
- Constructed OCTET STRING content is merged chunk by chunk
- Signed attributes must be DER; they are what the signature covers
- Exactly one signer info is accepted

The decoder does no I/O and makes no trust decisions.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from asn1crypto import cms as asn1_cms
from asn1crypto import core as asn1_core
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import Encoding

from core.schemas.errors import DecodeError


# Upper bound for a single document; real documents are a few kilobytes.
MAX_DOCUMENT_SIZE = 256 * 1024

SUPPORTED_DIGEST_ALGORITHMS = frozenset(
    ["sha1", "sha224", "sha256", "sha384", "sha512"]
)

SUPPORTED_SIGNATURE_ALGORITHMS = frozenset(
    ["rsassa_pkcs1v15", "rsassa_pss", "dsa", "ecdsa"]
)

# Tag byte of a universal, constructed SET
_SET_TAG = b"\x31"


@dataclass(frozen=True)
class DecodedSignedMessage:
    """
    Parsed SignedData, owned by a single verification call.

    signed_attributes holds the DER SET OF attributes exactly as signed,
    i.e. with the implicit [0] tag replaced by the universal SET tag.
    """
    content: bytes
    content_type: str
    digest_algorithm: str
    signature_algorithm: str
    signature_hash_algorithm: str
    signer_issuer: Optional[bytes]
    signer_serial_number: Optional[int]
    signer_key_identifier: Optional[bytes]
    signed_attributes: bytes
    message_digest: bytes
    signature: bytes
    signer_certificate: Optional[x509.Certificate] = None
    signing_time: Optional[datetime] = None
    pss_salt_length: Optional[int] = None


def decode_signed_message(
    raw: bytes,
    *,
    max_size: int = MAX_DOCUMENT_SIZE,
) -> DecodedSignedMessage:
    """
    Decode a CMS SignedData document.

    Args:
        raw: Document bytes (already base64-decoded)
        max_size: Reject documents larger than this many bytes

    Returns:
        DecodedSignedMessage

    Raises:
        DecodeError: If the input is not a well-formed, single-signer
            SignedData structure with enclosed content
    """
    if not isinstance(raw, (bytes, bytearray)):
        raise DecodeError(
            f"Document must be bytes, got {type(raw).__name__}"
        )
    if not raw:
        raise DecodeError("Document is empty")
    if len(raw) > max_size:
        raise DecodeError(
            f"Document is {len(raw)} bytes, limit is {max_size}",
            details={"size": len(raw), "max_size": max_size},
        )

    try:
        return _decode(bytes(raw))
    except DecodeError:
        raise
    except (ValueError, TypeError, KeyError, IndexError) as e:
        # asn1crypto parses lazily, so truncation surfaces on field access
        raise DecodeError(f"Malformed CMS structure: {e}") from e


def certificate_matches_signer(
    certificate: x509.Certificate,
    decoded: DecodedSignedMessage,
) -> bool:
    """Check whether a certificate is the one named by the signer identifier."""
    cert = asn1_x509.Certificate.load(certificate.public_bytes(Encoding.DER))
    return _asn1_certificate_matches(
        cert,
        issuer=decoded.signer_issuer,
        serial_number=decoded.signer_serial_number,
        key_identifier=decoded.signer_key_identifier,
    )


# =============================================================================
# Internal helpers
# =============================================================================

def _decode(raw: bytes) -> DecodedSignedMessage:
    content_info = asn1_cms.ContentInfo.load(raw, strict=True)

    outer_type = content_info["content_type"].native
    if outer_type != "signed_data":
        raise DecodeError(
            f"Content type is {outer_type!r}, expected 'signed_data'",
            details={"content_type": outer_type},
        )

    signed_data = content_info["content"]
    encap = signed_data["encap_content_info"]
    content_type = encap["content_type"].native
    if isinstance(encap["content"], asn1_core.Void):
        raise DecodeError("SignedData carries no enclosed content")
    content = encap["content"].native
    if not isinstance(content, bytes):
        raise DecodeError("Enclosed content is not an octet string")

    signer_infos = signed_data["signer_infos"]
    if len(signer_infos) != 1:
        raise DecodeError(
            f"Expected exactly one signer info, found {len(signer_infos)}",
            details={"signer_count": len(signer_infos)},
        )
    signer_info = signer_infos[0]

    issuer, serial_number, key_identifier = _signer_identifier(signer_info["sid"])

    digest_algorithm = signer_info["digest_algorithm"]["algorithm"].native
    if digest_algorithm not in SUPPORTED_DIGEST_ALGORITHMS:
        raise DecodeError(
            f"Unsupported digest algorithm: {digest_algorithm}",
            details={"digest_algorithm": digest_algorithm},
        )

    sig_alg = signer_info["signature_algorithm"]
    signature_algorithm = sig_alg.signature_algo
    if signature_algorithm not in SUPPORTED_SIGNATURE_ALGORITHMS:
        raise DecodeError(
            f"Unsupported signature algorithm: {signature_algorithm}",
            details={"signature_algorithm": signature_algorithm},
        )
    try:
        signature_hash_algorithm = sig_alg.hash_algo
    except ValueError:
        # Plain key algorithm OIDs (rsaEncryption) defer to the digest algorithm
        signature_hash_algorithm = digest_algorithm
    if signature_hash_algorithm not in SUPPORTED_DIGEST_ALGORITHMS:
        raise DecodeError(
            f"Unsupported signature hash algorithm: {signature_hash_algorithm}",
            details={"signature_hash_algorithm": signature_hash_algorithm},
        )

    pss_salt_length = None
    if signature_algorithm == "rsassa_pss":
        pss_salt_length = sig_alg["parameters"]["salt_length"].native

    signed_attrs = signer_info["signed_attrs"]
    if isinstance(signed_attrs, asn1_core.Void) or len(signed_attrs) == 0:
        raise DecodeError("Signer info carries no signed attributes")
    encoded_attrs = signed_attrs.dump()
    if encoded_attrs[1:2] == b"\x80":
        raise DecodeError("Signed attributes must use definite-length encoding")
    signed_attributes = _SET_TAG + encoded_attrs[1:]

    message_digest, signing_time, attr_content_type = _read_attributes(signed_attrs)
    if attr_content_type is not None and attr_content_type != content_type:
        raise DecodeError(
            f"Signed content-type attribute {attr_content_type!r} does not "
            f"match enclosed content type {content_type!r}"
        )

    signer_certificate = _select_certificate(
        signed_data["certificates"],
        issuer=issuer,
        serial_number=serial_number,
        key_identifier=key_identifier,
    )

    return DecodedSignedMessage(
        content=content,
        content_type=content_type,
        digest_algorithm=digest_algorithm,
        signature_algorithm=signature_algorithm,
        signature_hash_algorithm=signature_hash_algorithm,
        signer_issuer=issuer,
        signer_serial_number=serial_number,
        signer_key_identifier=key_identifier,
        signed_attributes=signed_attributes,
        message_digest=message_digest,
        signature=signer_info["signature"].native,
        signer_certificate=signer_certificate,
        signing_time=signing_time,
        pss_salt_length=pss_salt_length,
    )


def _signer_identifier(
    sid: asn1_cms.SignerIdentifier,
) -> tuple[Optional[bytes], Optional[int], Optional[bytes]]:
    if sid.name == "issuer_and_serial_number":
        chosen = sid.chosen
        return chosen["issuer"].dump(), chosen["serial_number"].native, None
    if sid.name == "subject_key_identifier":
        return None, None, sid.chosen.native
    raise DecodeError(f"Unsupported signer identifier: {sid.name}")


def _read_attributes(
    signed_attrs: asn1_cms.CMSAttributes,
) -> tuple[bytes, Optional[datetime], Optional[str]]:
    message_digest: Optional[bytes] = None
    signing_time: Optional[datetime] = None
    content_type: Optional[str] = None

    for attr in signed_attrs:
        attr_type = attr["type"].native
        values = attr["values"]
        if attr_type == "message_digest":
            if message_digest is not None or len(values) != 1:
                raise DecodeError("Message digest attribute must have exactly one value")
            message_digest = values[0].native
        elif attr_type == "signing_time":
            signing_time = values[0].native
        elif attr_type == "content_type":
            content_type = values[0].native

    if message_digest is None:
        raise DecodeError("Signed attributes carry no message digest")
    return message_digest, signing_time, content_type


def _select_certificate(
    certificates,
    *,
    issuer: Optional[bytes],
    serial_number: Optional[int],
    key_identifier: Optional[bytes],
) -> Optional[x509.Certificate]:
    if isinstance(certificates, asn1_core.Void):
        return None

    selected = None
    for choice in certificates:
        if choice.name != "certificate":
            continue
        der = choice.chosen.dump()
        try:
            parsed = x509.load_der_x509_certificate(der)
            # Key parsing is lazy; force it so a broken key fails here
            parsed.public_key()
        except (ValueError, x509.InvalidVersion, UnsupportedAlgorithm) as e:
            raise DecodeError(f"Embedded certificate is not valid X.509: {e}") from e
        if selected is None and _asn1_certificate_matches(
            asn1_x509.Certificate.load(der),
            issuer=issuer,
            serial_number=serial_number,
            key_identifier=key_identifier,
        ):
            selected = parsed
    return selected


def _asn1_certificate_matches(
    cert: asn1_x509.Certificate,
    *,
    issuer: Optional[bytes],
    serial_number: Optional[int],
    key_identifier: Optional[bytes],
) -> bool:
    if key_identifier is not None:
        return cert.key_identifier == key_identifier
    if issuer is None or serial_number is None:
        return False
    return (
        cert.serial_number == serial_number
        and cert.issuer == asn1_x509.Name.load(issuer)
    )
