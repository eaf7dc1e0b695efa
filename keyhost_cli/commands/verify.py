"""
CLI Verify Command

Verify an identity document offline:
- Decode the CMS SignedData structure
- Check the content digest and the signature
- Compare the attested image id with the expected one

Usage:
    keyhost verify document.b64 --base64 --expected-image-id ami-ea165990
    keyhost verify document.der --expected-image-id ami-ea165990 --cert signer.pem
    keyhost verify document.der --expected-image-id ami-ea165990 --embedded-cert
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from cryptography import x509

from core.crypto.attestation import Ec2AttestationProvider
from core.http.metadata import decode_document_text
from core.schemas.errors import AttestationException, KeyhostException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def read_document(source: str, is_base64: bool) -> bytes:
    """Read a document from a path or stdin ('-'), decoding base64 if asked."""
    if source == "-":
        raw = sys.stdin.buffer.read()
    else:
        raw = Path(source).read_bytes()
    return decode_document_text(raw) if is_base64 else raw


def load_certificates(paths: list[Path]) -> list[x509.Certificate]:
    """Load PEM certificates from files."""
    certificates: list[x509.Certificate] = []
    for path in paths:
        certificates.extend(x509.load_pem_x509_certificates(path.read_bytes()))
    return certificates


def verify_cmd(args: Namespace) -> int:
    """Handle verify command."""
    try:
        document = read_document(args.document, args.base64)
        if args.cert:
            trusted = load_certificates(args.cert)
        elif args.embedded_cert:
            trusted = []
        else:
            trusted = args.runtime_config.attestation.pinned_certificates
    except (OSError, ValueError, KeyhostException) as e:
        logger.error(f"Unable to load inputs: {e}")
        return EXIT_RUNTIME_ERROR

    provider = Ec2AttestationProvider(
        args.expected_image_id,
        trusted_certificates=trusted,
        max_document_size=args.runtime_config.attestation.max_document_size,
    )

    result: dict[str, Any] = {
        "ok": True,
        "expected_image_id": args.expected_image_id,
        "pinned_certificates": len(trusted),
    }
    try:
        provider.verify_attestation(document)
    except AttestationException as e:
        result["ok"] = False
        result["error"] = e.to_error_model().model_dump()

    if args.json:
        print(json.dumps(result, indent=2))
    elif result["ok"]:
        print(f"OK: document attests image {args.expected_image_id}")
    else:
        error = result["error"]
        print(f"FAILED [{error['code']}]: {error['message']}")

    return EXIT_SUCCESS if result["ok"] else EXIT_VERIFICATION_FAILED
