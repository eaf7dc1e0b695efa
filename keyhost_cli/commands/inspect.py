"""
CLI Inspect Command

Print the structure and claims of an identity document without making a
trust decision.

Usage:
    keyhost inspect document.b64 --base64
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace

from core.crypto.attestation import inspect_document
from core.schemas.errors import AttestationException, KeyhostException
from keyhost_cli.commands.verify import read_document


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def inspect_cmd(args: Namespace) -> int:
    """Handle inspect command."""
    try:
        document = read_document(args.document, args.base64)
    except (OSError, KeyhostException) as e:
        logger.error(f"Unable to read document: {e}")
        return EXIT_RUNTIME_ERROR

    try:
        decoded, claims = inspect_document(
            document,
            max_document_size=args.runtime_config.attestation.max_document_size,
        )
    except AttestationException as e:
        print(json.dumps({"ok": False, "error": e.to_error_model().model_dump()}, indent=2))
        return EXIT_VERIFICATION_FAILED

    signer = decoded.signer_certificate
    report = {
        "ok": True,
        "verified": False,
        "content_type": decoded.content_type,
        "digest_algorithm": decoded.digest_algorithm,
        "signature_algorithm": decoded.signature_algorithm,
        "signing_time": decoded.signing_time.isoformat() if decoded.signing_time else None,
        "signer_serial_number": (
            format(decoded.signer_serial_number, "x")
            if decoded.signer_serial_number is not None
            else None
        ),
        "signer_certificate": signer.subject.rfc4514_string() if signer is not None else None,
        "claims": claims.model_dump(mode="json", by_alias=True),
    }
    print(json.dumps(report, indent=2))
    return EXIT_SUCCESS
