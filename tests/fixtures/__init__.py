"""
Test fixtures package for keyhost tests.

- documents.py: platform-issued identity document samples, a builder for
  signed documents with throwaway keys, and tampering helpers

Usage:
    from fixtures import build_identity_document, make_signer

    def test_something():
        document = build_identity_document(signer=make_signer())
"""

from .documents import (
    SAMPLE_DOCUMENT_B64,
    SAMPLE_IMAGE_ID,
    SAMPLE_SIGNER_SERIAL_NUMBER,
    SAMPLE_SIGNING_TIME,
    SAMPLE_TAMPERED_CONTENT_B64,
    SAMPLE_TAMPERED_SIGNATURE_B64,
    Signer,
    build_identity_document,
    corrupt_certificate,
    flip_signature_byte,
    make_claims,
    make_signer,
    patch_certificate,
    render_claims,
    replace_once,
    sample_document,
)

__all__ = [
    "SAMPLE_DOCUMENT_B64",
    "SAMPLE_IMAGE_ID",
    "SAMPLE_SIGNER_SERIAL_NUMBER",
    "SAMPLE_SIGNING_TIME",
    "SAMPLE_TAMPERED_CONTENT_B64",
    "SAMPLE_TAMPERED_SIGNATURE_B64",
    "Signer",
    "build_identity_document",
    "corrupt_certificate",
    "flip_signature_byte",
    "make_claims",
    "make_signer",
    "patch_certificate",
    "render_claims",
    "replace_once",
    "sample_document",
]
