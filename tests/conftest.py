"""
Pytest configuration and shared fixtures for keyhost tests.

This conftest.py:
1. Puts the project root and tests/ on sys.path (for `fixtures`)
2. Provides signers and signed documents as fixtures
3. Keeps KEYHOST_* variables from the calling shell out of every test
"""

import os
import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Document builders
# =============================================================================

import importlib

_documents = importlib.import_module("fixtures.documents")

build_identity_document = _documents.build_identity_document
make_signer = _documents.make_signer
sample_document = _documents.sample_document


# =============================================================================
# Signers and documents
# =============================================================================

@pytest.fixture
def signer():
    """Provide the default RSA signer."""
    return make_signer()


@pytest.fixture
def other_signer():
    """Provide a second RSA signer unrelated to the default one."""
    return make_signer("Unrelated Signer")


@pytest.fixture
def ec_signer():
    """Provide an ECDSA P-256 signer."""
    return make_signer("EC Identity Signer", key_type="ec")


@pytest.fixture
def signed_document(signer):
    """Provide a valid BER-encoded document with the signer certificate embedded."""
    return build_identity_document(signer=signer)


@pytest.fixture
def platform_document():
    """Provide the platform-issued sample document (no embedded certificate)."""
    return sample_document()


@pytest.fixture(autouse=True)
def _isolate_keyhost_env(monkeypatch):
    """Keep KEYHOST_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("KEYHOST_"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_attestation_error():
    """Helper to assert an attestation failure's class and code."""
    def _assert(excinfo, error_class, code: str):
        assert isinstance(excinfo.value, error_class), (
            f"Expected {error_class.__name__}, got {type(excinfo.value).__name__}"
        )
        assert excinfo.value.code == code
        assert excinfo.value.retryable is False
    return _assert
