"""
Error Taxonomy Unit Tests
Tests for core/schemas/errors.py

Tests:
- Each attestation failure carries its stable code and is terminal
- Exceptions convert to KeyhostError models and back
- ImageIdMismatchError message and fields
"""
import pytest

from core.schemas.errors import (
    AttestationException,
    BootstrapError,
    ConfigurationError,
    DecodeError,
    DigestMismatchError,
    ErrorCodes,
    ImageIdMismatchError,
    KeyhostError,
    KeyhostException,
    MetadataFetchError,
    SchemaError,
    SignatureVerificationError,
)


@pytest.mark.parametrize(
    "error_class, code",
    [
        (DecodeError, ErrorCodes.DECODE_ERROR),
        (DigestMismatchError, ErrorCodes.DIGEST_MISMATCH),
        (SignatureVerificationError, ErrorCodes.SIGNATURE_VERIFICATION_FAILED),
        (SchemaError, ErrorCodes.SCHEMA_VALIDATION_ERROR),
    ],
)
def test_attestation_error_codes(error_class, code):
    error = error_class("boom")

    assert isinstance(error, AttestationException)
    assert isinstance(error, KeyhostException)
    assert error.code == code
    assert error.message == "boom"
    assert str(error) == "boom"
    assert error.retryable is False


class TestImageIdMismatchError:
    """Tests for ImageIdMismatchError."""

    def test_message_reports_expected_id_first(self):
        error = ImageIdMismatchError("ami-00000000", "ami-ea165990")

        assert str(error) == (
            "Client image id ami-00000000 doesn't match instance image id ami-ea165990"
        )

    def test_fields(self):
        error = ImageIdMismatchError("ami-00000000", "ami-ea165990")

        assert error.code == ErrorCodes.IMAGE_ID_MISMATCH
        assert error.expected_image_id == "ami-00000000"
        assert error.instance_image_id == "ami-ea165990"
        assert error.details == {
            "expected_image_id": "ami-00000000",
            "instance_image_id": "ami-ea165990",
        }


class TestStartupErrors:
    """Tests for configuration, metadata and bootstrap errors."""

    def test_configuration_error_key(self):
        error = ConfigurationError("bad value", key="rpcCertificate")

        assert error.code == ErrorCodes.CONFIGURATION_ERROR
        assert error.details == {"key": "rpcCertificate"}
        assert not isinstance(error, AttestationException)

    def test_metadata_fetch_error_is_retryable(self):
        error = MetadataFetchError("unreachable", url="http://169.254.169.254/x", status_code=404)

        assert error.retryable is True
        assert error.details == {"url": "http://169.254.169.254/x", "status_code": 404}

    def test_bootstrap_error_stage(self):
        error = BootstrapError("stopped", stage="attestation")

        assert error.code == ErrorCodes.BOOTSTRAP_FAILED
        assert error.details["stage"] == "attestation"

    def test_schema_error_field_path(self):
        error = SchemaError("missing", field_path="imageId", details={"error_count": 1})

        assert error.details == {"field_path": "imageId", "error_count": 1}


class TestErrorModel:
    """Tests for the KeyhostError model."""

    def test_exception_to_model(self):
        model = DigestMismatchError("Message digest mismatch", details={"a": 1}).to_error_model()

        assert isinstance(model, KeyhostError)
        assert model.code == ErrorCodes.DIGEST_MISMATCH
        assert model.details == {"a": 1}
        assert model.retryable is False

    def test_model_to_exception(self):
        model = KeyhostError(code=ErrorCodes.METADATA_FETCH_FAILED, message="down", retryable=True)

        error = model.to_exception()

        assert isinstance(error, KeyhostException)
        assert error.code == ErrorCodes.METADATA_FETCH_FAILED
        assert error.retryable is True

    def test_model_forbids_extra_fields(self):
        with pytest.raises(ValueError):
            KeyhostError(code="X", message="y", unexpected=True)

    def test_repr(self):
        assert repr(DecodeError("bad")) == "DecodeError(code='DECODE_ERROR', message='bad')"
