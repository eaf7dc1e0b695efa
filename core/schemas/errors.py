"""
Schemas
File: errors.py

Purpose: Standard error taxonomy across the keyhost bootstrap.
Defines both Pydantic models for structured error reporting
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the service."""

    # Attestation Errors
    DECODE_ERROR = "DECODE_ERROR"
    DIGEST_MISMATCH = "DIGEST_MISMATCH"
    SIGNATURE_VERIFICATION_FAILED = "SIGNATURE_VERIFICATION_FAILED"
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    IMAGE_ID_MISMATCH = "IMAGE_ID_MISMATCH"

    # Startup Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
    BOOTSTRAP_FAILED = "BOOTSTRAP_FAILED"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class KeyhostError(BaseModel):
    """
    Error model for structured error reporting.

    Used when a failure has to cross a serialization boundary (CLI JSON
    output, logs) without carrying the exception object itself.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.DECODE_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "KeyhostException":
        """Convert this error model to a raised exception."""
        return KeyhostException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class KeyhostException(Exception):
    """
    Base exception for all keyhost errors.

    This exception carries structured error information and can be
    converted to/from KeyhostError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "KEYHOST_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> KeyhostError:
        """Convert this exception to a KeyhostError model."""
        return KeyhostError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class AttestationException(KeyhostException):
    """
    Base for the attestation failure taxonomy.

    Every subclass is terminal: a document that failed once will fail
    again, so none of them is retryable.
    """

    default_code = "ATTESTATION_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=self.default_code,
            details=details,
            retryable=False,
        )


class DecodeError(AttestationException):
    """Input is not a well-formed single-signer SignedData structure."""

    default_code = ErrorCodes.DECODE_ERROR


class DigestMismatchError(AttestationException):
    """Enclosed content does not match its signed message digest."""

    default_code = ErrorCodes.DIGEST_MISMATCH


class SignatureVerificationError(AttestationException):
    """Signature does not validate against the signer certificate."""

    default_code = ErrorCodes.SIGNATURE_VERIFICATION_FAILED


class SchemaError(AttestationException):
    """Exception raised when the enclosed claims fail schema validation."""

    default_code = ErrorCodes.SCHEMA_VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(message=message, details=full_details)


class ImageIdMismatchError(AttestationException):
    """Document is authentic but describes a different image than expected."""

    default_code = ErrorCodes.IMAGE_ID_MISMATCH

    def __init__(self, expected_image_id: str, instance_image_id: str) -> None:
        super().__init__(
            message=(
                f"Client image id {expected_image_id} doesn't match "
                f"instance image id {instance_image_id}"
            ),
            details={
                "expected_image_id": expected_image_id,
                "instance_image_id": instance_image_id,
            },
        )
        self.expected_image_id = expected_image_id
        self.instance_image_id = instance_image_id


class ConfigurationError(KeyhostException):
    """Exception raised when the startup configuration is invalid."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if key:
            full_details["key"] = key
        super().__init__(
            message=message,
            code=ErrorCodes.CONFIGURATION_ERROR,
            details=full_details,
            retryable=False,
        )


class MetadataFetchError(KeyhostException):
    """Exception raised when the instance metadata service cannot be read."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if url:
            full_details["url"] = url
        if status_code is not None:
            full_details["status_code"] = status_code
        super().__init__(
            message=message,
            code=ErrorCodes.METADATA_FETCH_FAILED,
            details=full_details,
            retryable=True,
        )


class BootstrapError(KeyhostException):
    """Exception raised when the bootstrap controller refuses to start."""

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if stage:
            full_details["stage"] = stage
        super().__init__(
            message=message,
            code=ErrorCodes.BOOTSTRAP_FAILED,
            details=full_details,
            retryable=False,
        )
