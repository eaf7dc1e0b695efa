"""
Schemas
File: claims.py

Purpose: Typed view of the instance identity document payload and the
strict decode step that produces it.

Only imageId is consumed by attestation; the remaining fields are typed so
that a malformed document fails here instead of further down, and unknown
keys are kept as extra fields for callers that need them.
"""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import SchemaError


class InstanceClaims(BaseModel):
    """
    Identity claims of a running instance.

    Field names are snake_case; the payload's camelCase keys are accepted
    through aliases.
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
    )

    image_id: str = Field(
        ...,
        alias="imageId",
        min_length=1,
        strict=True,
        description="Identifier of the image the instance was launched from",
    )
    instance_id: Optional[str] = Field(default=None, alias="instanceId")
    account_id: Optional[str] = Field(default=None, alias="accountId")
    region: Optional[str] = Field(default=None)
    instance_type: Optional[str] = Field(default=None, alias="instanceType")
    architecture: Optional[str] = Field(default=None)
    availability_zone: Optional[str] = Field(default=None, alias="availabilityZone")
    pending_time: Optional[datetime] = Field(default=None, alias="pendingTime")
    private_ip: Optional[str] = Field(default=None, alias="privateIp")
    version: Optional[str] = Field(default=None)
    kernel_id: Optional[str] = Field(default=None, alias="kernelId")
    ramdisk_id: Optional[str] = Field(default=None, alias="ramdiskId")
    devpay_product_codes: Optional[list[str]] = Field(default=None, alias="devpayProductCodes")
    marketplace_product_codes: Optional[list[str]] = Field(
        default=None, alias="marketplaceProductCodes"
    )
    billing_products: Optional[list[str]] = Field(default=None, alias="billingProducts")


def extract_claims(content: bytes) -> InstanceClaims:
    """
    Parse the enclosed document content into InstanceClaims.

    Args:
        content: UTF-8 JSON object bytes

    Returns:
        InstanceClaims

    Raises:
        SchemaError: If the content is not a JSON object, or a field is
            missing or has the wrong type
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SchemaError(f"Document content is not UTF-8: {e}") from e

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Document content is not valid JSON: {e}") from e
    except RecursionError as e:
        raise SchemaError("Document content is nested too deeply") from e

    if not isinstance(data, dict):
        raise SchemaError(
            f"Document content must be a JSON object, got {type(data).__name__}"
        )

    try:
        return InstanceClaims.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_path = ".".join(str(part) for part in first["loc"])
        raise SchemaError(
            f"Invalid instance claims at {field_path}: {first['msg']}",
            field_path=field_path,
            details={"error_count": e.error_count()},
        ) from e
    except RecursionError as e:
        raise SchemaError("Document content is nested too deeply") from e
