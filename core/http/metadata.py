"""
Instance Metadata Client

Fetches this instance's signed identity document from the link-local
metadata service. The service answers with base64 text wrapped at 64
columns; the client strips line breaks and returns the decoded bytes.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

from core.config.runtime import MetadataConfig
from core.http.client import HttpClient, HttpError
from core.schemas.errors import MetadataFetchError


logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-aws-ec2-metadata-token"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"


def decode_document_text(text: str | bytes) -> bytes:
    """
    Decode the base64 identity document as served by the metadata service.

    Raises:
        MetadataFetchError: If the text is not valid base64
    """
    if isinstance(text, bytes):
        text = text.decode("ascii", errors="replace")
    compact = "".join(text.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MetadataFetchError(f"Identity document is not valid base64: {e}") from e


class InstanceMetadataClient:
    """
    Client for the instance metadata service.

    Usage:
        client = InstanceMetadataClient(config.metadata)
        document = client.fetch_identity_document()
    """

    def __init__(
        self,
        config: Optional[MetadataConfig] = None,
        *,
        http: Optional[HttpClient] = None,
    ) -> None:
        self.config = config or MetadataConfig()
        self.http = http or HttpClient(
            base_url=self.config.endpoint,
            timeout=self.config.timeout,
        )

    def fetch_token(self) -> str:
        """Obtain a session token (IMDSv2)."""
        url = self.config.token_url
        try:
            response = self.http.put(
                self.config.token_path,
                headers={TOKEN_TTL_HEADER: str(self.config.token_ttl_seconds)},
            )
        except HttpError as e:
            raise MetadataFetchError(f"Unable to reach metadata service: {e}", url=url) from e
        if not response.ok:
            raise MetadataFetchError(
                f"Metadata token request failed with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response.text.strip()

    def fetch_identity_document(self) -> bytes:
        """
        Fetch and base64-decode the signed identity document.

        Raises:
            MetadataFetchError: On connection failure, non-2xx status or
                undecodable body
        """
        headers: dict[str, str] = {}
        if self.config.use_token:
            headers[TOKEN_HEADER] = self.fetch_token()

        url = self.config.document_url
        logger.debug(f"Fetching identity document from {url}")
        try:
            response = self.http.get(self.config.document_path, headers=headers)
        except HttpError as e:
            raise MetadataFetchError(f"Unable to reach metadata service: {e}", url=url) from e
        if not response.ok:
            raise MetadataFetchError(
                f"Identity document request failed with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        document = decode_document_text(response.content)
        logger.debug(f"Fetched identity document ({len(document)} bytes)")
        return document

    def close(self) -> None:
        self.http.close()
