"""
HTTP Client

Small synchronous client for the link-local metadata channel, built on a
requests session. Responses are read in full up to a byte limit and
returned as plain values; transport failures surface as HttpError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import requests


# Identity documents are a few kilobytes; anything near this is not one.
DEFAULT_MAX_RESPONSE_BYTES = 1024 * 1024

_CHUNK_SIZE = 16 * 1024


@dataclass
class HttpResponse:
    """Fully read response."""
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def raise_for_status(self) -> None:
        if not self.ok:
            raise HttpError(
                f"{self.url or 'request'} answered HTTP {self.status_code}",
                status_code=self.status_code,
                response=self,
            )


class HttpError(Exception):
    """Connection failure, timeout, oversized body or (via raise_for_status) bad status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[HttpResponse] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class HttpClient:
    """
    Session-backed client.

    Relative paths are joined to base_url; absolute URLs are used as given.
    Environment proxy settings are ignored unless trust_env is set, since
    the metadata endpoint must be reached directly.

    Usage:
        with HttpClient(base_url="http://169.254.169.254", timeout=5.0) as client:
            response = client.get("/latest/dynamic/instance-identity/rsa2048")
            response.raise_for_status()
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout: float = 5.0,
        default_headers: Optional[dict[str, str]] = None,
        trust_env: bool = False,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = default_headers or {}
        self.trust_env = trust_env
        self.max_response_bytes = max_response_bytes
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.trust_env = self.trust_env
        return self._session

    def url_for(self, path_or_url: str) -> str:
        if "://" in path_or_url or not self.base_url:
            return path_or_url
        return self.base_url + "/" + path_or_url.lstrip("/")

    def request(
        self,
        method: str,
        path_or_url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        data: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Send a request and read the whole body.

        Raises:
            HttpError: On connection failure, timeout, or a body larger
                than max_response_bytes
        """
        url = self.url_for(path_or_url)
        request_headers = {**self.default_headers, **(headers or {})}

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                data=data,
                timeout=timeout or self.timeout,
                stream=True,
            )
            try:
                content = self._read_body(response, url)
            finally:
                response.close()
        except requests.RequestException as e:
            raise HttpError(f"{method} {url} failed: {e}") from e

        return HttpResponse(
            status_code=response.status_code,
            content=content,
            headers=dict(response.headers),
            url=str(response.url),
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )

    def get(self, path_or_url: str, **kwargs: Any) -> HttpResponse:
        return self.request("GET", path_or_url, **kwargs)

    def put(self, path_or_url: str, **kwargs: Any) -> HttpResponse:
        return self.request("PUT", path_or_url, **kwargs)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _read_body(self, response: requests.Response, url: str) -> bytes:
        body = bytearray()
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > self.max_response_bytes:
                raise HttpError(
                    f"Response from {url} exceeds {self.max_response_bytes} bytes",
                    status_code=response.status_code,
                )
        return bytes(body)
