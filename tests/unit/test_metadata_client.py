"""
Instance Metadata Client Unit Tests
Tests for core/http/metadata.py and core/http/client.py

Tests:
- Identity document fetched and base64-decoded (line-wrapped body)
- Optional session token (IMDSv2)
- HTTP and connection failures raise retryable MetadataFetchError
"""
import pytest
import requests

from core.config.runtime import MetadataConfig
from core.http.client import HttpClient, HttpError, HttpResponse
from core.http.metadata import (
    TOKEN_HEADER,
    TOKEN_TTL_HEADER,
    InstanceMetadataClient,
    decode_document_text,
)
from core.schemas.errors import ErrorCodes, MetadataFetchError

from fixtures import SAMPLE_DOCUMENT_B64, sample_document


def _wrapped(encoded: str, width: int = 64) -> bytes:
    """Base64 text wrapped the way the metadata service serves it."""
    lines = [encoded[i:i + width] for i in range(0, len(encoded), width)]
    return ("\n".join(lines) + "\n").encode("ascii")


class FakeHttp:
    """Records requests and replays canned responses."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []
        self.closed = False

    def _respond(self, method, url, headers):
        self.calls.append((method, url, dict(headers or {})))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def get(self, url, *, headers=None, timeout=None):
        return self._respond("GET", url, headers)

    def put(self, url, *, headers=None, data=None, timeout=None):
        return self._respond("PUT", url, headers)

    def close(self):
        self.closed = True


class TestDecodeDocumentText:
    """Tests for decode_document_text()."""

    def test_wrapped_text(self):
        assert decode_document_text(_wrapped(SAMPLE_DOCUMENT_B64)) == sample_document()

    def test_str_input(self):
        assert decode_document_text(SAMPLE_DOCUMENT_B64) == sample_document()

    def test_invalid_base64(self):
        with pytest.raises(MetadataFetchError):
            decode_document_text("not*base64")


class TestFetchIdentityDocument:
    """Tests for InstanceMetadataClient.fetch_identity_document()."""

    def test_fetch(self):
        http = FakeHttp([HttpResponse(status_code=200, content=_wrapped(SAMPLE_DOCUMENT_B64))])
        client = InstanceMetadataClient(MetadataConfig(), http=http)

        document = client.fetch_identity_document()

        assert document == sample_document()
        assert http.calls == [
            ("GET", "/latest/dynamic/instance-identity/rsa2048", {}),
        ]

    def test_fetch_with_token(self):
        http = FakeHttp([
            HttpResponse(status_code=200, content=b"session-token\n"),
            HttpResponse(status_code=200, content=_wrapped(SAMPLE_DOCUMENT_B64)),
        ])
        config = MetadataConfig(use_token=True, token_ttl_seconds=60)
        client = InstanceMetadataClient(config, http=http)

        client.fetch_identity_document()

        token_call, document_call = http.calls
        assert token_call == ("PUT", "/latest/api/token", {TOKEN_TTL_HEADER: "60"})
        assert document_call[2] == {TOKEN_HEADER: "session-token"}

    def test_default_http_client_uses_endpoint(self):
        client = InstanceMetadataClient(MetadataConfig(endpoint="http://127.0.0.1:1338/", timeout=1.0))

        assert client.http.url_for("/latest/api/token") == "http://127.0.0.1:1338/latest/api/token"
        assert client.http.timeout == 1.0
        assert client.http.trust_env is False

    @pytest.mark.parametrize("status", [401, 404, 500])
    def test_http_error_status(self, status):
        http = FakeHttp([HttpResponse(status_code=status, content=b"")])
        client = InstanceMetadataClient(MetadataConfig(), http=http)

        with pytest.raises(MetadataFetchError) as excinfo:
            client.fetch_identity_document()

        assert excinfo.value.code == ErrorCodes.METADATA_FETCH_FAILED
        assert excinfo.value.retryable is True
        assert excinfo.value.details["status_code"] == status

    def test_token_request_rejected(self):
        http = FakeHttp([HttpResponse(status_code=403, content=b"")])
        client = InstanceMetadataClient(MetadataConfig(use_token=True), http=http)

        with pytest.raises(MetadataFetchError):
            client.fetch_identity_document()

        assert len(http.calls) == 1

    def test_unreachable(self):
        http = FakeHttp(error=HttpError("connection refused"))
        client = InstanceMetadataClient(MetadataConfig(), http=http)

        with pytest.raises(MetadataFetchError) as excinfo:
            client.fetch_identity_document()

        assert "connection refused" in excinfo.value.message

    def test_body_not_base64(self):
        http = FakeHttp([HttpResponse(status_code=200, content=b"<html>captive portal</html>")])
        client = InstanceMetadataClient(MetadataConfig(), http=http)

        with pytest.raises(MetadataFetchError):
            client.fetch_identity_document()

    def test_close(self):
        http = FakeHttp()
        InstanceMetadataClient(MetadataConfig(), http=http).close()

        assert http.closed


class _StreamedResponse:
    """Stand-in for a streamed requests.Response."""

    def __init__(self, body, status_code=200, url="http://169.254.169.254/latest/api/token"):
        self._body = body
        self.status_code = status_code
        self.headers = {"Content-Type": "text/plain"}
        self.url = url
        self.closed = False

        class _Elapsed:
            @staticmethod
            def total_seconds():
                return 0.25

        self.elapsed = _Elapsed()

    def iter_content(self, chunk_size):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i:i + chunk_size]

    def close(self):
        self.closed = True


class TestHttpClient:
    """Tests for the requests-backed HttpClient."""

    def test_response_wrapping(self, monkeypatch):
        captured = {}

        def _request(self, **kwargs):
            captured.update(kwargs)
            return _StreamedResponse(b"ok")

        monkeypatch.setattr(requests.Session, "request", _request)

        with HttpClient(
            base_url="http://169.254.169.254/",
            timeout=3.0,
            default_headers={"User-Agent": "keyhost"},
        ) as client:
            response = client.put("/latest/api/token", headers={"X-Test": "1"})

        assert response.ok
        assert response.text == "ok"
        assert response.elapsed_ms == 250.0
        assert captured["url"] == "http://169.254.169.254/latest/api/token"
        assert captured["timeout"] == 3.0
        assert captured["stream"] is True
        assert captured["headers"] == {"User-Agent": "keyhost", "X-Test": "1"}

    def test_absolute_url_kept(self):
        client = HttpClient(base_url="http://169.254.169.254")

        assert client.url_for("http://127.0.0.1/x") == "http://127.0.0.1/x"

    def test_oversized_body(self, monkeypatch):
        streamed = _StreamedResponse(b"A" * 100_000)
        monkeypatch.setattr(requests.Session, "request", lambda self, **kwargs: streamed)

        with pytest.raises(HttpError) as excinfo:
            HttpClient(max_response_bytes=1024).get("http://169.254.169.254/x")

        assert "exceeds 1024 bytes" in str(excinfo.value)
        assert streamed.closed

    def test_connection_error(self, monkeypatch):
        def _request(self, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(requests.Session, "request", _request)

        with pytest.raises(HttpError) as excinfo:
            HttpClient().get("http://169.254.169.254/x")

        assert "refused" in str(excinfo.value)

    def test_raise_for_status(self):
        with pytest.raises(HttpError) as excinfo:
            HttpResponse(status_code=503, content=b"").raise_for_status()

        assert excinfo.value.status_code == 503
