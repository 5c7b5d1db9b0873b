"""
Unit tests for the remote document server client.

All HTTP traffic goes through `httpx.MockTransport`.
"""

import asyncio
import json
from dataclasses import replace

import httpx
import jwt
import pytest

from doc_toolkit.errors import RemoteServiceError
from doc_toolkit.strategies.remote import (
    DocumentServerClient,
    RemoteConversionJob,
    RemoteConversionStrategy,
    RemoteState,
    conversion_key,
)
from tests.helpers import make_context, make_office_bytes

SERVER = "http://docs.test"
CONVERTED = make_office_bytes(4096)


class FakeDocumentServer:
    """Routes requests like a Document Server and records what it received."""

    def __init__(self, upload=None, convert=None, downloads=None):
        self.upload = upload or (lambda request: httpx.Response(200, json={"url": f"{SERVER}/files/src.pdf"}))
        self.convert = convert or (
            lambda request: httpx.Response(200, json={"endConvert": True, "fileUrl": f"{SERVER}/cache/out"})
        )
        self.downloads = list(downloads or [httpx.Response(200, content=CONVERTED)])
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == "/upload":
            return self.upload(request)
        if path == "/ConvertService.ashx":
            return self.convert(request)
        if path == "/cache/out":
            response = self.downloads.pop(0) if len(self.downloads) > 1 else self.downloads[0]
            return httpx.Response(response.status_code, content=response.content)
        return httpx.Response(404)

    def conversion_payload(self):
        request = next(r for r in self.requests if r.url.path == "/ConvertService.ashx")
        return json.loads(request.content)


class TestDocumentServerClient:

    @pytest.fixture(autouse=True)
    def _settings(self, settings):
        self.settings = replace(settings, document_server_url=SERVER, remote_timeout=30.0)

    def setup_method(self):
        self.sleeps = []

    async def _sleep(self, seconds):
        self.sleeps.append(seconds)

    def client(self, server, settings=None, **kwargs):
        return DocumentServerClient(
            settings or self.settings, transport=httpx.MockTransport(server), sleep=self._sleep, **kwargs
        )

    def test_successful_conversion(self):
        server = FakeDocumentServer()
        result = asyncio.run(self.client(server).convert(b"%PDF-1.7 data", "report.pdf", "docx"))

        assert result == CONVERTED
        assert [r.url.path for r in server.requests] == ["/upload", "/ConvertService.ashx", "/cache/out"]
        payload = server.conversion_payload()
        assert payload["async"] is False
        assert payload["filetype"] == "pdf"
        assert payload["outputtype"] == "docx"
        assert payload["title"] == "report.pdf"
        assert payload["url"] == f"{SERVER}/files/src.pdf"
        assert payload["key"].endswith("_report_pdf")
        assert payload["delimiter"] == {"paragraph": True, "column": False}
        assert "token" not in payload
        assert server.requests[1].headers["accept"] == "application/json"

    def test_xlsx_options(self):
        server = FakeDocumentServer()
        asyncio.run(self.client(server).convert(b"%PDF", "sheet.pdf", "xlsx"))
        payload = server.conversion_payload()
        assert payload["codePage"] == 65001
        assert payload["delimiter"]["tab"] is True

    def test_signed_request(self):
        server = FakeDocumentServer()
        settings = replace(self.settings, jwt_secret="shared-secret")
        asyncio.run(self.client(server, settings).convert(b"%PDF", "report.pdf", "pptx"))

        payload = server.conversion_payload()
        claims = jwt.decode(payload["token"], "shared-secret", algorithms=["HS256"])
        assert claims["key"] == payload["key"]
        assert claims["outputtype"] == "pptx"
        assert "exp" in claims

    def test_upload_failure_falls_back_to_callback_url(self):
        server = FakeDocumentServer(upload=lambda request: httpx.Response(500))
        asyncio.run(self.client(server).convert(b"%PDF", "scan.pdf", "docx"))

        url = server.conversion_payload()["url"]
        assert url.startswith("http://localhost:10000/temp/temp_")
        assert url.endswith("_scan.pdf")

    def test_upload_without_url_falls_back(self):
        server = FakeDocumentServer(upload=lambda request: httpx.Response(200, json={"status": "ok"}))
        asyncio.run(self.client(server).convert(b"%PDF", "scan.pdf", "docx"))
        assert "/temp/temp_" in server.conversion_payload()["url"]

    def test_conversion_error_field(self):
        server = FakeDocumentServer(convert=lambda request: httpx.Response(200, json={"error": -4}))
        with pytest.raises(RemoteServiceError, match="conversion error: -4"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_missing_file_url(self):
        server = FakeDocumentServer(convert=lambda request: httpx.Response(200, json={"endConvert": False}))
        with pytest.raises(RemoteServiceError, match="no file URL"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_non_json_response(self):
        server = FakeDocumentServer(convert=lambda request: httpx.Response(200, text="<html>busy</html>"))
        with pytest.raises(RemoteServiceError, match="non-JSON"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_unexpected_json_shape(self):
        server = FakeDocumentServer(convert=lambda request: httpx.Response(200, json=["unexpected"]))
        with pytest.raises(RemoteServiceError, match="unexpected conversion response"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_http_error_is_wrapped(self):
        server = FakeDocumentServer(convert=lambda request: httpx.Response(502))
        with pytest.raises(RemoteServiceError, match="while converting"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_download_retries_with_backoff(self):
        server = FakeDocumentServer(downloads=[
            httpx.Response(503),
            httpx.Response(503),
            httpx.Response(200, content=CONVERTED),
        ])
        result = asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

        assert result == CONVERTED
        assert self.sleeps == [2.0, 2.0]
        assert [r.url.path for r in server.requests].count("/cache/out") == 3

    def test_download_gives_up(self):
        server = FakeDocumentServer(downloads=[httpx.Response(503)])
        with pytest.raises(RemoteServiceError, match="while downloading"):
            asyncio.run(self.client(server, retries=2).convert(b"%PDF", "x.pdf", "docx"))
        assert self.sleeps == [2.0]

    def test_empty_download(self):
        server = FakeDocumentServer(downloads=[httpx.Response(200, content=b"")])
        with pytest.raises(RemoteServiceError, match="empty"):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_timeout_propagates(self):
        def convert(request):
            raise httpx.ReadTimeout("timed out", request=request)

        server = FakeDocumentServer(convert=convert)
        with pytest.raises(httpx.TimeoutException):
            asyncio.run(self.client(server).convert(b"%PDF", "x.pdf", "docx"))

    def test_not_configured(self, settings):
        client = DocumentServerClient(settings)
        assert client.available is False
        with pytest.raises(RemoteServiceError, match="not configured"):
            asyncio.run(client.convert(b"%PDF", "x.pdf", "docx"))
        assert asyncio.run(client.health_check()) is False


class TestHealthCheck:

    @pytest.fixture(autouse=True)
    def _settings(self, settings):
        self.settings = replace(settings, document_server_url=SERVER)

    def check_health(self, handler):
        client = DocumentServerClient(self.settings, transport=httpx.MockTransport(handler))
        return asyncio.run(client.health_check())

    def test_healthcheck_endpoint(self):
        assert self.check_health(lambda request: httpx.Response(200, text="true")) is True

    def test_falls_back_to_root(self):
        def handler(request):
            return httpx.Response(404 if request.url.path == "/healthcheck" else 200)

        assert self.check_health(handler) is True

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert self.check_health(handler) is False

    def test_server_info(self):
        settings = replace(self.settings, jwt_secret="s")
        client = DocumentServerClient(settings, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        assert asyncio.run(client.server_info()) == {
            "available": True, "healthy": True, "url": SERVER, "jwt_enabled": True,
        }


class TestRemoteConversionJob:

    def test_forward_path(self):
        job = RemoteConversionJob("a.pdf", "docx")
        for state in (RemoteState.UPLOADING, RemoteState.CONVERTING, RemoteState.DOWNLOADING, RemoteState.DONE):
            job.advance(state)
        assert job.finished
        assert job.history[0] is RemoteState.IDLE
        assert job.history[-1] is RemoteState.DONE

    def test_skipping_a_state_is_rejected(self):
        job = RemoteConversionJob("a.pdf", "docx")
        with pytest.raises(RuntimeError):
            job.advance(RemoteState.CONVERTING)

    def test_fail(self):
        job = RemoteConversionJob("a.pdf", "docx")
        job.advance(RemoteState.UPLOADING)
        job.fail("boom")
        assert job.state is RemoteState.FAILED
        assert job.error == "boom"
        job.fail("again")
        assert job.history.count(RemoteState.FAILED) == 1

    def test_conversion_key(self):
        first, second = conversion_key("my file.pdf"), conversion_key("my file.pdf")
        assert first != second
        assert first.endswith("_my_file_pdf")


class TestRemoteConversionStrategy:

    def test_invoke_returns_bytes(self, settings):
        remote_settings = replace(settings, document_server_url=SERVER)
        client = DocumentServerClient(remote_settings, transport=httpx.MockTransport(FakeDocumentServer()))
        strategy = RemoteConversionStrategy(client)
        context = make_context(remote_settings, None, target_format="docx")
        try:
            assert asyncio.run(strategy.invoke(context)) == CONVERTED
        finally:
            context.workspace.cleanup()

        assert strategy.check_signature is False
        assert strategy.min_output_size == 1000
        assert strategy.timeout == remote_settings.remote_timeout

    def test_accepts_output_without_zip_signature(self, settings):
        strategy = RemoteConversionStrategy(DocumentServerClient(settings))
        context = make_context(settings, None, target_format="docx")
        try:
            assert strategy.accept(b"\x00" * 2000, context) is None
        finally:
            context.workspace.cleanup()
