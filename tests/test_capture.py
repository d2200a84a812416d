"""
Tests for the error capture client.

Reports go through httpx.MockTransport, so nothing leaves the process.
"""

import asyncio
import json

import httpx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from bugboy.capture import ErrorCaptureClient, capture
from bugboy.main import create_app


def recording_transport(status_code=200):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(status_code, json={"ok": status_code < 400})

    return httpx.MockTransport(handler), sent


class TestClientSetup:
    def test_not_initialised_by_default(self):
        assert not ErrorCaptureClient().is_initialized()

    def test_init_and_shutdown(self):
        client = ErrorCaptureClient()
        client.init(api_key="key", endpoint="http://capture.test/api/capture", project_id="p")
        assert client.is_initialized()
        client.shutdown()
        assert not client.is_initialized()
        assert client.api_key is None

    @pytest.mark.parametrize("kwargs", [
        {"api_key": "", "endpoint": "http://capture.test"},
        {"api_key": "key", "endpoint": ""},
    ])
    def test_init_requires_key_and_endpoint(self, kwargs):
        with pytest.raises(ValueError):
            ErrorCaptureClient().init(**kwargs)

    def test_report_without_init_is_noop(self):
        assert asyncio.run(ErrorCaptureClient().report(RuntimeError("x"))) is False


class TestReporting:
    def test_payload_shape(self):
        transport, sent = recording_transport()
        client = ErrorCaptureClient()
        client.init(api_key="key", endpoint="http://capture.test/api/capture",
                    project_id="bugboy", transport=transport)

        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            delivered = asyncio.run(client.report(e, {"handler": "tests"}))

        assert delivered
        assert len(sent) == 1
        assert sent[0].headers["authorization"] == "Bearer key"
        body = json.loads(sent[0].content)
        assert body["projectId"] == "bugboy"
        assert body["error"]["type"] == "RuntimeError"
        assert body["error"]["message"] == "boom"
        assert "Traceback" in body["error"]["stack"]
        assert body["context"] == {"handler": "tests"}

    def test_endpoint_failure_is_swallowed(self):
        transport, _ = recording_transport(status_code=503)
        client = ErrorCaptureClient()
        client.init(api_key="key", endpoint="http://capture.test/api/capture", transport=transport)
        assert asyncio.run(client.report(RuntimeError("boom"))) is False


class TestWrap:
    def test_passes_result_through(self):
        client = ErrorCaptureClient()

        @client.wrap
        async def handler(x):
            return x * 2

        assert asyncio.run(handler(x=21)) == 42
        assert handler.__name__ == "handler"

    def test_reports_and_reraises(self):
        transport, sent = recording_transport()
        client = ErrorCaptureClient()
        client.init(api_key="key", endpoint="http://capture.test/api/capture", transport=transport)

        @client.wrap
        async def handler(item_id):
            raise KeyError(item_id)

        with pytest.raises(KeyError):
            asyncio.run(handler(item_id="abc"))

        body = json.loads(sent[0].content)
        assert body["error"]["type"] == "KeyError"
        assert body["context"]["params"] == {"item_id": "abc"}
        assert body["context"]["handler"].endswith("handler")

    def test_http_exceptions_are_not_reported(self):
        transport, sent = recording_transport()
        client = ErrorCaptureClient()
        client.init(api_key="key", endpoint="http://capture.test/api/capture", transport=transport)

        @client.wrap
        async def handler():
            raise HTTPException(status_code=404, detail="nope")

        with pytest.raises(HTTPException):
            asyncio.run(handler())
        assert sent == []


class TestExampleEndpoint:
    """GET /api/example fails on purpose; the failure should be captured."""

    def test_error_is_captured_and_answered_500(self, settings, store):
        transport, sent = recording_transport()
        app = create_app(settings=settings, store=store)
        capture.init(api_key="key", endpoint="http://capture.test/api/capture", transport=transport)

        with TestClient(app, raise_server_exceptions=False) as client:
            resp = client.get("/api/example")

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}
        assert len(sent) == 1
        body = json.loads(sent[0].content)
        assert body["error"]["type"] == "DemoError"
        assert body["context"]["handler"] == "bugboy.routes.example.example"

    def test_app_initialises_capture_when_enabled(self, settings, store):
        settings.capture_enabled = True
        create_app(settings=settings, store=store)
        assert capture.is_initialized()
        assert capture.endpoint == settings.capture_endpoint
