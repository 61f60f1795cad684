"""Unit tests for BundleServiceClient (bundle_service.client).

Tests cover:
- ServiceResponse defaults
- BundleServiceClient.__init__
- _from_response for JSON / text, success / error bodies
- bundle / bundle_demo / compile_css / bundled_page / static_file request shapes
- connect and timeout errors
- is_available / wait_for_health
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from bundle_service.client import BundleServiceClient, ServiceResponse


def _mock_client(response: httpx.Response | None = None, error: Exception | None = None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.request = AsyncMock(return_value=response, side_effect=error)
    mock_client.get = AsyncMock(return_value=response, side_effect=error)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


# ---------------------------------------------------------------------------
# ServiceResponse / init
# ---------------------------------------------------------------------------


class TestServiceResponse:
    @pytest.mark.unit
    def test_defaults(self):
        resp = ServiceResponse()
        assert resp.success is True
        assert resp.status_code == 0
        assert resp.data == {}
        assert resp.text == ""
        assert resp.error is None
        assert resp.code is None


class TestClientInit:
    @pytest.mark.unit
    def test_defaults(self):
        client = BundleServiceClient()
        assert client.base_url == "http://localhost:3001"
        assert client.timeout == 600

    @pytest.mark.unit
    def test_trailing_slash_stripped(self):
        assert BundleServiceClient("http://svc:8080/").base_url == "http://svc:8080"


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestFromResponse:
    @pytest.mark.unit
    def test_json_success(self):
        resp = BundleServiceClient._from_response(httpx.Response(200, json={"css": "a{}"}))
        assert resp.success is True
        assert resp.status_code == 200
        assert resp.data == {"css": "a{}"}

    @pytest.mark.unit
    def test_json_error_envelope(self):
        body = {"error": "Failed to bundle code", "details": "npm install failed", "code": "BUNDLE_ERROR"}
        resp = BundleServiceClient._from_response(httpx.Response(500, json=body))
        assert resp.success is False
        assert resp.error == "npm install failed"
        assert resp.code == "BUNDLE_ERROR"

    @pytest.mark.unit
    def test_json_error_without_details(self):
        resp = BundleServiceClient._from_response(httpx.Response(500, json={"error": "boom"}))
        assert resp.error == "boom"
        assert resp.code is None

    @pytest.mark.unit
    def test_text_success(self):
        resp = BundleServiceClient._from_response(httpx.Response(200, text="<html></html>"))
        assert resp.success is True
        assert resp.text == "<html></html>"
        assert resp.data == {}

    @pytest.mark.unit
    def test_text_error(self):
        resp = BundleServiceClient._from_response(httpx.Response(404, text="Not Found"))
        assert resp.success is False
        assert resp.status_code == 404
        assert resp.error == "Not Found"


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class TestRoutes:
    @pytest.mark.unit
    async def test_bundle(self, bundle_payload):
        mock_client = _mock_client(
            httpx.Response(200, json={"success": True, "id": "demo-1", "html": "https://cdn/x.html"})
        )
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient().bundle(bundle_payload)

        assert result.success is True
        assert result.data["html"] == "https://cdn/x.html"
        args, kwargs = mock_client.request.call_args
        assert args == ("POST", "/bundle")
        assert kwargs["json"] == bundle_payload

    @pytest.mark.unit
    async def test_bundle_demo(self, bundle_demo_payload):
        urls = {
            "jsUrl": "/static/default.js",
            "cssUrl": "/static/default.css",
            "htmlUrl": "/bundled-page?id=default",
        }
        mock_client = _mock_client(
            httpx.Response(200, json={"success": True, "urls": urls, "bundleReady": True})
        )
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient().bundle_demo(bundle_demo_payload)
        assert result.data["urls"] == urls
        args, kwargs = mock_client.request.call_args
        assert args == ("POST", "/bundle-demo")
        assert kwargs["json"] == bundle_demo_payload

    @pytest.mark.unit
    async def test_compile_css(self, compile_css_payload):
        mock_client = _mock_client(httpx.Response(200, json={"css": ".p-2{}"}))
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient().compile_css(compile_css_payload)
        assert result.data["css"] == ".p-2{}"
        assert mock_client.request.call_args[0] == ("POST", "/compile-css")

    @pytest.mark.unit
    async def test_bundled_page(self):
        mock_client = _mock_client(httpx.Response(200, html="<html>ok</html>"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient().bundled_page("demo-1")
        assert result.text == "<html>ok</html>"
        args, kwargs = mock_client.request.call_args
        assert args == ("GET", "/bundled-page")
        assert kwargs["params"] == {"id": "demo-1"}

    @pytest.mark.unit
    async def test_static_file(self):
        mock_client = _mock_client(httpx.Response(200, text="console.log(1)"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient().static_file("demo-1.js")
        assert result.text == "console.log(1)"
        assert mock_client.request.call_args[0] == ("GET", "/static/demo-1.js")

    @pytest.mark.unit
    async def test_connect_error(self):
        mock_client = _mock_client(error=httpx.ConnectError("Connection refused"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient("http://svc:1").bundle({})
        assert result.success is False
        assert result.status_code == 0
        assert "Cannot connect to bundle service at http://svc:1" in result.error

    @pytest.mark.unit
    async def test_timeout(self):
        mock_client = _mock_client(error=httpx.ReadTimeout("slow"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await BundleServiceClient(timeout=5).bundle({})
        assert result.success is False
        assert result.error == "Request to /bundle timed out after 5s."


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    @pytest.mark.unit
    async def test_available(self):
        mock_client = _mock_client(httpx.Response(200, json={"status": "ok"}))
        with patch("httpx.AsyncClient", return_value=mock_client):
            assert await BundleServiceClient().is_available() is True

    @pytest.mark.unit
    async def test_unhealthy_status(self):
        mock_client = _mock_client(httpx.Response(503, text="down"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            assert await BundleServiceClient().is_available() is False

    @pytest.mark.unit
    async def test_unreachable(self):
        mock_client = _mock_client(error=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            assert await BundleServiceClient().is_available() is False

    @pytest.mark.unit
    async def test_wait_for_health_polls(self):
        client = BundleServiceClient()
        with patch.object(client, "is_available", AsyncMock(side_effect=[False, False, True])):
            assert await client.wait_for_health(timeout=5, interval=0) is True
            assert client.is_available.await_count == 3

    @pytest.mark.unit
    async def test_wait_for_health_gives_up(self):
        client = BundleServiceClient()
        with patch.object(client, "is_available", AsyncMock(return_value=False)):
            assert await client.wait_for_health(timeout=0, interval=0) is False
