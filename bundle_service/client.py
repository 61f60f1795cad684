"""Async client for a running bundle service.

Wraps the HTTP routes (``/bundle``, ``/compile-css``, ``/bundled-page``,
``/health``) with timeout handling and a structured response, so callers
(the web tier and smoke scripts) never deal with raw ``httpx`` errors.

Typical usage::

    client = BundleServiceClient("http://localhost:3001")
    if await client.wait_for_health(timeout=30):
        resp = await client.bundle({"id": "demo", "files": {...}, ...})
        print(resp.data["html"])
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field


class ServiceResponse(BaseModel):
    """Structured result of one call to the service."""

    success: bool = Field(default=True, description="Whether the call succeeded")
    status_code: int = Field(default=0, description="HTTP status, 0 if no response")
    data: dict[str, Any] = Field(default_factory=dict, description="Parsed JSON body")
    text: str = Field(default="", description="Raw body for non-JSON responses")
    error: str | None = Field(default=None, description="Error message on failure")
    code: str | None = Field(default=None, description="Service error code, if any")


class BundleServiceClient:
    """Async client for the bundle service HTTP API."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout: int = 600) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _from_response(response: httpx.Response) -> ServiceResponse:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            data = response.json()
            if response.status_code >= 400:
                return ServiceResponse(
                    success=False,
                    status_code=response.status_code,
                    data=data,
                    error=data.get("details") or data.get("error"),
                    code=data.get("code"),
                )
            return ServiceResponse(status_code=response.status_code, data=data)
        if response.status_code >= 400:
            return ServiceResponse(
                success=False,
                status_code=response.status_code,
                text=response.text,
                error=response.text[:500],
            )
        return ServiceResponse(status_code=response.status_code, text=response.text)

    async def _request(self, method: str, path: str, **kwargs: Any) -> ServiceResponse:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                return self._from_response(response)
        except httpx.ConnectError:
            return ServiceResponse(
                success=False,
                error=f"Cannot connect to bundle service at {self.base_url}. Is the server running?",
            )
        except httpx.TimeoutException:
            return ServiceResponse(
                success=False,
                error=f"Request to {path} timed out after {self.timeout}s.",
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def bundle(self, payload: dict[str, Any]) -> ServiceResponse:
        """POST a bundle request; ``data["html"]`` holds the page URL on success."""
        return await self._request("POST", "/bundle", json=payload)

    async def bundle_demo(self, payload: dict[str, Any]) -> ServiceResponse:
        """POST a component demo; ``data["urls"]`` holds ``jsUrl``/``cssUrl``/``htmlUrl``."""
        return await self._request("POST", "/bundle-demo", json=payload)

    async def compile_css(self, payload: dict[str, Any]) -> ServiceResponse:
        """POST a compile-css request; ``data["css"]`` holds the stylesheet."""
        return await self._request("POST", "/compile-css", json=payload)

    async def bundled_page(self, page_id: str) -> ServiceResponse:
        """Fetch a stored page; the HTML is in ``text``."""
        return await self._request("GET", "/bundled-page", params={"id": page_id})

    async def static_file(self, filename: str) -> ServiceResponse:
        """Fetch a stored object such as ``<id>.js``."""
        return await self._request("GET", f"/static/{filename}")

    async def is_available(self) -> bool:
        """Return ``True`` if the service answers ``/health``."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def wait_for_health(self, timeout: float = 30.0, interval: float = 0.5) -> bool:
        """Poll ``/health`` until it answers or *timeout* seconds elapse."""
        deadline = time.monotonic() + timeout
        while True:
            if await self.is_available():
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(interval)
