"""HTTP boundary for the bundle service.

Routes::

    POST /bundle          run the full pipeline, respond with the page URL
    POST /bundle-demo     publish a component demo, respond with its three URLs
    POST /compile-css     run the style compiler alone
    GET  /bundled-page    fetch a stored page by ``?id=``
    GET  /static/{name}   fetch a stored object as ``<id>.<ext>``
    GET  /health          liveness check
    OPTIONS *             CORS preflight

Every response carries the CORS headers computed from the request origin.
Failures are reported as ``{error, details, code}`` with HTTP 500; unknown
routes answer ``404 Not Found`` as plain text.

Usage::

    python -m bundle_service.server --host 0.0.0.0 --port 3001
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import urlsplit

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Config
from .errors import BundleServiceError
from .models import BundleDemoRequest, BundleRequest, CompileCssRequest
from .pipeline import BundlePipeline
from .utils import configure_logging, console, preview

logger = logging.getLogger(__name__)

CORS_METHODS = "POST, OPTIONS, GET"
CORS_HEADERS = "Content-Type"

_LOCAL_HOST_RE = re.compile(r"^(localhost|127\.0\.0\.\d+|192\.168\.\d+\.\d+|.+\.local)$")


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def is_local_origin(origin: str) -> bool:
    """Return ``True`` for localhost, 127.0.0.x, 192.168.x.x and ``*.local``."""
    try:
        hostname = urlsplit(origin).hostname
    except ValueError:
        return False
    return bool(hostname) and _LOCAL_HOST_RE.match(hostname) is not None


def cors_headers(origin: str | None, allowed_origins: list[str]) -> dict[str, str]:
    """Headers for a response to a request from *origin*.

    A disallowed or missing origin gets an empty ``Access-Control-Allow-Origin``.
    """
    allowed = bool(origin) and (origin in allowed_origins or is_local_origin(origin))
    return {
        "Access-Control-Allow-Origin": origin if allowed else "",
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Allow-Headers": CORS_HEADERS,
    }


def error_response(error: str, exc: BaseException | str, code: str) -> JSONResponse:
    return JSONResponse(
        {"error": error, "details": _details(exc), "code": code}, status_code=500
    )


def _details(exc: BaseException | str) -> str:
    if isinstance(exc, str):
        return exc
    if isinstance(exc, BundleServiceError):
        return exc.message
    if isinstance(exc, PydanticValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
    return str(exc)


async def _json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise ValueError("Request body is empty")
    return await request.json()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(config: Config | None = None, pipeline: BundlePipeline | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration; read from the environment if omitted.
        pipeline: Pipeline to serve; built from *config* if omitted.
    """
    config = config or Config.from_env()
    pipeline = pipeline or BundlePipeline.from_config(config)
    store = pipeline.store

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(config.server.log_level)
        config.ensure_directories()
        removed = await pipeline.teardown.sweep_stale(config.build.stale_project_age)
        if removed:
            logger.info("Removed %d stale project(s) from %s", len(removed), config.work_root)
        yield

    app = FastAPI(
        title="Bundle Service",
        description="Compile front-end sources into published static pages",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.pipeline = pipeline

    @app.middleware("http")
    async def apply_cors(request: Request, call_next: Any) -> Response:
        headers = cors_headers(request.headers.get("origin"), config.server.allowed_origins)
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)
        response = await call_next(request)
        response.headers.update(headers)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    # -- Routes ------------------------------------------------------------

    @app.post("/bundle")
    async def bundle(request: Request) -> Response:
        try:
            payload = await _json_body(request)
            bundle_request = BundleRequest.model_validate(payload)
            result = await pipeline.run(bundle_request)
        except Exception as exc:  # noqa: BLE001
            logger.error("Bundling error: %s", preview(_details(exc)))
            return error_response("Failed to bundle code", exc, "BUNDLE_ERROR")
        return JSONResponse({"success": True, "id": result.id, "html": result.html_url})

    @app.post("/bundle-demo")
    async def bundle_demo(request: Request) -> Response:
        try:
            payload = await _json_body(request)
            demo_request = BundleDemoRequest.model_validate(payload)
            result = await pipeline.run_demo(demo_request)
        except Exception as exc:  # noqa: BLE001
            logger.error("Demo bundling error: %s", preview(_details(exc)))
            return error_response("Failed to bundle demo", exc, "BUNDLE_DEMO_ERROR")
        return JSONResponse(
            {
                "success": True,
                "urls": {
                    "jsUrl": result.js_url,
                    "cssUrl": result.css_url,
                    "htmlUrl": result.html_url,
                },
                "bundleReady": True,
            }
        )

    @app.post("/compile-css")
    async def compile_css(request: Request) -> Response:
        try:
            payload = await _json_body(request)
            css_request = CompileCssRequest.model_validate(payload)
        except (ValueError, PydanticValidationError) as exc:
            logger.error("Request processing error: %s", preview(_details(exc)))
            return error_response("Failed to process request", exc, "REQUEST_PROCESSING_ERROR")

        try:
            css = await pipeline.compile_css(css_request)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "CSS compilation error: %s (code: %s, custom config: %s)",
                _details(exc),
                preview(css_request.code),
                preview(css_request.custom_tailwind_config),
            )
            return error_response("Failed to compile CSS", exc, "CSS_COMPILATION_ERROR")
        return JSONResponse({"css": css})

    @app.get("/bundled-page")
    async def bundled_page(request: Request) -> Response:
        try:
            page_id = request.query_params.get("id")
            if not page_id:
                raise ValueError("No ID provided")
            html = await store.load(page_id)
            if html is None:
                raise ValueError("Page not found")
        except (ValueError, BundleServiceError) as exc:
            logger.error("Error fetching bundled page: %s", _details(exc))
            return error_response("Failed to fetch bundled page", exc, "BUNDLED_PAGE_FETCH_ERROR")
        return HTMLResponse(html)

    @app.get("/static/{filename:path}")
    async def static_file(filename: str) -> Response:
        try:
            asset = await store.load_static(filename)
        except BundleServiceError as exc:
            logger.error("Error fetching static file %s: %s", filename, exc.message)
            asset = None
        if asset is None:
            return PlainTextResponse("Not Found", status_code=404)
        return Response(content=asset.body, media_type=asset.content_type)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for ``python -m bundle_service.server``."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Bundle service HTTP server")
    parser.add_argument("--host", default=None, help="Bind address (default: from configuration)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: 3001)")
    args = parser.parse_args()

    config = Config.from_env()
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    configure_logging(config.server.log_level)
    console.print(
        f"[bold cyan]Bundle service[/bold cyan] v{__version__} listening on "
        f"http://{config.server.host}:{config.server.port} "
        f"(storage: {config.storage.backend.value}, backend: {config.build.default_backend.value})"
    )
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
