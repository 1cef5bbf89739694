"""HTTP transport for the waste-scan handler.

Run with:
    python -m uvicorn recyclebud_scan.server:app --port 8080
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.handler import UNEXPECTED_ERROR_MESSAGE, ScanHandler
from recyclebud_scan.scanner import WasteScanner

logger = logging.getLogger("recyclebud_scan.server")

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def _cors_headers(origin: str | None, allowed: list[str]) -> dict[str, str]:
    """Access-Control-Allow-Origin for responses built outside CORSMiddleware."""
    if "*" in allowed:
        return {"Access-Control-Allow-Origin": "*"}
    if origin and origin in allowed:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


def create_app(
    config: ScanConfig | None = None,
    *,
    scanner: WasteScanner | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration. If not provided, auto-loads from env.
        scanner: Pre-built scanner (tests inject one with fake collaborators).
    """
    scanner = scanner or WasteScanner(config)
    handler = ScanHandler(scanner)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await scanner.close_async()

    app = FastAPI(title="RecycleBud Waste Scan", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=scanner.config.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # Global fallback: always return JSON, never plain text error pages.
    # This runs outside CORSMiddleware, so the CORS header is added here.
    @app.exception_handler(Exception)
    async def _global_exc_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={"error": UNEXPECTED_ERROR_MESSAGE},
            headers=_cors_headers(request.headers.get("origin"), scanner.config.cors_origins),
        )

    @app.get("/health")
    async def health() -> dict:
        """Show which collaborators are configured."""
        cfg = scanner.config
        return {
            "gateway": cfg.has_gateway,
            "identity": cfg.has_identity,
            "model": cfg.model,
        }

    async def scan_waste(request: Request) -> Response:
        """Classify the posted image for the authenticated user."""
        try:
            body = await request.json()
        except ValueError:
            body = None

        outcome = await handler.handle_async(request.headers.get("authorization"), body)

        if await request.is_disconnected():
            logger.info("Client went away before the scan finished; dropping result")
            return Response(status_code=499)

        return JSONResponse(status_code=outcome.status_code, content=outcome.body)

    app.add_api_route("/scan-waste", scan_waste, methods=["POST"])
    app.add_api_route("/functions/v1/scan-waste", scan_waste, methods=["POST"])

    return app


app = create_app()
