"""FastAPI app for PageLens: REST API over the session manager."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from playwright.async_api import Error as PlaywrightError

from pagelens.api.routes import router
from pagelens.browser.session import SessionManager
from pagelens.exceptions import PageLensError
from pagelens.settings import get_settings

try:
    from importlib.metadata import version

    VERSION = version("pagelens")
except Exception:
    VERSION = "0.0.0"

logger = logging.getLogger(__name__)


def create_app(manager: SessionManager | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        manager: Session manager to serve requests with.  A new one is
            created on startup if omitted.  Either way it is closed on shutdown.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        application.state.manager = manager or SessionManager()
        try:
            yield
        finally:
            await application.state.manager.close()

    application = FastAPI(
        title="PageLens",
        description="Rendered web pages as structured, actionable element lists.",
        version=VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(PlaywrightError)
    async def _engine_error(request: Request, exc: PlaywrightError) -> JSONResponse:
        logger.warning("%s %s failed in browser engine: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": {"error": exc.message or str(exc)}})

    @application.exception_handler(PageLensError)
    async def _pagelens_error(request: Request, exc: PageLensError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": {"error": str(exc)}})

    application.include_router(router)
    return application


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pagelens.api.app:create_app",
        host=host or settings.api.host,
        port=port or settings.api.port,
        factory=True,
        reload=settings.debug,
    )
