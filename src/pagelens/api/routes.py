"""API routes for PageLens."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from pagelens.browser import operations
from pagelens.browser.navigation import normalize_url
from pagelens.browser.session import SessionManager
from pagelens.browser.stealth import StealthConfiguration

router = APIRouter()

_TIMEOUT_HELP = "Navigation timeout in ms; clamped to the configured bounds."


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class InteractionRequest(BaseModel):
    """Body of ``POST /click`` and ``POST /submit``."""

    model_config = ConfigDict(extra="ignore")

    url: str = Field(..., min_length=1, description="Page to load before interacting.")
    selector: str = Field(..., min_length=1, description="CSS selector of the target element.")
    timeout: int | None = Field(None, description=_TIMEOUT_HELP)


class TypeRequest(InteractionRequest):
    """Body of ``POST /type``."""

    text: str = Field(..., min_length=1, description="Text to fill into the target element.")


def _manager(request: Request) -> SessionManager:
    return request.app.state.manager


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/config")
def config_hint() -> dict[str, str]:
    return {"status": "ok", "message": "Use POST to update config"}


@router.post("/config")
async def update_config(request: Request, options: dict[str, Any] | None = Body(None)) -> dict[str, Any]:
    """Replace the stealth configuration.  Unspecified fields revert to defaults."""
    config = StealthConfiguration.from_options(options)
    await _manager(request).configure(config)
    return {"status": "ok", "message": "Configuration updated", "options": config.to_options()}


@router.get("/elements")
async def get_elements(
    request: Request,
    url: str = Query(..., min_length=1, description="Page to extract elements from."),
    timeout: int | None = Query(None, description=_TIMEOUT_HELP),
) -> dict[str, Any]:
    """Extract interactive elements from a page."""
    target = normalize_url(url)
    result = await operations.extract(_manager(request), target, timeout_ms=timeout)
    if result.is_empty:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "No interactive elements found",
                "status": result.status,
                "finalUrl": result.final_url,
            },
        )
    payload = result.to_dict()
    return {"url": target, **payload, "count": len(result.elements)}


@router.get("/visual")
async def get_visual(
    request: Request,
    url: str = Query(..., min_length=1, description="Page to scan."),
    timeout: int | None = Query(None, description=_TIMEOUT_HELP),
) -> dict[str, Any]:
    """Vision-style scan: boxed elements, confidence scores and a screenshot."""
    target = normalize_url(url)
    result = await operations.visual_scan(_manager(request), target, timeout_ms=timeout)
    if result.blocked:
        # Content behind an anti-bot wall is withheld, screenshot included.
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Page appears to be blocked by anti-bot protection",
                "reason": result.block_reason,
                "status": result.status,
                "finalUrl": result.final_url,
                "title": result.title,
            },
        )
    if result.is_empty:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "No visible actionable elements found",
                "status": result.status,
                "finalUrl": result.final_url,
                "title": result.title,
            },
        )
    payload = result.to_dict()
    return {"url": target, **payload, "count": len(result.elements)}


@router.get("/screenshot")
async def get_screenshot(
    request: Request,
    url: str = Query(..., min_length=1, description="Page to capture."),
    timeout: int | None = Query(None, description=_TIMEOUT_HELP),
) -> dict[str, Any]:
    result = await operations.screenshot(_manager(request), normalize_url(url), timeout_ms=timeout)
    return result.to_dict()


@router.get("/state")
async def get_state(
    request: Request,
    url: str = Query(..., min_length=1, description="Page to inspect."),
    timeout: int | None = Query(None, description=_TIMEOUT_HELP),
) -> dict[str, Any]:
    result = await operations.page_state(_manager(request), normalize_url(url), timeout_ms=timeout)
    return result.to_dict()


@router.post("/click")
async def post_click(request: Request, req: InteractionRequest) -> dict[str, Any]:
    result = await operations.click(_manager(request), normalize_url(req.url), req.selector, timeout_ms=req.timeout)
    return result.to_dict()


@router.post("/type")
async def post_type(request: Request, req: TypeRequest) -> dict[str, Any]:
    result = await operations.type_text(
        _manager(request), normalize_url(req.url), req.selector, req.text, timeout_ms=req.timeout
    )
    return result.to_dict()


@router.post("/submit")
async def post_submit(request: Request, req: InteractionRequest) -> dict[str, Any]:
    result = await operations.submit(_manager(request), normalize_url(req.url), req.selector, timeout_ms=req.timeout)
    return result.to_dict()
