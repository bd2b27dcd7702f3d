"""Configuration status endpoints: index page, text, zip and detail views."""

from __future__ import annotations

import asyncio
import io
import logging
import re
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response

from core.config import settings
from models.status_schemas import StatusIndexResponse
from services.status.errors import PrinterNotFound
from services.status.render import StatusRenderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/status", tags=["status"])

_NO_CACHE = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _renderer(request: Request) -> StatusRenderer:
    return request.app.state.status_renderer


_STAMP = r"-\d{8}-\d{4}[+-]\d{4}"


def _label_filter(name: str) -> str | None:
    """Download names and "all" select every printer; anything else is a label."""
    if name == "all":
        return None
    if re.fullmatch(re.escape(settings.download_basename) + _STAMP, name):
        return None
    return name


def _not_found(exc: PrinterNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


async def _in_executor(func, *args):
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, func, *args)


def _now() -> datetime:
    return datetime.now().astimezone()


def _download_name(name: str) -> str:
    return re.sub(r"[^\w.+-]", "_", name)


@router.get("", response_class=HTMLResponse)
async def status_page(request: Request) -> HTMLResponse:
    """Interactive index: status line, download links and printer tabs."""
    renderer = _renderer(request)
    page = await _in_executor(renderer.index_page, _now(), f"{router.prefix}/")
    return HTMLResponse(page, headers=_NO_CACHE)


@router.get("/index", response_model=StatusIndexResponse)
async def status_index(request: Request) -> StatusIndexResponse:
    """Return (label, title) pairs of interactive printers for navigation."""
    renderer = _renderer(request)
    return await _in_executor(renderer.index, _now())


@router.get("/{name}.txt")
async def status_text(name: str, request: Request) -> Response:
    renderer = _renderer(request)
    buf = io.StringIO()
    try:
        await _in_executor(renderer.render_text, buf, _label_filter(name))
    except PrinterNotFound as exc:
        raise _not_found(exc) from exc
    return Response(buf.getvalue(), media_type="text/plain; charset=utf-8")


@router.get("/{name}.zip")
async def status_zip(name: str, request: Request) -> Response:
    renderer = _renderer(request)
    buf = io.BytesIO()
    try:
        await _in_executor(renderer.render_archive, buf, _label_filter(name))
    except PrinterNotFound as exc:
        raise _not_found(exc) from exc
    return Response(
        buf.getvalue(),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{_download_name(name)}.zip"'},
    )


@router.get("/{name}.nfo", response_class=HTMLResponse)
async def status_detail(name: str, request: Request) -> HTMLResponse:
    """Single-printer interactive view loaded into the index page tabs."""
    renderer = _renderer(request)
    buf = io.StringIO()
    try:
        await _in_executor(renderer.render_detail, buf, name)
    except PrinterNotFound as exc:
        raise _not_found(exc) from exc
    return HTMLResponse(buf.getvalue(), headers=_NO_CACHE)
