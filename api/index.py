import sys
from pathlib import Path

# Ensure the api/ directory is on sys.path so submodule imports resolve.
_api_dir = str(Path(__file__).resolve().parent)
if _api_dir not in sys.path:
    sys.path.insert(0, _api_dir)

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import settings
from core.langfuse_config import flush_langfuse, init_langfuse
from routes.status import router as status_router
from services.printers.base import RegistryDiscovery, load_printer_modules
from services.status.printer_cache import PrinterCache
from services.status.render import StatusRenderer
from services.status.titles import TitleResolver

logger = logging.getLogger(__name__)

init_langfuse()


def build_renderer() -> StatusRenderer:
    """Wire discovery, title resolution and the printer cache together."""
    cache = PrinterCache(
        lambda: RegistryDiscovery(title_filter=settings.printer_filter),
        TitleResolver(settings.default_locale),
    )
    return StatusRenderer(cache)


@asynccontextmanager
async def lifespan(app):
    failed = load_printer_modules(settings.printer_modules)
    if failed:
        logger.warning("Printer modules not loaded: %s", ", ".join(failed))
    app.state.status_renderer = build_renderer()
    yield
    app.state.status_renderer.cache.close()
    flush_langfuse()


app = FastAPI(title="Configuration Status API", version="0.1.0", lifespan=lifespan)

app.include_router(status_router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
