"""Shared test fixtures for the configuration status API tests."""

import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Add api/ to Python path so imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Disable Langfuse during tests so @observe traces don't pollute the dashboard
os.environ.pop("LANGFUSE_PUBLIC_KEY", None)
os.environ.pop("LANGFUSE_SECRET_KEY", None)
os.environ["LANGFUSE_ENABLED"] = "false"

from index import app  # noqa: E402
from services.printers.base import PrinterRegistry, RegistryDiscovery  # noqa: E402
from services.status.printer_cache import PrinterCache  # noqa: E402
from services.status.render import StatusRenderer  # noqa: E402
from services.status.titles import TitleResolver  # noqa: E402


class FakePrinter:
    """Configurable StatusPrinter used across the tests."""

    def __init__(
        self,
        title,
        text="",
        label=None,
        modes=None,
        escape_html=True,
        error=None,
        attachments=None,
        resource_bundles=None,
    ):
        self.title = title
        self.text = text
        self.label = label
        self.escape_html = escape_html
        self.error = error
        self.attachments = attachments
        self.calls = []
        if modes is not None:
            self.modes = modes
        if resource_bundles is not None:
            self.resource_bundles = resource_bundles

    def __repr__(self):
        return f"FakePrinter({self.title!r})"

    def print_status(self, writer, mode):
        self.calls.append(mode)
        if self.text:
            writer.write(self.text)
        if self.error is not None:
            raise self.error

    def get_attachments(self, mode):
        return self.attachments


@pytest.fixture
def registry():
    return PrinterRegistry()


@pytest.fixture
def cache(registry):
    c = PrinterCache(lambda: RegistryDiscovery(registry), TitleResolver("en"))
    yield c
    c.close()


@pytest.fixture
def renderer(cache):
    return StatusRenderer(cache, compress_level=1)


@pytest_asyncio.fixture
async def client(renderer):
    """Async test client with a renderer backed by the test registry."""
    app.state.status_renderer = renderer
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
