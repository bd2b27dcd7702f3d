"""Tests for the configuration status endpoints."""

from __future__ import annotations

import io
import zipfile

import pytest

from tests.conftest import FakePrinter


@pytest.fixture
def printers(registry):
    registry.register(FakePrinter("Threads", "main\n", label="threads"))
    registry.register(FakePrinter("Broken", "half", error=RuntimeError("boom")))
    registry.register(FakePrinter("Text only", "plain", modes=["txt"]))


class TestStatusPage:
    @pytest.mark.asyncio
    async def test_index_page(self, client, printers):
        resp = await client.get("/api/status")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "no-cache" in resp.headers["cache-control"]
        assert "<a href='/api/status/threads.nfo'>Threads</a>" in resp.text
        assert "Text only" not in resp.text

    @pytest.mark.asyncio
    async def test_index_json(self, client, printers):
        resp = await client.get("/api/status/index")
        assert resp.status_code == 200
        body = resp.json()
        assert body["printers"] == [
            {"label": "Broken", "title": "Broken"},
            {"label": "threads", "title": "Threads"},
        ]
        assert body["text_download"].startswith("configuration-status-")
        assert body["zip_download"].endswith(".zip")


class TestTextDownload:
    @pytest.mark.asyncio
    async def test_all_printers(self, client, printers):
        resp = await client.get("/api/status/configuration-status-20261017-0900+0000.txt")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "text/plain; charset=utf-8"
        assert "*** Threads:\nmain\n" in resp.text
        assert "*** Text only:\nplain" in resp.text
        assert "Configuration Printer failed: RuntimeError: boom" in resp.text

    @pytest.mark.asyncio
    async def test_single_label(self, client, printers):
        resp = await client.get("/api/status/threads.txt")
        assert resp.status_code == 200
        assert resp.text == "*** Threads:\nmain\n\n"

    @pytest.mark.asyncio
    async def test_unknown_label_is_404(self, client, printers):
        resp = await client.get("/api/status/nothing-here.txt")
        assert resp.status_code == 404
        assert "nothing-here" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_label_without_text_mode_is_empty(self, client, registry, printers):
        registry.register(FakePrinter("Web only", "w", label="web", modes=["web"]))
        resp = await client.get("/api/status/web.txt")
        assert resp.status_code == 200
        assert resp.text == ""

    @pytest.mark.asyncio
    async def test_negative_offset_download_name(self, client, printers):
        resp = await client.get("/api/status/configuration-status-20261017-0400-0500.txt")
        assert resp.status_code == 200
        assert "*** Broken:" in resp.text
        assert "*** Threads:" in resp.text

    @pytest.mark.asyncio
    async def test_label_sharing_download_prefix(self, client, registry, printers):
        registry.register(
            FakePrinter("Extra", "x\n", label="configuration-status-extra")
        )
        resp = await client.get("/api/status/configuration-status-extra.txt")
        assert resp.status_code == 200
        assert resp.text == "*** Extra:\nx\n\n"


class TestZipDownload:
    @pytest.mark.asyncio
    async def test_archive(self, client, printers):
        resp = await client.get("/api/status/all.zip")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/zip"
        assert 'filename="all.zip"' in resp.headers["content-disposition"]

        with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
            assert zf.namelist() == ["000-Broken.txt", "001-Threads.txt"]
            assert b"Configuration Printer failed" in zf.read("000-Broken.txt")

    @pytest.mark.asyncio
    async def test_unknown_label_is_404(self, client, printers):
        resp = await client.get("/api/status/ghost.zip")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_label_without_archive_mode_is_empty(self, client, printers):
        resp = await client.get("/api/status/Text only.zip")
        assert resp.status_code == 200
        with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
            assert zf.namelist() == []


class TestDetailView:
    @pytest.mark.asyncio
    async def test_detail(self, client, printers):
        resp = await client.get("/api/status/threads.nfo")
        assert resp.status_code == 200
        assert "main<br/>" in resp.text
        assert resp.text.rstrip().endswith("</div></body></html>")

    @pytest.mark.asyncio
    async def test_detail_renders_printer_without_web_mode(self, client, printers):
        resp = await client.get("/api/status/Text only.nfo")
        assert resp.status_code == 200
        assert "<div>\nplain</div>" in resp.text

    @pytest.mark.asyncio
    async def test_detail_unknown_label_is_404(self, client, printers):
        resp = await client.get("/api/status/ghost.nfo")
        assert resp.status_code == 404
