"""Render dispatcher: selects printers and drives them against a writer.

One misbehaving printer never blanks the document: its failure is written
into its own section and rendering continues with the next printer.
"""

from __future__ import annotations

import html
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, TextIO
from urllib.parse import quote

from langfuse import observe

from core.config import settings
from core.langfuse_config import trace_metadata
from models.status_schemas import PrinterIndexEntry, RenderMode, StatusIndexResponse
from services.printers.descriptor import PrinterDescriptor
from services.status.errors import PrinterNotFound, PrinterRenderError, UnsupportedOperation
from services.status.printer_cache import PrinterCache
from services.status.writers import HtmlWriter, PlainTextWriter, StatusWriter, ZipWriter

logger = logging.getLogger(__name__)

FAILURE_MARKER = "Configuration Printer failed:"

_DETAIL_HEAD = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN"\n'
    '  "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">\n'
    '<html xmlns="http://www.w3.org/1999/xhtml">\n'
    "<head><title>dummy</title></head><body><div>\n"
)
_DETAIL_TAIL = "</div></body></html>\n"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def download_basename(now: datetime) -> str:
    """``configuration-status-YYYYMMDD-HHMM+ZZZZ`` for the download links."""
    return f"{settings.download_basename}-{now:%Y%m%d-%H%M%z}"


def display_date(now: datetime) -> str:
    """Long US-style timestamp, e.g. ``October 17, 2026 3:04:05 PM UTC``."""
    hour = now.hour % 12 or 12
    return f"{now:%B} {now.day}, {now:%Y} {hour}:{now:%M:%S %p %Z}".rstrip()


def info_line(writer: Any, indent: str | None, label: str | None, value: Any) -> None:
    """Write ``[indent]label = value`` followed by a line end."""
    parts = []
    if indent is not None:
        parts.append(indent)
    if label is not None:
        parts.append(f"{label} = ")
    if isinstance(value, (list, tuple, set, frozenset)):
        parts.append("[" + ", ".join(str(v) for v in value) + "]")
    else:
        parts.append(str(value))
    writer.write_line("".join(parts))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


@dataclass
class PrinterResult:
    label: str
    title: str
    error: PrinterRenderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StatusRenderer:
    def __init__(self, cache: PrinterCache, compress_level: int | None = None) -> None:
        self.cache = cache
        self.compress_level = (
            settings.zip_compress_level if compress_level is None else compress_level
        )

    def select_printers(
        self, mode: RenderMode, label: str | None = None, any_mode: bool = False
    ) -> list[PrinterDescriptor]:
        """Printers to render for ``mode``, in cache order.

        With ``label``, only that printer; PrinterNotFound if no printer has
        that label. A labelled printer that lacks ``mode`` is dropped unless
        ``any_mode`` is set.
        """
        if label is not None:
            desc = self.cache.get_printer(label)
            if desc is None:
                raise PrinterNotFound(label)
            return [desc] if any_mode or desc.supports(mode) else []
        return [desc for desc in self.cache.get_printers() if desc.supports(mode)]

    def _print_one(
        self, writer: StatusWriter, desc: PrinterDescriptor, mode: RenderMode
    ) -> PrinterResult:
        result = PrinterResult(label=desc.label, title=desc.title)
        interactive = mode is RenderMode.INTERACTIVE
        writer.begin_section(desc.title)
        if interactive:
            writer.enable_filter(desc.escape_html)
        try:
            desc.print_status(writer, mode)
        except PrinterRenderError as exc:
            result.error = exc
            writer.write_line()
            writer.write_line(f"{FAILURE_MARKER} {exc}")
            writer.write_line()
            logger.error("Configuration Printer %s failed", desc, exc_info=exc.cause)
        finally:
            if interactive:
                writer.enable_filter(False)
        writer.end_section()
        return result

    def _add_attachments(
        self, writer: StatusWriter, printers: list[PrinterDescriptor], mode: RenderMode
    ) -> None:
        if not writer.supports_attachments():
            raise UnsupportedOperation(
                f"{type(writer).__name__} cannot store attachments"
            )
        for desc in printers:
            try:
                refs = desc.get_attachments(mode)
            except Exception:
                logger.exception("Listing attachments of %s failed", desc)
                continue
            if refs is not None:
                writer.handle_attachments(desc.title, refs)

    @observe(name="status_render", capture_input=False, capture_output=False)
    def render(
        self,
        writer: StatusWriter,
        mode: RenderMode,
        label: str | None = None,
        any_mode: bool = False,
    ) -> list[PrinterResult]:
        """Render the selected printers, then attachments for archive output."""
        trace_metadata(mode.value, label)
        printers = self.select_printers(mode, label, any_mode)
        results = [self._print_one(writer, desc, mode) for desc in printers]
        writer.flush()

        if mode is RenderMode.ARCHIVE:
            self._add_attachments(writer, printers, mode)

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Rendered %d status printers as %s (%d failed)",
            len(results), mode.value, failed,
        )
        return results

    # -- complete documents --------------------------------------------------

    def render_text(self, stream: TextIO, label: str | None = None) -> list[PrinterResult]:
        writer = PlainTextWriter(stream)
        results = self.render(writer, RenderMode.FLAT, label)
        writer.flush()
        return results

    def render_archive(
        self, stream: BinaryIO, label: str | None = None
    ) -> list[PrinterResult]:
        self.select_printers(RenderMode.ARCHIVE, label)
        with zipfile.ZipFile(
            stream, "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compress_level,
        ) as archive:
            writer = ZipWriter(archive)
            try:
                return self.render(writer, RenderMode.ARCHIVE, label)
            finally:
                writer.finish()

    def render_detail(self, stream: TextIO, label: str) -> list[PrinterResult]:
        """XHTML fragment page holding one printer's interactive output."""
        self.select_printers(RenderMode.INTERACTIVE, label, any_mode=True)
        stream.write(_DETAIL_HEAD)
        writer = HtmlWriter(stream)
        results = self.render(writer, RenderMode.INTERACTIVE, label, any_mode=True)
        stream.write(_DETAIL_TAIL)
        return results

    # -- navigation ----------------------------------------------------------

    def index(self, now: datetime) -> StatusIndexResponse:
        base = download_basename(now)
        return StatusIndexResponse(
            printers=[
                PrinterIndexEntry(label=desc.label, title=desc.title)
                for desc in self.select_printers(RenderMode.INTERACTIVE)
            ],
            generated_at=now,
            text_download=f"{base}.txt",
            zip_download=f"{base}.zip",
        )

    def index_page(self, now: datetime, base_path: str = "") -> str:
        """Status line, download links and one tab per interactive printer."""
        idx = self.index(now)
        lines = [
            "<!DOCTYPE html>",
            "<html><head><meta charset=\"utf-8\"/>",
            "<title>Configuration Status</title></head><body>",
            '<p class="statline">',
            f"Date: {html.escape(display_date(now))}",
            f"<br/>Download as <a href='{base_path}{quote(idx.text_download)}'>[Single File]</a>"
            f" or as <a href='{base_path}{quote(idx.zip_download)}'>[ZIP]</a>",
            "</p>",
            "<div id='tabs'>",
            "<ul>",
        ]
        for entry in idx.printers:
            lines.append(
                f"<li><a href='{base_path}{quote(entry.label)}.nfo'>{html.escape(entry.title)}</a></li>"
            )
        lines += ["</ul>", "</div>", "</body></html>", ""]
        return "\n".join(lines)
