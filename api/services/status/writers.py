"""Writers that turn printer output into the three status encodings.

All writers share the StatusWriter contract. Printers only ever call
``write``/``write_line``; section and attachment calls come from the
renderer.
"""

from __future__ import annotations

import logging
import uuid
import zipfile
from typing import BinaryIO, Iterable, Protocol, TextIO

from services.status.attachments import AttachmentRef
from services.status.errors import AttachmentStreamError, UnsupportedOperation

logger = logging.getLogger(__name__)

_COPY_CHUNK = 64 * 1024


class StatusWriter(Protocol):
    def begin_section(self, title: str) -> None: ...

    def write(self, text: str) -> None: ...

    def write_line(self, text: str = "") -> None: ...

    def end_section(self) -> None: ...

    def supports_attachments(self) -> bool: ...

    def write_attachment(self, title: str, name: str, source: BinaryIO) -> None: ...

    def flush(self) -> None: ...


def _no_attachments(writer: object) -> UnsupportedOperation:
    return UnsupportedOperation(
        f"write_attachment not supported by this writer: {type(writer).__name__}"
    )


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class PlainTextWriter:
    def __init__(self, stream: TextIO) -> None:
        self._out = stream

    def begin_section(self, title: str) -> None:
        self._out.write(f"*** {title}:\n")

    def write(self, text: str) -> None:
        self._out.write(text)

    def write_line(self, text: str = "") -> None:
        self._out.write(text + "\n")

    def end_section(self) -> None:
        self._out.write("\n")

    def supports_attachments(self) -> bool:
        return False

    def write_attachment(self, title: str, name: str, source: BinaryIO) -> None:
        raise _no_attachments(self)

    def flush(self) -> None:
        self._out.flush()


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_ENTITIES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    " ": "&nbsp;",
}
_BREAK_CHARS = ("\r", "\n")
_BREAK = "<br/>\n"


class HtmlWriter:
    """HTML output; section boundaries come from the surrounding page.

    With the filter enabled, markup characters and spaces become entities
    and every run of CR/LF characters becomes a single ``<br/>``.
    """

    def __init__(self, stream: TextIO) -> None:
        self._out = stream
        self._filter = False
        self._last = "_"

    def enable_filter(self, enabled: bool) -> None:
        self._filter = enabled

    def begin_section(self, title: str) -> None:
        pass

    def end_section(self) -> None:
        pass

    def write(self, text: str) -> None:
        if not text:
            return
        if not self._filter:
            self._out.write(text)
            self._last = text[-1]
            return

        parts = []
        last = self._last
        for ch in text:
            if ch in _BREAK_CHARS:
                if last not in _BREAK_CHARS:
                    parts.append(_BREAK)
            else:
                parts.append(_ENTITIES.get(ch, ch))
            last = ch
        self._last = last
        self._out.write("".join(parts))

    def write_line(self, text: str = "") -> None:
        self.write(text)
        if self._filter:
            # an explicit line end always breaks, even after a CR/LF
            self._last = "_"
            self.write("\n")
        else:
            self._out.write("\n")
        self._last = "\n"

    def supports_attachments(self) -> bool:
        return False

    def write_attachment(self, title: str, name: str, source: BinaryIO) -> None:
        raise _no_attachments(self)

    def flush(self) -> None:
        self._out.flush()


# ---------------------------------------------------------------------------
# ZIP archive
# ---------------------------------------------------------------------------


class ZipWriter:
    """One ``NNN-<title>.txt`` entry per section, attachments under ``NNN-<title>/``.

    The counter is shared between sections and attachment groups.
    """

    def __init__(self, archive: zipfile.ZipFile, encoding: str = "utf-8") -> None:
        self._zip = archive
        self._encoding = encoding
        self._counter = 0
        self._entry: BinaryIO | None = None

    @property
    def counter(self) -> int:
        return self._counter

    def _open_entry(self, name: str, large: bool = False) -> BinaryIO:
        self._close_entry()
        self._entry = self._zip.open(name, mode="w", force_zip64=large)
        return self._entry

    def _close_entry(self) -> None:
        entry, self._entry = self._entry, None
        if entry is not None:
            entry.close()

    def begin_section(self, title: str) -> None:
        self._open_entry(f"{self._counter:03d}-{title}.txt")
        self._counter += 1

    def write(self, text: str) -> None:
        if self._entry is None:
            raise RuntimeError("No open archive entry; call begin_section() first")
        self._entry.write(text.encode(self._encoding))

    def write_line(self, text: str = "") -> None:
        self.write(text + "\n")

    def end_section(self) -> None:
        self.flush()
        self._close_entry()

    def supports_attachments(self) -> bool:
        return True

    def write_attachment(self, title: str, name: str, source: BinaryIO) -> None:
        """Copy ``source`` into ``NNN-<title>/<name>``. ``source`` is always closed.

        Read failures raise AttachmentStreamError; write failures propagate
        unchanged.
        """
        try:
            entry = self._open_entry(f"{self._counter:03d}-{title}/{name}", large=True)
            while True:
                try:
                    chunk = source.read(_COPY_CHUNK)
                except Exception as exc:
                    raise AttachmentStreamError(
                        f"Reading attachment {name!r} failed: {exc}"
                    ) from exc
                if not chunk:
                    break
                entry.write(chunk)
        finally:
            try:
                source.close()
            finally:
                self._close_entry()

    def handle_attachments(self, title: str, attachments: Iterable[AttachmentRef]) -> None:
        """Write one group of attachments, then advance the counter."""
        for ref in attachments:
            name = ref.name
            if not name:
                name = f"file{uuid.uuid4().hex}"
            try:
                source = ref.open()
            except Exception as exc:
                logger.warning("Cannot open attachment %r of %r: %s", ref, title, exc)
                continue
            try:
                self.write_attachment(title, name, source)
            except AttachmentStreamError as exc:
                logger.warning("Attachment %r of %r abandoned: %s", ref, title, exc)

        self._counter += 1

    def flush(self) -> None:
        if self._entry is not None:
            self._entry.flush()

    def finish(self) -> None:
        """Close any entry still open. The ZipFile itself belongs to the caller."""
        self._close_entry()
