"""PrinterDescriptor: one discovered printer as seen by the status renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from models.status_schemas import RenderMode
from services.status.attachments import AttachmentRef
from services.status.errors import PrinterRenderError


class _SinkGuard:
    """Writer proxy that remembers an OSError raised by the writer's sink."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer
        self.failure: OSError | None = None

    def write(self, text: str) -> None:
        try:
            self._writer.write(text)
        except OSError as exc:
            self.failure = exc
            raise

    def write_line(self, text: str = "") -> None:
        try:
            self._writer.write_line(text)
        except OSError as exc:
            self.failure = exc
            raise

    def __getattr__(self, name: str) -> Any:
        return getattr(self._writer, name)


@dataclass
class PrinterDescriptor:
    handle: Any
    title: str
    label: str
    modes: frozenset[RenderMode]
    escape_html: bool = True
    sort_key: str = ""

    def __str__(self) -> str:
        return f"{self.label} ({type(self.handle).__name__})"

    def supports(self, mode: RenderMode) -> bool:
        return mode in self.modes

    def print_status(self, writer: Any, mode: RenderMode) -> None:
        """Run the printer; anything it raises becomes PrinterRenderError.

        OSErrors from the writer's own sink propagate unchanged.
        """
        guard = _SinkGuard(writer)
        try:
            self.handle.print_status(guard, mode)
        except Exception as exc:
            if guard.failure is not None:
                raise guard.failure
            raise PrinterRenderError(self.label, exc) from exc

    def get_attachments(self, mode: RenderMode) -> list[AttachmentRef] | None:
        getter = getattr(self.handle, "get_attachments", None)
        if getter is None:
            return None
        refs = getter(mode)
        if refs is None:
            return None
        return [ref if isinstance(ref, AttachmentRef) else AttachmentRef(ref) for ref in refs]
