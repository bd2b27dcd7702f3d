"""StatusPrinter Protocol, self-registration registry and discovery."""

from __future__ import annotations

import importlib
import logging
import re
import threading
from typing import Any, Iterable, NamedTuple, Protocol, runtime_checkable

from models.status_schemas import ALL_MODES, RenderMode
from services.status.errors import DiscoveryInitError

logger = logging.getLogger(__name__)


@runtime_checkable
class StatusPrinter(Protocol):
    """A source of diagnostic text.

    Optional attributes read by discovery: ``label`` (str), ``modes``
    (iterable of RenderMode or mode strings), ``escape_html`` (bool),
    ``resource_bundles`` (locale -> key -> text) and a
    ``get_attachments(mode)`` method returning AttachmentRefs or None.
    """

    title: str

    def print_status(self, writer: Any, mode: RenderMode) -> None: ...


class DiscoveredPrinter(NamedTuple):
    handle: Any
    title: str
    label: str | None
    modes: frozenset[RenderMode]
    escape_html: bool


class PrinterRegistry:
    """Live, mutable set of printers. ``version`` changes on every mutation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._printers: list[Any] = []
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def register(self, printer: Any) -> None:
        if not isinstance(printer, StatusPrinter):
            raise TypeError(f"{printer!r} does not implement StatusPrinter")
        with self._lock:
            self._printers.append(printer)
            self._version += 1
        logger.debug("Registered status printer %r", printer.title)

    def unregister(self, printer: Any) -> bool:
        with self._lock:
            for i, registered in enumerate(self._printers):
                if registered is printer:
                    del self._printers[i]
                    self._version += 1
                    return True
        return False

    def clear(self) -> None:
        with self._lock:
            self._printers.clear()
            self._version += 1

    def snapshot(self) -> tuple[int, list[Any]]:
        """Return (version, printers) read under one lock."""
        with self._lock:
            return self._version, list(self._printers)


PRINTER_REGISTRY = PrinterRegistry()


def register_printer(printer: StatusPrinter) -> None:
    """Register a printer instance. Usually called at import time."""
    PRINTER_REGISTRY.register(printer)


def unregister_printer(printer: StatusPrinter) -> bool:
    return PRINTER_REGISTRY.unregister(printer)


def load_printer_modules(names: Iterable[str]) -> list[str]:
    """Import modules that register printers. Returns the names that failed."""
    failed = []
    for name in names:
        try:
            importlib.import_module(name)
        except Exception as exc:
            logger.error("Failed to load printer module %s: %s", name, exc)
            failed.append(name)
    return failed


def _normalize_modes(raw: Any) -> frozenset[RenderMode]:
    if raw is None:
        return ALL_MODES
    if isinstance(raw, (str, RenderMode)):
        raw = [raw]
    modes = set()
    for mode in raw:
        try:
            modes.add(RenderMode(mode))
        except ValueError:
            logger.warning("Ignoring unknown render mode %r", mode)
    return frozenset(modes)


def describe(printer: Any) -> DiscoveredPrinter:
    """Read the discovery attributes off a printer handle."""
    return DiscoveredPrinter(
        handle=printer,
        title=str(printer.title),
        label=getattr(printer, "label", None) or None,
        modes=_normalize_modes(getattr(printer, "modes", None)),
        escape_html=bool(getattr(printer, "escape_html", True)),
    )


class RegistryDiscovery:
    """Discovery collaborator backed by a PrinterRegistry.

    ``title_filter`` is a regular expression matched against raw printer
    titles; an invalid expression raises DiscoveryInitError.
    """

    def __init__(
        self,
        registry: PrinterRegistry | None = None,
        title_filter: str = "",
    ) -> None:
        self._registry = registry if registry is not None else PRINTER_REGISTRY
        try:
            self._filter = re.compile(title_filter) if title_filter else None
        except re.error as exc:
            raise DiscoveryInitError(
                f"Invalid printer filter {title_filter!r}: {exc}"
            ) from exc
        self._closed = False

    def current_change_token(self) -> int:
        return self._registry.version

    def current_printers(self) -> list[DiscoveredPrinter]:
        if self._closed:
            return []
        _, printers = self._registry.snapshot()
        found = []
        for printer in printers:
            entry = describe(printer)
            if self._filter is not None and not self._filter.search(entry.title):
                continue
            found.append(entry)
        return found

    def close(self) -> None:
        self._closed = True
