"""Cached, ordered view of the currently discovered status printers.

The snapshot is rebuilt only when the discovery's change token moves.
Each rebuild happens inside one critical section and replaces the whole
tuple, so readers never observe a half-built list.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Container

from services.printers.descriptor import PrinterDescriptor
from services.status.errors import DiscoveryInitError
from services.status.titles import TitleResolver

logger = logging.getLogger(__name__)

_UNSET = object()


def assign_sort_key(title: str, taken: Container[str]) -> str:
    """Return ``title`` or the first free ``title0``, ``title1``, ... key."""
    if title not in taken:
        return title
    idx = 0
    while f"{title}{idx}" in taken:
        idx += 1
    return f"{title}{idx}"


class PrinterCache:
    def __init__(
        self,
        discovery_factory: Callable[[], Any],
        title_resolver: TitleResolver | None = None,
    ) -> None:
        self._discovery_factory = discovery_factory
        self._titles = title_resolver or TitleResolver()
        self._lock = threading.Lock()
        self._discovery: Any = None
        self._discovery_failed = False
        self._closed = False
        self._token: Any = _UNSET
        self._printers: tuple[PrinterDescriptor, ...] = ()

    def _ensure_discovery(self) -> Any:
        if self._closed:
            return None
        if self._discovery is None and not self._discovery_failed:
            try:
                self._discovery = self._discovery_factory()
            except DiscoveryInitError as exc:
                self._discovery_failed = True
                logger.error("Status printer discovery unavailable: %s", exc)
        return self._discovery

    def _rebuild(self, entries: list[Any]) -> tuple[PrinterDescriptor, ...]:
        by_key: dict[str, PrinterDescriptor] = {}
        for entry in entries:
            title = self._titles.resolve(entry.title, entry.handle)
            key = assign_sort_key(title, by_key)
            by_key[key] = PrinterDescriptor(
                handle=entry.handle,
                title=title,
                label=entry.label or "",
                modes=entry.modes,
                escape_html=entry.escape_html,
                sort_key=key,
            )

        ordered = [by_key[key] for key in sorted(by_key)]
        labels: set[str] = set()
        for desc in ordered:
            label = desc.label or desc.sort_key
            if label in labels:
                dup = label
                label = assign_sort_key(label, labels)
                logger.warning("Duplicate printer label %r renamed to %r", dup, label)
            desc.label = label
            labels.add(label)
        return tuple(ordered)

    def get_printers(self) -> tuple[PrinterDescriptor, ...]:
        """Return the current printers ordered by sort key."""
        with self._lock:
            discovery = self._ensure_discovery()
            if discovery is None:
                return self._printers

            token = discovery.current_change_token()
            if token != self._token:
                printers = self._rebuild(discovery.current_printers())
                self._printers = printers
                self._token = token
                logger.info("Status printers rebuilt: %d printers", len(printers))
            return self._printers

    def get_printer(self, label: str) -> PrinterDescriptor | None:
        for desc in self.get_printers():
            if desc.label == label:
                return desc
        return None

    def close(self) -> None:
        """Release the discovery and drop the snapshot."""
        with self._lock:
            discovery = self._discovery
            self._discovery = None
            self._closed = True
            self._token = _UNSET
            self._printers = ()
            if discovery is not None and hasattr(discovery, "close"):
                discovery.close()
