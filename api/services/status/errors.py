"""Exceptions raised while discovering and rendering status printers."""

from __future__ import annotations


class StatusError(Exception):
    """Base class for configuration status errors."""


class DiscoveryInitError(StatusError):
    """The printer discovery could not be set up (e.g. malformed filter)."""


class PrinterRenderError(StatusError):
    """A status printer raised while rendering its section."""

    def __init__(self, label: str, cause: BaseException) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.label = label
        self.cause = cause


class AttachmentStreamError(StatusError):
    """An attachment could not be opened or read."""


class PrinterNotFound(StatusError):
    """No printer matches the requested label."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Invalid configuration printer: {label}")
        self.label = label


class UnsupportedOperation(StatusError, NotImplementedError):
    """The writer cannot perform the requested operation."""
