"""Pydantic models and enums for the configuration status feature."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RenderMode(str, Enum):
    """Output encodings a status printer may support."""

    INTERACTIVE = "web"  # paged HTML view
    FLAT = "txt"  # single plain-text document
    ARCHIVE = "zip"  # compressed bundle with attachments


ALL_MODES: frozenset[RenderMode] = frozenset(RenderMode)


# --- API response models ---

class PrinterIndexEntry(BaseModel):
    label: str
    title: str


class StatusIndexResponse(BaseModel):
    printers: list[PrinterIndexEntry] = Field(default_factory=list)
    generated_at: datetime
    text_download: str
    zip_download: str
