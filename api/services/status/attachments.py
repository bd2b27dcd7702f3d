"""Lazily opened binary attachments for archive output."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Callable
from urllib.parse import unquote, urlparse

import httpx

from core.config import settings

logger = logging.getLogger(__name__)


class _HttpBody(io.RawIOBase):
    """Readable wrapper over a streamed httpx response."""

    def __init__(self, client: httpx.Client, response: httpx.Response) -> None:
        self._client = client
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            self._response.close()
            self._client.close()
        super().close()


def _open_http(url: str) -> BinaryIO:
    client = httpx.Client(timeout=settings.attachment_timeout, follow_redirects=True)
    try:
        request = client.build_request("GET", url)
        response = client.send(request, stream=True)
        response.raise_for_status()
    except Exception:
        client.close()
        raise
    return io.BufferedReader(_HttpBody(client, response))


class AttachmentRef:
    """A named byte source, opened on demand.

    ``location`` is a filesystem path, a ``file://`` URL or an ``http(s)://``
    URL. Pass ``opener`` to supply the bytes some other way; the location is
    then only used to derive the name.
    """

    def __init__(
        self,
        location: str | Path,
        opener: Callable[[], BinaryIO] | None = None,
    ) -> None:
        self.location = str(location)
        self._opener = opener

    def __repr__(self) -> str:
        return f"AttachmentRef({self.location!r})"

    @property
    def path(self) -> str:
        parsed = urlparse(self.location)
        if parsed.scheme in ("http", "https", "file"):
            return unquote(parsed.path)
        return self.location

    @property
    def name(self) -> str:
        """Last path segment, or "" when the location has none."""
        path = self.path
        if not path:
            return ""
        return path[path.rfind("/") + 1:]

    def open(self) -> BinaryIO:
        if self._opener is not None:
            return self._opener()
        scheme = urlparse(self.location).scheme
        if scheme in ("http", "https"):
            return _open_http(self.location)
        return open(self.path, "rb")
