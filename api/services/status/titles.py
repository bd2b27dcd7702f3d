"""Resolve symbolic ("%key") printer titles against a printer's bundles."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

SYMBOLIC_PREFIX = "%"


class TitleResolver:
    def __init__(self, default_locale: str = "en") -> None:
        self.default_locale = default_locale

    def _bundle(self, handle: Any) -> dict[str, str] | None:
        bundles = getattr(handle, "resource_bundles", None) or {}
        locale = self.default_locale
        bundle = bundles.get(locale)
        if bundle is None and "_" in locale:
            bundle = bundles.get(locale.split("_", 1)[0])
        return bundle

    def resolve(self, raw_title: str, handle: Any) -> str:
        """Return the display title for ``raw_title``.

        Non-symbolic titles pass through; unknown keys resolve to the key.
        """
        if not raw_title.startswith(SYMBOLIC_PREFIX):
            return raw_title

        key = raw_title[len(SYMBOLIC_PREFIX):]
        bundle = self._bundle(handle)
        if bundle is None or key not in bundle:
            logger.debug("No %s translation for title key %r", self.default_locale, key)
            return key
        return bundle[key]
