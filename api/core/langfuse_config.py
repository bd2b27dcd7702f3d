"""Langfuse observability setup for the status service (v3 API)."""

import logging
import os
from typing import Optional

from langfuse import get_client

from core.config import settings

logger = logging.getLogger(__name__)

_langfuse_enabled = False


def init_langfuse() -> None:
    """Initialize Langfuse by setting the required environment variables.

    Langfuse v3 reads from env vars automatically.  We set them from our
    settings so that ``@observe()`` decorators and ``get_client()`` work.

    If keys are not configured or LANGFUSE_ENABLED=false, Langfuse is
    disabled gracefully (no error).
    """
    global _langfuse_enabled

    # Allow explicitly disabling (e.g. during tests)
    if os.environ.get("LANGFUSE_ENABLED", "").lower() == "false":
        logger.info("Langfuse explicitly disabled via LANGFUSE_ENABLED=false")
        return

    if settings.langfuse_public_key and settings.langfuse_secret_key:
        os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
        os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
        os.environ["LANGFUSE_HOST"] = settings.langfuse_base_url
        _langfuse_enabled = True
        logger.info("Langfuse enabled for status render tracing")
    else:
        logger.warning(
            "Langfuse keys not configured, render tracing disabled. "
            "Set LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY to enable."
        )


def trace_metadata(mode: str, label: Optional[str] = None) -> None:
    """Tag the current Langfuse trace with the status label, mode and environment."""
    if not _langfuse_enabled:
        return
    try:
        env = settings.environment
        client = get_client()
        client.update_current_trace(
            tags=[settings.status_label, mode, env],
            metadata={"label": label or "all", "environment": env},
        )
    except Exception as exc:
        logger.warning("Langfuse trace metadata failed: %s", exc)


def flush_langfuse() -> None:
    """Flush pending Langfuse events so they are sent to the server."""
    if not _langfuse_enabled:
        return
    try:
        get_client().flush()
    except Exception as exc:
        logger.warning("Langfuse flush failed: %s", exc)
