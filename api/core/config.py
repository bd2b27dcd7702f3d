import os
from pathlib import Path

from pydantic_settings import BaseSettings

# Find local.env from project root (parent of api/)
_env_file = Path(__file__).resolve().parent.parent.parent / "local.env"


def _detect_environment() -> str:
    """Detect runtime environment: production, preview, or development."""
    vercel_env = os.environ.get("VERCEL_ENV", "")
    if vercel_env:
        return vercel_env  # "production" or "preview"
    if os.environ.get("VERCEL"):
        return "vercel-dev"
    return "development"


class Settings(BaseSettings):
    # Status plugin
    status_label: str = "config"
    download_basename: str = "configuration-status"
    default_locale: str = "en"

    # Printer discovery
    printer_filter: str = ""  # regex over printer titles, empty = all
    printer_modules: list[str] = []  # imported at startup to self-register

    # Archive output (zlib level, 1 = fastest)
    zip_compress_level: int = 1

    # Remote attachments (seconds)
    attachment_timeout: float = 10.0

    # Langfuse
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://us.cloud.langfuse.com"

    # Environment (auto-detected)
    environment: str = ""

    model_config = {"env_file": str(_env_file), "extra": "ignore"}


settings = Settings()
if not settings.environment:
    settings.environment = _detect_environment()
