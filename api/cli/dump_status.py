"""CLI to capture the configuration status once, as text or zip.

Usage:
    cd api && uv run python -m cli.dump_status --format zip -o status.zip
    cd api && uv run python -m cli.dump_status --label threads
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Ensure api/ is on sys.path
_api_dir = str(Path(__file__).resolve().parent.parent)
if _api_dir not in sys.path:
    sys.path.insert(0, _api_dir)

from core.config import settings
from core.langfuse_config import flush_langfuse, init_langfuse


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump the configuration status.")
    parser.add_argument("--format", choices=("txt", "zip"), default="txt")
    parser.add_argument("--label", help="render only the printer with this label")
    parser.add_argument("-o", "--output", help="output file (default: generated name, '-' for stdout)")
    parser.add_argument(
        "-m", "--module", action="append", default=[],
        help="extra printer module to import (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    init_langfuse()

    from index import build_renderer
    from models.status_schemas import RenderMode
    from services.printers.base import load_printer_modules
    from services.status.errors import PrinterNotFound
    from services.status.render import download_basename

    load_printer_modules([*settings.printer_modules, *args.module])
    renderer = build_renderer()

    mode = RenderMode.ARCHIVE if args.format == "zip" else RenderMode.FLAT
    try:
        renderer.select_printers(mode, args.label)
    except PrinterNotFound as exc:
        renderer.cache.close()
        print(f"[cli] {exc}", file=sys.stderr)
        return 2

    output = args.output or f"{download_basename(datetime.now().astimezone())}.{args.format}"
    try:
        if args.format == "zip":
            if output == "-":
                results = renderer.render_archive(sys.stdout.buffer, args.label)
            else:
                with open(output, "wb") as fh:
                    results = renderer.render_archive(fh, args.label)
        elif output == "-":
            results = renderer.render_text(sys.stdout, args.label)
        else:
            with open(output, "w", encoding="utf-8") as fh:
                results = renderer.render_text(fh, args.label)
    finally:
        renderer.cache.close()
        flush_langfuse()

    failed = [r.label for r in results if not r.ok]
    print(f"[cli] {len(results)} printers rendered to {output}", file=sys.stderr)
    if failed:
        print(f"[cli] Failed printers: {', '.join(failed)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
