"""CLI entrypoint that rebuilds project pages when their content changes."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import logging
from pathlib import Path

from dotenv import load_dotenv

from sketchbook.content.loader import ContentError
from sketchbook.site.builder import SiteBuilder
from sketchbook.site.config import SiteSettings
from sketchbook.site.pages import PageBuildError
from sketchbook.site.watcher import ContentWatcher

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch the content directory and rebuild changed projects")
    parser.add_argument("--content-dir", default=None, help="Directory containing one folder per project")
    parser.add_argument("--output-dir", default=None, help="Directory receiving the generated JSON")
    parser.add_argument("--debounce", type=float, default=0.5, help="Debounce delay in seconds")
    return parser.parse_args(argv)


async def _run_watcher(settings: SiteSettings, debounce: float) -> int:
    if not settings.content_dir.is_dir():
        LOGGER.error("content-dir must exist and be a directory: %s", settings.content_dir)
        return 2

    builder = SiteBuilder.from_settings(settings)
    stats = await builder.build()
    LOGGER.info("Initial build: %d built, %d errors", stats.built, stats.errors)

    async def _on_change(project_id: str) -> None:
        try:
            page = await builder.rebuild_project(project_id)
        except (PageBuildError, ContentError) as exc:
            LOGGER.error("Rebuild failed: %s", exc)
            return
        LOGGER.info("Rebuilt %s (%d source files)", page.project.id, len(page.code))

    watcher = ContentWatcher(settings.content_dir, _on_change, debounce_seconds=debounce)
    await watcher.start()
    LOGGER.info("Watching %s (debounce %.1fs)", settings.content_dir, debounce)

    try:
        while True:
            await asyncio.sleep(1.0)
    finally:
        watcher.stop()
        LOGGER.info("Watcher stopped cleanly")


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = _parse_args(argv)
    load_dotenv()

    try:
        settings = SiteSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2

    if args.content_dir:
        settings = replace(settings, content_dir=Path(args.content_dir))
    if args.output_dir:
        settings = replace(settings, output_dir=Path(args.output_dir))

    try:
        return asyncio.run(_run_watcher(settings, float(args.debounce)))
    except KeyboardInterrupt:
        LOGGER.info("Shutdown requested")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
