"""CLI entrypoint for the static build of all project pages."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from sketchbook.site.builder import build_site
from sketchbook.site.config import SiteSettings

LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build project page props from the content directory")
    parser.add_argument("--content-dir", default=None, help="Directory containing one folder per project")
    parser.add_argument("--output-dir", default=None, help="Directory receiving the generated JSON")
    parser.add_argument("--production", action="store_true", help="Use production image URLs")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
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
    if args.production:
        settings = replace(settings, environment="production")

    stats = asyncio.run(build_site(settings))

    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0 if stats.errors == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
