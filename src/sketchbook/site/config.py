"""Runtime configuration for the site build."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping


DEFAULT_CONTENT_DIR = "content"
DEFAULT_OUTPUT_DIR = ".sketchbook-build"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_IMAGE_CDN_URL = "https://ik.imagekit.io/tlnjt5rshw"
DEFAULT_REPOSITORY_URL = "https://github.com/wokwi/good-arduino-code/tree/master/content"
DEFAULT_BUILD_CONCURRENCY = 8


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_http_url(*, name: str, raw_value: str) -> str:
    if not raw_value:
        raise ValueError(f"{name} cannot be empty")
    if not (raw_value.startswith("http://") or raw_value.startswith("https://")):
        raise ValueError(f"{name} must start with http:// or https://")
    return raw_value.rstrip("/")


@dataclass(frozen=True, slots=True)
class SiteSettings:
    """Validated site build settings."""

    content_dir: Path = Path(DEFAULT_CONTENT_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    environment: str = DEFAULT_ENVIRONMENT
    image_cdn_url: str = DEFAULT_IMAGE_CDN_URL
    repository_url: str = DEFAULT_REPOSITORY_URL
    build_concurrency: int = DEFAULT_BUILD_CONCURRENCY

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SiteSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        content_dir_raw = source.get("SKETCHBOOK_CONTENT_DIR", DEFAULT_CONTENT_DIR).strip()
        if not content_dir_raw:
            raise ValueError("SKETCHBOOK_CONTENT_DIR cannot be empty")

        output_dir_raw = source.get("SKETCHBOOK_OUTPUT_DIR", DEFAULT_OUTPUT_DIR).strip()
        if not output_dir_raw:
            raise ValueError("SKETCHBOOK_OUTPUT_DIR cannot be empty")

        environment = source.get("SKETCHBOOK_ENV", DEFAULT_ENVIRONMENT).strip().lower()
        if environment not in {"development", "production"}:
            raise ValueError("SKETCHBOOK_ENV must be 'development' or 'production'")

        image_cdn_url = _parse_http_url(
            name="SKETCHBOOK_IMAGE_CDN_URL",
            raw_value=source.get("SKETCHBOOK_IMAGE_CDN_URL", DEFAULT_IMAGE_CDN_URL).strip(),
        )
        repository_url = _parse_http_url(
            name="SKETCHBOOK_REPOSITORY_URL",
            raw_value=source.get("SKETCHBOOK_REPOSITORY_URL", DEFAULT_REPOSITORY_URL).strip(),
        )

        concurrency_raw = source.get("SKETCHBOOK_BUILD_CONCURRENCY", str(DEFAULT_BUILD_CONCURRENCY)).strip()
        if not concurrency_raw:
            raise ValueError("SKETCHBOOK_BUILD_CONCURRENCY cannot be empty")
        build_concurrency = _parse_positive_int(
            name="SKETCHBOOK_BUILD_CONCURRENCY",
            raw_value=concurrency_raw,
            minimum=1,
        )

        return cls(
            content_dir=Path(content_dir_raw),
            output_dir=Path(output_dir_raw),
            environment=environment,
            image_cdn_url=image_cdn_url,
            repository_url=repository_url,
            build_concurrency=build_concurrency,
        )
