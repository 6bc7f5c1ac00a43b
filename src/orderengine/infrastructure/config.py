"""Runtime settings, read from ``ORDERENGINE_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from orderengine.domain.exceptions import ValidationError

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

DEFAULT_DATABASE_URL = f"sqlite:///{_DATA_DIR / 'orderengine.db'}"

LOG_FORMATS = ("console", "json")


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    low_stock_threshold: int = 10
    log_level: str = "WARNING"
    log_format: str = "console"

    def __post_init__(self) -> None:
        if self.low_stock_threshold < 0:
            raise ValidationError("Low stock threshold cannot be negative")
        if self.log_format not in LOG_FORMATS:
            raise ValidationError(
                f"Unknown log format '{self.log_format}', expected one of {', '.join(LOG_FORMATS)}"
            )


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    raw_threshold = env.get("ORDERENGINE_LOW_STOCK_THRESHOLD", "10")
    try:
        threshold = int(raw_threshold)
    except ValueError:
        raise ValidationError(
            f"ORDERENGINE_LOW_STOCK_THRESHOLD must be an integer, got '{raw_threshold}'"
        ) from None

    return Settings(
        database_url=env.get("ORDERENGINE_DATABASE_URL", DEFAULT_DATABASE_URL),
        low_stock_threshold=threshold,
        log_level=env.get("ORDERENGINE_LOG_LEVEL", "WARNING").upper(),
        log_format=env.get("ORDERENGINE_LOG_FORMAT", "console").lower(),
    )
