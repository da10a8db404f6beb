"""Runtime settings resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ENV_DATA_DIR = "SKILLPACE_DATA_DIR"
ENV_EXPORT_DIR = "SKILLPACE_EXPORT_DIR"
ENV_LOG_LEVEL = "SKILLPACE_LOG_LEVEL"


@dataclass
class Settings:
    data_dir: Path
    export_dir: Path
    log_level: str = "WARNING"


def load_settings(data_dir: str | Path | None = None) -> Settings:
    """Explicit *data_dir* wins over the environment; both default to the cwd."""
    resolved = Path(data_dir or os.environ.get(ENV_DATA_DIR) or ".")
    export_dir = Path(os.environ.get(ENV_EXPORT_DIR) or resolved)
    return Settings(
        data_dir=resolved,
        export_dir=export_dir,
        log_level=os.environ.get(ENV_LOG_LEVEL, "WARNING").upper(),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
