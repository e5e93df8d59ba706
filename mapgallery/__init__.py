"""
mapgallery – interactive map gallery built on folium and plotly.
Top-level package.  Exposes the project paths and the package
logger so every sub-module inherits the same settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final

__all__ = ["logger", "DATA_DIR", "INPUT_DIR", "OUTPUT_DIR", "PROJECT_ROOT"]

# ---------- paths ----------
PROJECT_ROOT: Final[Path] = Path(
    os.getenv("MAPGALLERY_HOME", Path(__file__).resolve().parent.parent)
).resolve()
DATA_DIR: Final[Path] = PROJECT_ROOT / "data"
INPUT_DIR: Final[Path] = PROJECT_ROOT / "input"
OUTPUT_DIR: Final[Path] = PROJECT_ROOT / "output"

# ---------- logging ----------
LOG_LEVEL = os.getenv("MAPGALLERY_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("mapgallery")
logger.setLevel(LOG_LEVEL)
logger.debug("Logging initialised (level=%s)", LOG_LEVEL)

# ---------- runtime self-check ----------
for _path in (DATA_DIR, INPUT_DIR, OUTPUT_DIR):
    if not _path.exists():
        try:
            _path.mkdir(parents=True, exist_ok=True)
            logger.info("Created missing directory %s", _path)
        except OSError as exc:
            logger.error("Cannot create %s – %s", _path, exc, exc_info=True)
            raise
