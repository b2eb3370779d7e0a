"""Read the versioned reference-data files shipped under ``catalog/data``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
SUPPORTED_VERSIONS = {"1.0"}


def load_data_file(filename: str, key: str) -> Any:
    """Return ``document[key]`` from a catalog data file.

    Raises ``ValueError`` when the file declares a version this package does
    not understand.
    """
    path = DATA_DIR / filename
    with path.open(encoding="utf-8") as fh:
        document = json.load(fh)
    version = document.get("version")
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"Unsupported catalog version {version!r} in {path.name}")
    logger.debug("Loaded %s (version %s)", path.name, version)
    return document[key]
