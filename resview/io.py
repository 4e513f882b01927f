"""Reading shader sources from disk."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path

logger = logging.getLogger(__name__)


def read_shader_source(path: str | PathLike[str]) -> str:
    """Return the text of a shader file, raising OSError when it cannot be read."""
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError:
        logger.error("Unable to open file %s", file_path)
        raise
    logger.info("file %s loaded", file_path)
    return data.decode("utf-8")