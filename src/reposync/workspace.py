"""Scratch workspace holding the source checkout during a replay."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "reposync_"


def _now_ms() -> int:
    return int(time.time() * 1000)


def choose_scratch_path(base_dir: Path | None = None) -> Path:
    """Pick a scratch directory path that does not exist yet.

    An existing path is never reused or deleted; a disambiguated name is
    chosen instead.

    Args:
        base_dir: Parent directory. Defaults to the system temp directory.

    Returns:
        A path that does not currently exist.
    """
    base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
    path = base_dir / f"{SCRATCH_PREFIX}{_now_ms()}_temp"
    if not path.exists():
        return path

    logger.warning("Scratch path already exists: %s. Choosing another name instead of removing it.", path)
    candidate = path.with_name(f"{path.name}_backup_{_now_ms()}")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}_backup_{_now_ms()}_{counter}")
        counter += 1
    return candidate


@contextmanager
def scratch_workspace(base_dir: Path | None = None) -> Iterator[Path]:
    """Create a scratch directory and remove it afterwards.

    The directory is created empty and removed on exit whether or not the
    body raised.
    """
    path = choose_scratch_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.mkdir()
    logger.debug("Created scratch workspace %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed scratch workspace %s", path)
