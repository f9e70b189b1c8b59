"""Scratch file allocation for export jobs."""

from __future__ import annotations

import atexit
import logging
import shutil
import tempfile
import time
from pathlib import Path

from ..utils.io import ensure_directory, safe_filename

logger = logging.getLogger(__name__)

STORE_PREFIX = "export-"

_pending: set[Path] = set()


def _remove_pending() -> None:
    for directory in list(_pending):
        shutil.rmtree(directory, ignore_errors=True)
        _pending.discard(directory)


atexit.register(_remove_pending)


class TempFileStore:
    """Allocate files in a private scratch directory.

    Each store owns a fresh directory beneath ``root`` so jobs running side
    by side never hand out the same path. The directory is removed at
    interpreter exit unless :meth:`cleanup` runs first.
    """

    def __init__(self, root: Path | str | None = None):
        base = ensure_directory(root or Path(tempfile.gettempdir()) / "layer-export")
        self.directory = Path(tempfile.mkdtemp(prefix=STORE_PREFIX, dir=base))
        self._paths: list[Path] = []
        _pending.add(self.directory)

    def allocate(self, name: str, extension: str, *, subdir: str | None = None) -> Path:
        """Return a tracked path ``<dir>[/<subdir>]/<name><extension>``."""

        directory = self.directory
        if subdir:
            directory = ensure_directory(directory / safe_filename(subdir))
        path = directory / f"{safe_filename(name)}{extension}"
        self._paths.append(path)
        return path

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def cleanup(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)
        _pending.discard(self.directory)
        self._paths.clear()

    def __enter__(self) -> "TempFileStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()


def reap_scratch_directory(
    root: Path | str,
    *,
    max_age_seconds: float,
    now: float | None = None,
) -> int:
    """Remove store directories under ``root`` older than ``max_age_seconds``.

    Returns the number of directories removed.
    """

    root = Path(root)
    if not root.is_dir():
        return 0

    cutoff = (now if now is not None else time.time()) - max_age_seconds
    removed = 0
    for entry in root.iterdir():
        if not entry.is_dir() or not entry.name.startswith(STORE_PREFIX):
            continue
        if entry in _pending:
            continue
        try:
            modified = entry.stat().st_mtime
        except OSError:
            continue
        if modified < cutoff:
            shutil.rmtree(entry, ignore_errors=True)
            removed += 1
            logger.info("Reaped scratch directory %s", entry)
    return removed
