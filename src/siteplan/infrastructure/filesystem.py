"""Writing rendered configuration files to disk.

Everything is rendered in memory first; this module only runs once a
plan resolved cleanly and every file rendered. Writes are all or
nothing: content is staged next to each target and only moved into
place once every file staged, so a failure leaves the output directory
as it was.
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def _missing_dirs(directory: Path) -> list[Path]:
    """Directories that must be created for *directory* to exist, top-down."""
    missing: list[Path] = []
    while not directory.exists() and directory != directory.parent:
        missing.append(directory)
        directory = directory.parent
    return missing[::-1]


def _staging_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.siteplan-tmp")


def write_files(output_dir: Path, files: Iterable[tuple[str, str]]) -> list[Path]:
    """Write ``(relative_path, content)`` pairs under *output_dir*.

    Creates parent directories as needed and returns the written paths.
    Relative paths must stay inside *output_dir*.

    Raises:
        ValueError: a path escapes *output_dir*; nothing is touched.
        OSError: a directory or file could not be written; directories
            created and files staged by this call are removed again.
    """
    root = output_dir.resolve()
    pending: dict[Path, str] = {}
    for relative, content in files:
        target = (root / relative).resolve()
        if not target.is_relative_to(root):
            msg = f"Refusing to write outside {root}: {relative}"
            raise ValueError(msg)
        pending[target] = content

    created: list[Path] = []
    staged: list[Path] = []
    try:
        for target, content in pending.items():
            for directory in _missing_dirs(target.parent):
                directory.mkdir()
                created.append(directory)
            if target.parent.exists() and not target.parent.is_dir():
                msg = f"Not a directory: {target.parent}"
                raise NotADirectoryError(msg)
            if target.is_dir():
                msg = f"Is a directory: {target}"
                raise IsADirectoryError(msg)
            staging = _staging_path(target)
            staging.write_text(content, encoding="utf-8")
            staged.append(staging)
    except OSError:
        for staging in staged:
            with contextlib.suppress(OSError):
                staging.unlink()
        for directory in reversed(created):
            with contextlib.suppress(OSError):
                directory.rmdir()
        raise

    written: list[Path] = []
    for target in pending:
        os.replace(_staging_path(target), target)
        logger.debug("Wrote %s", target)
        written.append(target)
    return written
