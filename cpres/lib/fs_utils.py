"""Filesystem helpers: atomic replace, move with copy fallback, directory merge."""

import contextlib
import logging
import os
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

_IS_WINDOWS = os.name == "nt"


def replace_file_atomically(source: PathLike, destination: PathLike) -> None:
    """Move source over destination in one rename.

    Both paths must be on the same filesystem. On Windows a rename onto a
    file held open by another process can fail; in that case the
    destination is removed and the rename retried, which leaves a short
    window where neither file exists at the destination path.

    Args:
        source: Fully written file to publish
        destination: Final path

    Raises:
        OSError: If the rename (and the fallback, where applicable) fails
    """
    try:
        os.replace(source, destination)
    except PermissionError:
        if not _IS_WINDOWS or not os.path.exists(destination):
            raise
        logger.warning(f"Atomic replace of {destination} failed, removing and renaming")
        os.remove(destination)
        os.rename(source, destination)


def move_file_with_fallback(source: PathLike, destination: PathLike) -> None:
    """Move a file, copying then deleting when a rename is not possible.

    Args:
        source: File to move
        destination: Target path (parent directories are created)
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    try:
        os.rename(source, destination)
    except OSError:
        # Cross-device moves end up here
        shutil.copy2(source, destination)
        os.remove(source)


def move_dir_contents(source: PathLike, destination: PathLike) -> None:
    """Merge the contents of source into destination.

    Files replace existing targets of the same name. Subdirectories are
    merged recursively and removed from source once empty; that removal
    is best effort. A missing source is a no-op.

    Args:
        source: Directory whose contents are moved
        destination: Directory receiving the contents
    """
    source = Path(source)
    destination = Path(destination)
    if not source.exists():
        return

    destination.mkdir(parents=True, exist_ok=True)
    for entry in source.iterdir():
        target = destination / entry.name

        if entry.is_dir():
            move_dir_contents(entry, target)
            if not any(entry.iterdir()):
                with contextlib.suppress(OSError):
                    entry.rmdir()
        else:
            if target.exists():
                target.unlink()
            move_file_with_fallback(entry, target)
