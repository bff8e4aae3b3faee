"""Protocol definitions for the bundle service.

Protocols define interfaces without implementation, enabling:
- Easy fakes for tests
- Swappable implementations (local files, remote storage)
- Clear contracts between the app layer and the bundle core
"""

import os
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from .models import BundleState, FontEntry, MediaEntry, ParsedBundle

PathLike = Union[str, os.PathLike]


class BundleReader(Protocol):
    """Protocol for reading bundles."""

    def open(self, path: PathLike) -> ParsedBundle:
        """Open and validate a bundle.

        Args:
            path: Bundle file

        Returns:
            ParsedBundle snapshot
        """
        ...

    def read_media(self, bundle_path: PathLike, media_path: str) -> bytes:
        """Read one media entry.

        Args:
            bundle_path: Bundle file
            media_path: Archive path of the entry

        Returns:
            Raw bytes
        """
        ...

    def list_entries(self, bundle_path: PathLike) -> list[str]:
        """List entry names in archive order."""
        ...


class BundleWriter(Protocol):
    """Protocol for writing bundles."""

    def save(self, path: PathLike, state: BundleState, previous: Optional[PathLike] = None) -> Path:
        """Write state to path, replacing any existing bundle atomically.

        Args:
            path: Destination bundle file
            state: Content to write
            previous: Bundle that "bundle:" media sources refer to

        Returns:
            Path to the written bundle
        """
        ...


class MediaImportService(Protocol):
    """Protocol for turning external files into bundle entries."""

    def import_media(self, paths: Iterable[PathLike]) -> list[MediaEntry]:
        """Import media files, all or nothing."""
        ...

    def import_fonts(self, paths: Iterable[PathLike]) -> list[FontEntry]:
        """Import font files, all or nothing."""
        ...
