"""Import external media and font files as bundle entries."""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from cpres.lib.logging_config import log_with_context

from .errors import BundleIOError
from .hashing import new_entry_id, sha256_hex, short_id
from .models import FontEntry, MediaEntry

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

MEDIA_DIR = "media"
FONTS_DIR = "fonts"
UNKNOWN_FILENAME = "unknown"
DEFAULT_MIME = "application/octet-stream"

MEDIA_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
}

FONT_MIME_TYPES = {
    "ttf": "font/ttf",
    "otf": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
}


def file_extension(path: PathLike) -> str:
    """Lower-cased extension without the dot ("" when there is none)."""
    return Path(path).suffix.lstrip(".").lower()


def display_filename(path: PathLike) -> str:
    return Path(path).name or UNKNOWN_FILENAME


def mime_for_extension(extension: str, table: Optional[dict[str, str]] = None) -> str:
    table = MEDIA_MIME_TYPES if table is None else table
    return table.get(extension.lower(), DEFAULT_MIME)


def media_type_for_mime(mime: str) -> str:
    """Coarse media class from a MIME type."""
    for prefix in ("image", "video", "audio"):
        if mime.startswith(f"{prefix}/"):
            return prefix
    return "unknown"


def bundle_entry_path(directory: str, entry_id: str, extension: str) -> str:
    """In-bundle path for an entry: <directory>/<id8>.<ext>.

    An empty extension gives <directory>/<id8> with no trailing dot.
    """
    name = short_id(entry_id)
    if extension:
        name = f"{name}.{extension}"
    return f"{directory}/{name}"


class MediaImporter:
    """Turns filesystem paths into MediaEntry / FontEntry records.

    Each batch is all or nothing: the first unreadable path aborts the
    batch and nothing is returned.

    Example:
        >>> importer = MediaImporter()
        >>> entries = importer.import_media([Path("intro.mp4")])
        >>> entries[0].path
        'media/3f2a9c1e.mp4'
    """

    def __init__(self, id_factory: Callable[[], str] = new_entry_id):
        """Initialize importer.

        Args:
            id_factory: Generator of unique entry ids (UUID strings)
        """
        self.id_factory = id_factory

    def import_media(self, paths: Iterable[PathLike]) -> list[MediaEntry]:
        """Import media files in order.

        Args:
            paths: Paths to existing regular files

        Returns:
            One MediaEntry per path, same order

        Raises:
            BundleIOError: Naming the first path that could not be read
        """
        entries = []
        for path in paths:
            entry_id = self.id_factory()
            extension = file_extension(path)
            mime = mime_for_extension(extension)
            data = _read_source(path)

            entries.append(
                MediaEntry(
                    id=entry_id,
                    filename=display_filename(path),
                    path=bundle_entry_path(MEDIA_DIR, entry_id, extension),
                    mime=mime,
                    sha256=sha256_hex(data),
                    byte_size=len(data),
                    media_type=media_type_for_mime(mime),
                )
            )

        log_with_context(logger, "info", f"Imported {len(entries)} media file(s)", media_count=len(entries))
        return entries

    def import_fonts(self, paths: Iterable[PathLike]) -> list[FontEntry]:
        """Import font files in order; same batch contract as import_media."""
        entries = []
        for path in paths:
            entry_id = self.id_factory()
            extension = file_extension(path)
            data = _read_source(path)

            entries.append(
                FontEntry(
                    id=entry_id,
                    filename=display_filename(path),
                    path=bundle_entry_path(FONTS_DIR, entry_id, extension),
                    mime=mime_for_extension(extension, FONT_MIME_TYPES),
                    sha256=sha256_hex(data),
                    byte_size=len(data),
                    format=extension,
                )
            )

        log_with_context(logger, "info", f"Imported {len(entries)} font file(s)", font_count=len(entries))
        return entries


def _read_source(path: PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        logger.warning(f"Import aborted, cannot read {path}: {e}")
        raise BundleIOError.from_os_error(e, str(path)) from e


def create_media_importer(id_factory: Optional[Callable[[], str]] = None) -> MediaImporter:
    """Factory function to create a MediaImporter.

    Args:
        id_factory: Optional custom id generator (defaults to UUID4)

    Returns:
        Configured MediaImporter instance
    """
    return MediaImporter(id_factory=id_factory or new_entry_id)


def import_media_files(paths: Iterable[PathLike]) -> list[MediaEntry]:
    """Import media files with a default importer."""
    return create_media_importer().import_media(paths)


def import_font_files(paths: Iterable[PathLike]) -> list[FontEntry]:
    """Import font files with a default importer."""
    return create_media_importer().import_fonts(paths)
