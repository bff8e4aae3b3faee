"""Write bundles atomically (temp file in the same directory, then rename)."""

import contextlib
import logging
import os
import tempfile
from contextlib import ExitStack
from pathlib import Path
from typing import Optional, Union

from cpres.lib.fs_utils import replace_file_atomically
from cpres.lib.logging_config import log_with_context

from .codec import ArchiveCodec, ArchiveEntryReader, ArchiveEntryWriter
from .config import BundleConfig
from .errors import BundleIOError, BundleValidationError, MissingEntryError
from .models import BundleState, MediaFileRef
from .reader import ARRANGEMENT_ENTRY, MANIFEST_ENTRY, SLIDES_ENTRY

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def resolve_media_collisions(media: list[MediaFileRef]) -> list[MediaFileRef]:
    """Collapse refs sharing a bundle_path; the last one wins.

    Short ids make two different media ids landing on the same path
    possible. Only one entry is written for that path, at the winner's
    own position in the write order.
    """
    by_path: dict[str, MediaFileRef] = {}
    for ref in media:
        existing = by_path.pop(ref.bundle_path, None)
        if existing is not None and existing.id != ref.id:
            log_with_context(
                logger,
                "warning",
                f"Media path collision at {ref.bundle_path}: {ref.id} replaces {existing.id}",
                bundle_path=ref.bundle_path,
            )
        by_path[ref.bundle_path] = ref
    return list(by_path.values())


class LocalBundleWriter:
    """Writes .cpres bundles to the local filesystem.

    The destination is either left as it was or replaced by a complete
    new bundle; a partially written archive never appears at that path.

    Media refs with a "bundle:<path>" source are copied from the previous
    bundle: the one passed as previous, otherwise the file currently at
    the destination.

    Example:
        >>> writer = LocalBundleWriter(BundleConfig())
        >>> writer.save(Path("sunday.cpres"), state)
    """

    def __init__(self, config: BundleConfig):
        """Initialize local bundle writer.

        Args:
            config: Bundle configuration (compression, temp prefix)
        """
        self.config = config
        self.codec = ArchiveCodec(config)

    def save(self, path: PathLike, state: BundleState, previous: Optional[PathLike] = None) -> Path:
        """Save a bundle atomically.

        Args:
            path: Destination bundle file
            state: Content to write
            previous: Bundle to copy "bundle:" media from (default: destination)

        Returns:
            Path to the written bundle

        Raises:
            BundleIOError: Filesystem failure (destination left untouched)
            MissingEntryError: A carried-over media entry cannot be found
            BundleValidationError: A media path clashes with a metadata entry
        """
        destination = Path(path)
        previous_path = Path(previous) if previous is not None else destination
        media = resolve_media_collisions(state.media)
        self._check_media_paths(state, media)

        parent = destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            temp_file = tempfile.NamedTemporaryFile(
                dir=parent, prefix=self.config.temp_prefix, suffix=".tmp", delete=False
            )
        except OSError as e:
            raise BundleIOError.from_os_error(e) from e

        temp_path = Path(temp_file.name)
        temp_note = f"temp file {temp_path.name}"
        try:
            with temp_file:
                with self.codec.open_writer(temp_file, name=str(destination), context=temp_note) as archive:
                    self._write_entries(archive, state, media, previous_path)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            replace_file_atomically(temp_path, destination)
        except OSError as e:
            self._discard(temp_path)
            raise BundleIOError.from_os_error(e, str(destination), temp_note) from e
        except BaseException:
            self._discard(temp_path)
            raise

        log_with_context(
            logger,
            "info",
            f"Saved bundle {destination}",
            bundle=str(destination),
            themes=len(state.themes),
            media_count=len(media),
        )
        return destination

    def _write_entries(
        self,
        archive: ArchiveEntryWriter,
        state: BundleState,
        media: list[MediaFileRef],
        previous_path: Path,
    ) -> None:
        archive.write_text(MANIFEST_ENTRY, state.manifest)
        archive.write_text(SLIDES_ENTRY, state.slides)
        archive.write_text(ARRANGEMENT_ENTRY, state.arrangement)

        for theme in state.themes:
            archive.write_text(theme.filename, theme.content)

        with ExitStack() as stack:
            previous_bundle: Optional[ArchiveEntryReader] = None
            for ref in media:
                if not ref.is_bundle_source:
                    archive.write_file(ref.bundle_path, ref.source_path)
                    continue

                if previous_bundle is None:
                    if not previous_path.is_file():
                        raise MissingEntryError(ref.bundle_source, f"no previous bundle at {previous_path}")
                    previous_bundle = stack.enter_context(self.codec.open_reader(previous_path))
                archive.write_bytes(ref.bundle_path, previous_bundle.read_bytes(ref.bundle_source))

    def _check_media_paths(self, state: BundleState, media: list[MediaFileRef]) -> None:
        reserved = {MANIFEST_ENTRY, SLIDES_ENTRY, ARRANGEMENT_ENTRY}
        reserved.update(theme.filename for theme in state.themes)
        for ref in media:
            if ref.bundle_path in reserved:
                raise BundleValidationError(
                    f"Media {ref.id} would overwrite {ref.bundle_path}", target=ref.bundle_path
                )

    def _discard(self, temp_path: Path) -> None:
        """Best-effort removal of a failed save's temp file."""
        with contextlib.suppress(OSError):
            temp_path.unlink()
        if temp_path.exists():
            logger.warning(f"Could not remove temporary file {temp_path}")


def create_bundle_writer(config: Optional[BundleConfig] = None) -> LocalBundleWriter:
    """Factory function to create LocalBundleWriter with settings-derived defaults.

    Args:
        config: Optional explicit configuration

    Returns:
        Configured LocalBundleWriter instance
    """
    return LocalBundleWriter(config or BundleConfig.from_settings())


def save_bundle(
    path: PathLike,
    state: BundleState,
    previous: Optional[PathLike] = None,
    config: Optional[BundleConfig] = None,
) -> Path:
    """Save a bundle atomically."""
    return create_bundle_writer(config).save(path, state, previous=previous)
