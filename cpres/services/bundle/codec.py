"""ZIP container access for bundles.

Entries are addressed by slash-separated path strings and passed through
byte for byte. Readers give random access by name; writers append entries
in the order they are given.
"""

import logging
import os
import shutil
import zipfile
import zlib
from contextlib import contextmanager
from typing import IO, Iterator, Optional, Union

from .config import BundleConfig
from .errors import BundleFormatError, BundleIOError, MissingEntryError

logger = logging.getLogger(__name__)

PathOrFile = Union[str, os.PathLike, IO[bytes]]


class ArchiveEntryReader:
    """Named-entry reads over an open ZipFile."""

    def __init__(self, zip_file: zipfile.ZipFile, source: str):
        self._zip = zip_file
        self.source = source

    def names(self) -> list[str]:
        """Entry names in the archive's own order (directories excluded)."""
        return [info.filename for info in self._zip.infolist() if not info.is_dir()]

    def read_bytes(self, name: str) -> bytes:
        """Read one entry to completion.

        Raises:
            MissingEntryError: If no entry has this name
            BundleFormatError: If the entry data is corrupt
        """
        try:
            return self._zip.read(name)
        except KeyError:
            raise MissingEntryError(name) from None
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise BundleFormatError(f"{self.source}: cannot read {name}: {e}", target=name) from e
        except OSError as e:
            raise BundleIOError.from_os_error(e, self.source) from e


class ArchiveEntryWriter:
    """Sequential named-entry writes into a new ZipFile."""

    def __init__(self, zip_file: zipfile.ZipFile, target: str, context: Optional[str] = None):
        self._zip = zip_file
        self.target = target
        self.context = context
        self.written: list[str] = []

    def write_bytes(self, name: str, data: bytes) -> None:
        """Append an entry using the archive's compression settings."""
        try:
            self._zip.writestr(name, data)
        except OSError as e:
            raise BundleIOError.from_os_error(e, self.target, self.context) from e
        self.written.append(name)

    def write_text(self, name: str, text: str) -> None:
        self.write_bytes(name, text.encode("utf-8"))

    def write_file(self, name: str, source_path: Union[str, os.PathLike]) -> None:
        """Copy a filesystem file into the archive as entry name.

        Raises:
            BundleIOError: Naming source_path if it cannot be read
        """
        try:
            src = open(source_path, "rb")
        except OSError as e:
            raise BundleIOError.from_os_error(e, str(source_path)) from e

        with src:
            try:
                with self._zip.open(name, "w") as dest:
                    shutil.copyfileobj(src, dest)
            except OSError as e:
                raise BundleIOError.from_os_error(e, str(source_path)) from e
        self.written.append(name)


class ArchiveCodec:
    """Opens bundle containers for reading or writing.

    Example:
        >>> codec = ArchiveCodec(BundleConfig())
        >>> with codec.open_reader(Path("talk.cpres")) as archive:
        ...     manifest = archive.read_bytes("manifest.json")
    """

    def __init__(self, config: BundleConfig):
        self.config = config

    @contextmanager
    def open_reader(self, path: Union[str, os.PathLike]) -> Iterator[ArchiveEntryReader]:
        """Open an existing archive for random-access reads.

        Raises:
            BundleIOError: If the file cannot be opened
            BundleFormatError: If the file is not a ZIP archive
        """
        source = str(path)
        try:
            zip_file = zipfile.ZipFile(path, "r")
        except zipfile.BadZipFile as e:
            raise BundleFormatError(f"{source}: {e}", target=source) from e
        except OSError as e:
            raise BundleIOError.from_os_error(e, source) from e

        with zip_file:
            yield ArchiveEntryReader(zip_file, source)

    @contextmanager
    def open_writer(
        self,
        target: PathOrFile,
        name: Optional[str] = None,
        context: Optional[str] = None,
    ) -> Iterator[ArchiveEntryWriter]:
        """Create a new archive; the central directory is written on exit.

        If the body raises, the archive is still closed so the underlying
        file handle is released, and the exception propagates.

        Args:
            target: Path or writable binary file object
            name: Path reported in errors instead of target's own name
            context: Extra detail appended to write errors
        """
        label = name or _describe(target)
        try:
            zip_file = zipfile.ZipFile(
                target,
                "w",
                compression=self.config.zip_compression,
                compresslevel=self.config.compresslevel,
            )
        except OSError as e:
            raise BundleIOError.from_os_error(e, label, context) from e

        writer = ArchiveEntryWriter(zip_file, label, context)
        try:
            yield writer
        except BaseException:
            try:
                zip_file.close()
            except (OSError, ValueError) as close_error:
                logger.debug(f"Ignoring error while closing failed archive: {close_error}")
            raise

        try:
            zip_file.close()
        except OSError as e:
            raise BundleIOError.from_os_error(e, label, context) from e
        logger.debug(f"Finalized {label} with {len(writer.written)} entries")


def _describe(target: PathOrFile) -> str:
    if isinstance(target, (str, os.PathLike)):
        return str(target)
    return str(getattr(target, "name", "<stream>"))
