"""Open bundles and extract single entries."""

import json
import logging
import os
from typing import Optional, Union

from cpres.lib.logging_config import log_with_context

from .codec import ArchiveCodec, ArchiveEntryReader
from .config import BundleConfig
from .errors import BundleValidationError, ManifestParseError
from .models import ParsedBundle, ThemeFile

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

MANIFEST_ENTRY = "manifest.json"
SLIDES_ENTRY = "slides.json"
ARRANGEMENT_ENTRY = "arrangement.json"
THEMES_PREFIX = "themes/"

REQUIRED_MANIFEST_KEYS = ("formatVersion", "presentationId")


def validate_manifest(manifest: str) -> dict:
    """Parse manifest text and check the required keys.

    Args:
        manifest: Raw manifest.json text

    Returns:
        Parsed manifest object

    Raises:
        ManifestParseError: If the text is not JSON
        BundleValidationError: If it is not an object or lacks a required key
    """
    try:
        data = json.loads(manifest)
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"{MANIFEST_ENTRY}: {e}", target=MANIFEST_ENTRY) from e

    if not isinstance(data, dict):
        raise BundleValidationError(
            f"{MANIFEST_ENTRY} must be a JSON object, got {type(data).__name__}",
            target=MANIFEST_ENTRY,
        )

    for key in REQUIRED_MANIFEST_KEYS:
        if key not in data:
            raise BundleValidationError(f"Missing {key} in manifest", target=key)

    return data


def is_theme_entry(name: str) -> bool:
    return name.startswith(THEMES_PREFIX) and name.endswith(".json")


def _decode_manifest(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"{MANIFEST_ENTRY} is not UTF-8 text: {e}", target=MANIFEST_ENTRY) from e


def _decode_payload(name: str, data: bytes) -> str:
    """Decode a JSON payload entry; non-UTF-8 content is an invalid bundle."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BundleValidationError(f"{name} is not UTF-8 text: {e}", target=name) from e


class LocalBundleReader:
    """Reads .cpres bundles from the local filesystem.

    Example:
        >>> reader = LocalBundleReader(BundleConfig())
        >>> bundle = reader.open(Path("sunday.cpres"))
        >>> data = reader.read_media(Path("sunday.cpres"), "media/1a2b3c4d.jpg")
    """

    def __init__(self, config: BundleConfig):
        """Initialize local bundle reader.

        Args:
            config: Bundle configuration
        """
        self.config = config
        self.codec = ArchiveCodec(config)

    def open(self, path: PathLike) -> ParsedBundle:
        """Open and validate a bundle.

        The manifest is validated before anything else is read. Slides and
        arrangement are returned verbatim; themes are collected in archive
        order.

        Args:
            path: Bundle file

        Returns:
            ParsedBundle snapshot

        Raises:
            BundleIOError: File cannot be opened
            BundleFormatError: File is not a valid archive
            ManifestParseError: manifest.json is not UTF-8 JSON text
            BundleValidationError: manifest.json lacks a required key, or a payload is not UTF-8
            MissingEntryError: A required entry is absent
        """
        with self.codec.open_reader(path) as archive:
            manifest = _decode_manifest(archive.read_bytes(MANIFEST_ENTRY))
            validate_manifest(manifest)

            slides = _decode_payload(SLIDES_ENTRY, archive.read_bytes(SLIDES_ENTRY))
            arrangement = _decode_payload(ARRANGEMENT_ENTRY, archive.read_bytes(ARRANGEMENT_ENTRY))
            themes = self._read_themes(archive)

        log_with_context(logger, "info", f"Opened bundle {path}", bundle=str(path), themes=len(themes))
        return ParsedBundle(manifest=manifest, slides=slides, arrangement=arrangement, themes=tuple(themes))

    def _read_themes(self, archive: ArchiveEntryReader) -> list[ThemeFile]:
        themes: dict[str, ThemeFile] = {}
        for name in archive.names():
            if not is_theme_entry(name):
                continue
            if name in themes:
                logger.warning(f"Duplicate theme entry {name} in {archive.source}, keeping the last")
            themes[name] = ThemeFile(filename=name, content=_decode_payload(name, archive.read_bytes(name)))
        return list(themes.values())

    def read_media(self, bundle_path: PathLike, media_path: str) -> bytes:
        """Read one entry without touching the rest of the bundle.

        Args:
            bundle_path: Bundle file
            media_path: Archive path of the entry (e.g. "media/1a2b3c4d.png")

        Returns:
            Raw entry bytes

        Raises:
            MissingEntryError: No entry at media_path
            BundleFormatError: File is not a valid archive
        """
        with self.codec.open_reader(bundle_path) as archive:
            data = archive.read_bytes(media_path)

        logger.debug(f"Read {len(data)} bytes from {bundle_path}:{media_path}")
        return data

    def list_entries(self, bundle_path: PathLike) -> list[str]:
        """Entry names of a bundle in archive order."""
        with self.codec.open_reader(bundle_path) as archive:
            return archive.names()


def create_bundle_reader(config: Optional[BundleConfig] = None) -> LocalBundleReader:
    """Factory function to create LocalBundleReader with settings-derived defaults.

    Args:
        config: Optional explicit configuration

    Returns:
        Configured LocalBundleReader instance
    """
    return LocalBundleReader(config or BundleConfig.from_settings())


def open_bundle(path: PathLike, config: Optional[BundleConfig] = None) -> ParsedBundle:
    """Open and validate a bundle."""
    return create_bundle_reader(config).open(path)


def read_bundle_media(bundle_path: PathLike, media_path: str, config: Optional[BundleConfig] = None) -> bytes:
    """Read one media entry from a bundle."""
    return create_bundle_reader(config).read_media(bundle_path, media_path)


def list_bundle_entries(path: PathLike, config: Optional[BundleConfig] = None) -> list[str]:
    """List entry names of a bundle."""
    return create_bundle_reader(config).list_entries(path)
