"""Bundle service for .cpres presentation files.

A bundle is a ZIP archive holding manifest.json, slides.json,
arrangement.json, themes/*.json and binary media/fonts.

Example usage:
    >>> from cpres.services.bundle import import_media_files, open_bundle, save_bundle
    >>>
    >>> entries = import_media_files([Path("intro.jpg")])
    >>> state = BundleState(
    ...     manifest=manifest_json,
    ...     slides=slides_json,
    ...     arrangement=arrangement_json,
    ...     media=[MediaFileRef.from_media_entry(entries[0], "/abs/intro.jpg")],
    ... )
    >>> save_bundle(Path("sunday.cpres"), state)
    >>> bundle = open_bundle(Path("sunday.cpres"))
    >>>
    >>> # Custom configuration
    >>> from cpres.services.bundle import BundleConfig, LocalBundleWriter
    >>> writer = LocalBundleWriter(BundleConfig(compression="stored"))
"""

from .models import (
    BundleState,
    FontEntry,
    MediaEntry,
    MediaFileRef,
    ParsedBundle,
    ThemeFile,
)
from .errors import (
    BundleError,
    BundleFormatError,
    BundleIOError,
    BundleValidationError,
    ManifestParseError,
    MissingEntryError,
)
from .protocols import BundleReader, BundleWriter, MediaImportService
from .config import BundleConfig
from .codec import ArchiveCodec
from .importer import (
    MediaImporter,
    create_media_importer,
    import_font_files,
    import_media_files,
)
from .reader import (
    LocalBundleReader,
    create_bundle_reader,
    list_bundle_entries,
    open_bundle,
    read_bundle_media,
)
from .writer import LocalBundleWriter, create_bundle_writer, save_bundle

__all__ = [
    # Models
    "BundleState",
    "FontEntry",
    "MediaEntry",
    "MediaFileRef",
    "ParsedBundle",
    "ThemeFile",
    # Errors
    "BundleError",
    "BundleFormatError",
    "BundleIOError",
    "BundleValidationError",
    "ManifestParseError",
    "MissingEntryError",
    # Protocols
    "BundleReader",
    "BundleWriter",
    "MediaImportService",
    # Configuration
    "BundleConfig",
    # Implementations
    "ArchiveCodec",
    "LocalBundleReader",
    "LocalBundleWriter",
    "MediaImporter",
    # Factories
    "create_bundle_reader",
    "create_bundle_writer",
    "create_media_importer",
    # Operations
    "open_bundle",
    "save_bundle",
    "read_bundle_media",
    "list_bundle_entries",
    "import_media_files",
    "import_font_files",
]
