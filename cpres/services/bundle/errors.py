"""Error types raised by the bundle service.

Every error names the file, entry or manifest key that caused it.
"""

from typing import Optional


class BundleError(Exception):
    """Base class for bundle failures.

    Attributes:
        kind: Short tag identifying the failure class
        target: File path, entry name or key the failure refers to
    """

    kind = "bundle"
    prefix = "Bundle error"

    def __init__(self, detail: str, target: Optional[str] = None):
        self.detail = detail
        self.target = target
        super().__init__(f"{self.prefix}: {detail}")

    def to_dict(self) -> dict:
        """Serialize for callers that pass failures across a process boundary."""
        return {"kind": self.kind, "message": str(self)}


class BundleIOError(BundleError):
    """Filesystem-level read, write or rename failure."""

    kind = "io"
    prefix = "IO error"

    @classmethod
    def from_os_error(
        cls, error: OSError, path: Optional[str] = None, context: Optional[str] = None
    ) -> "BundleIOError":
        """Wrap an OSError, naming path (default: the error's filename).

        context is appended in parentheses, e.g. the temp file a save was
        writing when it failed.
        """
        path = path or error.filename
        reason = error.strerror or str(error)
        detail = f"{path}: {reason}" if path else reason
        if context:
            detail = f"{detail} ({context})"
        return cls(detail, target=str(path) if path else None)


class BundleFormatError(BundleError):
    """The container is not a readable ZIP archive."""

    kind = "zip"
    prefix = "ZIP error"


class ManifestParseError(BundleError):
    """manifest.json is not valid JSON."""

    kind = "json"
    prefix = "JSON error"


class BundleValidationError(BundleError):
    """manifest.json is well formed but lacks required content."""

    kind = "invalid_bundle"
    prefix = "Invalid bundle"


class MissingEntryError(BundleError):
    """A named entry is absent from the archive."""

    kind = "missing_file"
    prefix = "Missing file in bundle"

    def __init__(self, entry: str, detail: Optional[str] = None):
        self.entry = entry
        super().__init__(f"{entry} ({detail})" if detail else entry, target=entry)
