"""Pydantic models for bundle data structures."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BUNDLE_SOURCE_PREFIX = "bundle:"

MediaType = Literal["image", "video", "audio", "unknown"]


class ThemeFile(BaseModel):
    """Theme payload stored under themes/ inside a bundle."""

    model_config = ConfigDict(frozen=True)

    filename: str  # archive path, e.g. "themes/dark.json"
    content: str  # opaque JSON text

    @field_validator("filename")
    @classmethod
    def _check_theme_path(cls, value: str) -> str:
        if not value.startswith("themes/") or not value.endswith(".json"):
            raise ValueError(f"Theme filename must match themes/*.json, got {value!r}")
        return value


class ParsedBundle(BaseModel):
    """Read-only snapshot of an opened bundle.

    Payloads are raw JSON text; interpreting them is up to the caller.
    """

    model_config = ConfigDict(frozen=True)

    manifest: str
    slides: str
    arrangement: str
    themes: tuple[ThemeFile, ...] = ()

    def theme_filenames(self) -> list[str]:
        return [theme.filename for theme in self.themes]


class MediaEntry(BaseModel):
    """Metadata for one imported media asset.

    path is media/<first 8 chars of id>.<ext>; two ids sharing a prefix
    map to the same path.
    """

    id: str
    filename: str  # original basename, display only
    path: str
    mime: str
    sha256: str
    byte_size: int
    media_type: MediaType


class FontEntry(BaseModel):
    """Metadata for one imported font file."""

    id: str
    filename: str
    path: str  # fonts/<id8>.<ext>
    mime: str
    sha256: str
    byte_size: int
    format: str  # lower-cased extension (ttf, otf, woff, woff2)


class MediaFileRef(BaseModel):
    """Where to source one media payload when saving.

    source_path is either an absolute filesystem path or
    "bundle:<archive path>" to carry the payload over from the bundle
    being replaced.
    """

    id: str
    source_path: str
    bundle_path: str

    @property
    def is_bundle_source(self) -> bool:
        return self.source_path.startswith(BUNDLE_SOURCE_PREFIX)

    @property
    def bundle_source(self) -> str:
        """Archive path inside the previous bundle (sentinel sources only)."""
        if not self.is_bundle_source:
            raise ValueError(f"{self.source_path!r} is not a bundle source")
        return self.source_path[len(BUNDLE_SOURCE_PREFIX):]

    @classmethod
    def carry_over(cls, id: str, bundle_path: str) -> "MediaFileRef":
        """Reference a payload already stored at bundle_path in the previous bundle."""
        return cls(id=id, source_path=f"{BUNDLE_SOURCE_PREFIX}{bundle_path}", bundle_path=bundle_path)

    @classmethod
    def from_media_entry(cls, entry: MediaEntry, source_path: str) -> "MediaFileRef":
        return cls(id=entry.id, source_path=source_path, bundle_path=entry.path)


class BundleState(BaseModel):
    """Everything needed to write a bundle."""

    manifest: str
    slides: str
    arrangement: str
    themes: list[ThemeFile] = Field(default_factory=list)
    media: list[MediaFileRef] = Field(default_factory=list)

    @field_validator("themes")
    @classmethod
    def _unique_theme_filenames(cls, themes: list[ThemeFile]) -> list[ThemeFile]:
        seen: set[str] = set()
        for theme in themes:
            if theme.filename in seen:
                raise ValueError(f"Duplicate theme filename: {theme.filename}")
            seen.add(theme.filename)
        return themes
