"""Configuration for the bundle service."""

import zipfile
from dataclasses import dataclass
from typing import Optional

COMPRESSION_METHODS = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}


@dataclass
class BundleConfig:
    """Settings for reading and writing bundles.

    Attributes:
        compression: Archive compression method ("stored", "deflated", "bzip2", "lzma")
        compresslevel: Level passed to the compressor (None for the library default)
        temp_prefix: Prefix of the temporary file written next to the destination
    """

    compression: str = "deflated"
    compresslevel: Optional[int] = 6
    temp_prefix: str = ".cpres-"

    def __post_init__(self):
        """Validate configuration."""
        if self.compression not in COMPRESSION_METHODS:
            raise ValueError(
                f"Invalid compression: {self.compression}. "
                f"Must be one of {', '.join(COMPRESSION_METHODS)}"
            )
        if self.compresslevel is not None and not 0 <= self.compresslevel <= 9:
            raise ValueError(f"Invalid compresslevel: {self.compresslevel}. Must be 0-9")
        if self.compression == "bzip2" and self.compresslevel == 0:
            raise ValueError("Invalid compresslevel: 0. bzip2 requires 1-9")
        if not self.temp_prefix or "/" in self.temp_prefix:
            raise ValueError(f"Invalid temp_prefix: {self.temp_prefix!r}")

    @property
    def zip_compression(self) -> int:
        return COMPRESSION_METHODS[self.compression]

    @classmethod
    def from_settings(cls) -> "BundleConfig":
        """Build a config from .env / environment / defaults."""
        from cpres.lib.config_manager import get_config_manager

        settings = get_config_manager()
        return cls(
            compression=str(settings.get("CPRES_COMPRESSION")).lower(),
            compresslevel=settings.get("CPRES_COMPRESS_LEVEL"),
            temp_prefix=settings.get("CPRES_TEMP_PREFIX"),
        )
