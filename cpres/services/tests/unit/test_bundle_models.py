"""Tests for bundle models, errors and configuration.

Run with: uv run pytest cpres/services/tests/unit/test_bundle_models.py -v
"""

import os
import zipfile

import pytest
from pydantic import ValidationError

from cpres.lib import config_manager
from cpres.lib.config_manager import ConfigManager, _coerce_type
from cpres.services.bundle import (
    BundleConfig,
    BundleFormatError,
    BundleIOError,
    BundleState,
    BundleValidationError,
    ManifestParseError,
    MediaFileRef,
    MissingEntryError,
    ThemeFile,
)


# =============================================================================
# Models
# =============================================================================


class TestThemeFile:
    """Tests for ThemeFile validation."""

    @pytest.mark.unit
    def test_valid_theme(self):
        theme = ThemeFile(filename="themes/dark.json", content="{}")
        assert theme.filename == "themes/dark.json"

    @pytest.mark.unit
    @pytest.mark.parametrize("filename", ["dark.json", "themes/dark.txt", "media/themes/dark.json"])
    def test_invalid_theme_paths(self, filename):
        """Test filenames outside themes/*.json are rejected."""
        with pytest.raises(ValidationError):
            ThemeFile(filename=filename, content="{}")


class TestBundleState:
    """Tests for BundleState validation."""

    @pytest.mark.unit
    def test_duplicate_theme_names_rejected(self):
        """Test two themes with one filename cannot be saved."""
        with pytest.raises(ValidationError):
            BundleState(
                manifest="{}",
                slides="{}",
                arrangement="{}",
                themes=[
                    ThemeFile(filename="themes/a.json", content="1"),
                    ThemeFile(filename="themes/a.json", content="2"),
                ],
            )

    @pytest.mark.unit
    def test_defaults(self):
        state = BundleState(manifest="{}", slides="{}", arrangement="{}")
        assert state.themes == []
        assert state.media == []


class TestMediaFileRef:
    """Tests for MediaFileRef sources."""

    @pytest.mark.unit
    def test_filesystem_source(self):
        ref = MediaFileRef(id="abc", source_path="/tmp/a.jpg", bundle_path="media/abcdef12.jpg")

        assert not ref.is_bundle_source
        with pytest.raises(ValueError):
            ref.bundle_source

    @pytest.mark.unit
    def test_carry_over(self):
        """Test carry_over builds the bundle: sentinel."""
        ref = MediaFileRef.carry_over("abcdef12-3456", "media/abcdef12.png")

        assert ref.source_path == "bundle:media/abcdef12.png"
        assert ref.is_bundle_source
        assert ref.bundle_source == "media/abcdef12.png"


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """Tests for error kinds and messages."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "error, kind, prefix",
        [
            (BundleIOError("disk full"), "io", "IO error"),
            (BundleFormatError("bad header"), "zip", "ZIP error"),
            (ManifestParseError("line 1"), "json", "JSON error"),
            (BundleValidationError("Missing formatVersion in manifest"), "invalid_bundle", "Invalid bundle"),
            (MissingEntryError("slides.json"), "missing_file", "Missing file in bundle"),
        ],
    )
    def test_kind_and_message(self, error, kind, prefix):
        assert error.kind == kind
        assert str(error).startswith(f"{prefix}: ")
        assert error.to_dict() == {"kind": kind, "message": str(error)}

    @pytest.mark.unit
    def test_from_os_error_uses_filename(self):
        """Test the failing path is carried into the message."""
        error = BundleIOError.from_os_error(FileNotFoundError(2, "No such file or directory", "/x/a.png"))

        assert error.target == "/x/a.png"
        assert str(error) == "IO error: /x/a.png: No such file or directory"

    @pytest.mark.unit
    def test_missing_entry_detail(self):
        error = MissingEntryError("media/a.png", "no previous bundle at /tmp/x.cpres")

        assert error.entry == "media/a.png"
        assert "no previous bundle" in str(error)


# =============================================================================
# Configuration
# =============================================================================


class TestBundleConfig:
    """Tests for BundleConfig validation."""

    @pytest.mark.unit
    def test_defaults(self):
        config = BundleConfig()

        assert config.compression == "deflated"
        assert config.compresslevel == 6
        assert config.zip_compression == zipfile.ZIP_DEFLATED

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"compression": "zstd"},
            {"compresslevel": 10},
            {"compresslevel": -1},
            {"compression": "bzip2", "compresslevel": 0},
            {"temp_prefix": ""},
            {"temp_prefix": "tmp/x"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            BundleConfig(**kwargs)


class TestSettings:
    """Tests for environment-driven settings."""

    @pytest.fixture(autouse=True)
    def fresh_config_manager(self, temp_dir, monkeypatch):
        monkeypatch.setattr(config_manager, "_config_manager", ConfigManager(env_file=temp_dir / "missing.env"))
        for key in ("CPRES_COMPRESSION", "CPRES_COMPRESS_LEVEL", "CPRES_TEMP_PREFIX"):
            monkeypatch.delenv(key, raising=False)

    @pytest.mark.unit
    def test_from_settings_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CPRES_COMPRESSION", "STORED")
        monkeypatch.setenv("CPRES_COMPRESS_LEVEL", "0")
        monkeypatch.setenv("CPRES_TEMP_PREFIX", ".save-")

        config = BundleConfig.from_settings()

        assert config.compression == "stored"
        assert config.compresslevel == 0
        assert config.temp_prefix == ".save-"

    @pytest.mark.unit
    def test_from_settings_defaults(self):
        config = BundleConfig.from_settings()

        assert config == BundleConfig()

    @pytest.mark.unit
    def test_env_file_does_not_override_environment(self, temp_dir, monkeypatch):
        """Test values already in the environment beat the .env file."""
        monkeypatch.setattr(os, "environ", os.environ.copy())
        env_file = temp_dir / ".env"
        env_file.write_text("CPRES_COMPRESSION=lzma\nCPRES_TEMP_PREFIX=.fromfile-\n", encoding="utf-8")
        monkeypatch.setenv("CPRES_COMPRESSION", "stored")

        manager = ConfigManager(env_file=env_file)

        assert manager.get("CPRES_COMPRESSION") == "stored"
        assert manager.get("CPRES_TEMP_PREFIX") == ".fromfile-"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value, default, expected",
        [
            ("7", 6, 7),
            ("seven", 6, 6),
            ("true", False, True),
            ("0", False, False),
            ("deflated", "stored", "deflated"),
            ("anything", None, "anything"),
        ],
    )
    def test_coerce_type(self, value, default, expected):
        assert _coerce_type(value, default) == expected
