"""Tests for ArchiveCodec and content hashing.

Run with: uv run pytest cpres/services/tests/unit/test_bundle_codec.py -v
"""

import hashlib
import zipfile

import pytest

from cpres.services.bundle import (
    ArchiveCodec,
    BundleConfig,
    BundleFormatError,
    BundleIOError,
    MissingEntryError,
)
from cpres.services.bundle.hashing import new_entry_id, sha256_hex, short_id


# =============================================================================
# ArchiveCodec Tests
# =============================================================================


class TestArchiveCodecReading:
    """Tests for named-entry reads."""

    @pytest.mark.unit
    def test_names_keep_archive_order(self, temp_dir, raw_bundle, bundle_config):
        """Test names() follows write order and skips directory entries."""
        path = raw_bundle(
            temp_dir / "order.zip",
            {"z.txt": "z", "themes/": b"", "a.txt": "a", "media/x.bin": b"\x00"},
        )

        with ArchiveCodec(bundle_config).open_reader(path) as archive:
            assert archive.names() == ["z.txt", "a.txt", "media/x.bin"]

    @pytest.mark.unit
    def test_missing_entry(self, temp_dir, raw_bundle, bundle_config):
        """Test a missing name raises MissingEntryError naming it."""
        path = raw_bundle(temp_dir / "one.zip", {"present.txt": "x"})

        with ArchiveCodec(bundle_config).open_reader(path) as archive:
            with pytest.raises(MissingEntryError) as exc_info:
                archive.read_bytes("absent.txt")

        assert exc_info.value.entry == "absent.txt"
        assert str(exc_info.value) == "Missing file in bundle: absent.txt"

    @pytest.mark.unit
    def test_not_a_zip(self, temp_dir, bundle_config):
        """Test a non-archive file raises BundleFormatError."""
        path = temp_dir / "fake.cpres"
        path.write_text("definitely not a zip", encoding="utf-8")

        with pytest.raises(BundleFormatError) as exc_info:
            with ArchiveCodec(bundle_config).open_reader(path):
                pass

        assert exc_info.value.kind == "zip"
        assert "fake.cpres" in str(exc_info.value)

    @pytest.mark.unit
    def test_nonexistent_file(self, temp_dir, bundle_config):
        """Test a missing bundle file raises BundleIOError."""
        with pytest.raises(BundleIOError) as exc_info:
            with ArchiveCodec(bundle_config).open_reader(temp_dir / "nope.cpres"):
                pass

        assert "nope.cpres" in str(exc_info.value)


class TestArchiveCodecWriting:
    """Tests for sequential writes."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "compression, expected",
        [("deflated", zipfile.ZIP_DEFLATED), ("stored", zipfile.ZIP_STORED), ("bzip2", zipfile.ZIP_BZIP2)],
    )
    def test_written_entries_use_configured_compression(self, temp_dir, compression, expected):
        """Test entries are written in order with the configured method."""
        path = temp_dir / "out.zip"
        codec = ArchiveCodec(BundleConfig(compression=compression))

        with codec.open_writer(path) as archive:
            archive.write_text("manifest.json", "{}")
            archive.write_bytes("media/a.bin", b"\x01\x02")

        with zipfile.ZipFile(path) as zf:
            assert zf.namelist() == ["manifest.json", "media/a.bin"]
            assert all(info.compress_type == expected for info in zf.infolist())
            assert zf.read("media/a.bin") == b"\x01\x02"

    @pytest.mark.unit
    def test_write_file_copies_bytes(self, temp_dir, sample_media, bundle_config):
        """Test write_file streams a filesystem file into an entry."""
        path = temp_dir / "out.zip"
        source = sample_media["audio"]

        with ArchiveCodec(bundle_config).open_writer(path) as archive:
            archive.write_file("media/b.mp3", source)

        with zipfile.ZipFile(path) as zf:
            assert zf.read("media/b.mp3") == source.read_bytes()

    @pytest.mark.unit
    def test_write_file_missing_source(self, temp_dir, bundle_config):
        """Test an unreadable source raises BundleIOError naming it."""
        missing = temp_dir / "missing.png"

        with pytest.raises(BundleIOError) as exc_info:
            with ArchiveCodec(bundle_config).open_writer(temp_dir / "out.zip") as archive:
                archive.write_file("media/x.png", missing)

        assert exc_info.value.target == str(missing)


# =============================================================================
# Hashing Tests
# =============================================================================


class TestHashing:
    """Tests for digests and ids."""

    @pytest.mark.unit
    def test_sha256_is_deterministic(self, sample_media):
        """Test hashing the same bytes twice gives the same lowercase hex."""
        data = sample_media["image"].read_bytes()

        assert sha256_hex(data) == sha256_hex(data)
        assert sha256_hex(data) == hashlib.sha256(data).hexdigest()
        assert sha256_hex(data) == sha256_hex(data).lower()
        assert len(sha256_hex(data)) == 64

    @pytest.mark.unit
    def test_ids_are_unique(self):
        """Test generated ids differ and give 8 hex char prefixes."""
        ids = {new_entry_id() for _ in range(50)}

        assert len(ids) == 50
        for entry_id in ids:
            prefix = short_id(entry_id)
            assert len(prefix) == 8
            int(prefix, 16)

    @pytest.mark.unit
    def test_short_id_ignores_hyphens(self):
        """Test short ids skip hyphens and lower-case."""
        assert short_id("ABCD-EF01-2345") == "abcdef01"
