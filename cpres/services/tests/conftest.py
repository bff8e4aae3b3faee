"""Shared pytest fixtures for bundle service tests."""

import json
import tempfile
import zipfile
from pathlib import Path

import pytest

from cpres.services.bundle import BundleConfig, BundleState, ThemeFile


# =============================================================================
# Helpers
# =============================================================================

def write_raw_bundle(path: Path, entries: dict[str, bytes | str]) -> Path:
    """Write a ZIP with exactly the given entries (no validation).

    Used to build malformed bundles the writer would never produce.
    """
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def manifest_text(**fields) -> str:
    data = {"formatVersion": 1, "presentationId": "pres-001", "title": "Sunday Service"}
    data.update(fields)
    return json.dumps(data)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory for tests.

    Automatically cleaned up after test completes.
    """
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def raw_bundle():
    """Fixture providing write_raw_bundle()."""
    return write_raw_bundle


@pytest.fixture
def make_manifest():
    """Fixture providing manifest_text()."""
    return manifest_text


@pytest.fixture
def bundle_config():
    """Explicit config so tests never depend on the environment."""
    return BundleConfig(compression="deflated", compresslevel=6, temp_prefix=".cpres-")


@pytest.fixture
def sample_media(temp_dir):
    """A JPEG-named file and an MP3-named file with distinct bytes."""
    source_dir = temp_dir / "sources"
    source_dir.mkdir()
    image = source_dir / "a.jpg"
    image.write_bytes(b"\xff\xd8\xff\xe0" + bytes(range(256)) * 4)
    audio = source_dir / "b.mp3"
    audio.write_bytes(b"ID3\x04" + b"\x00\x11\x22" * 500)
    return {"image": image, "audio": audio}


@pytest.fixture
def sample_state():
    """BundleState with two themes and no media."""
    return BundleState(
        manifest=manifest_text(),
        slides='{"slides": [{"id": "s1", "lines": ["Amazing grace"]}]}',
        arrangement='{"order": ["s1"], "groups": []}',
        themes=[
            ThemeFile(filename="themes/dark.json", content='{"background": "#000000"}'),
            ThemeFile(filename="themes/light.json", content='{"background": "#ffffff"}'),
        ],
    )
