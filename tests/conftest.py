"""Shared pytest fixtures for the KML Placemark Renamer test suite."""

import io
import zipfile
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


# ---------------------------------------------------------------------------
# Sample KML file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def pole_survey_kml(data_dir: Path) -> Path:
    """Folders MV_Pole (2 placemarks), Other (1), LV pole (3)."""
    return data_dir / "01_pole_survey.kml"


@pytest.fixture()
def nested_folders_kml(data_dir: Path) -> Path:
    """Route A (with nested Route A - spur) and Route B."""
    return data_dir / "02_nested_folders.kml"


@pytest.fixture()
def unnamed_folder_kml(data_dir: Path) -> Path:
    """An unnamed folder and an Additional Poles folder with a nameless placemark."""
    return data_dir / "03_unnamed_and_nameless.kml"


@pytest.fixture()
def no_folders_kml(data_dir: Path) -> Path:
    """A valid KML with a placemark but no Folder elements."""
    return data_dir / "04_no_folders.kml"


@pytest.fixture()
def malformed_kml(data_dir: Path) -> Path:
    """A KML file with unclosed tags."""
    return data_dir / "05_malformed_unclosed_tags.kml"


# ---------------------------------------------------------------------------
# KMZ helpers
# ---------------------------------------------------------------------------


def build_kmz(members: dict[str, bytes]) -> bytes:
    """Zip *members* (archive name → bytes) into KMZ bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture()
def pole_survey_kmz(pole_survey_kml: Path) -> bytes:
    """The pole survey packed as ``doc.kml`` with an icon asset."""
    return build_kmz(
        {
            "doc.kml": pole_survey_kml.read_bytes(),
            "files/pole.png": b"\x89PNG\r\n\x1a\nfake-icon",
        }
    )
