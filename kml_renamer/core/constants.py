"""Shared constants — single source of truth.

Centralises file extensions, media types, and the download naming
convention used by the upload layer and the HTTP entry points.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# File types
# ---------------------------------------------------------------------------

KML_EXTENSION: str = ".kml"
KMZ_EXTENSION: str = ".kmz"
SUPPORTED_EXTENSIONS: tuple[str, ...] = (KML_EXTENSION, KMZ_EXTENSION)

KML_MEDIA_TYPE: str = "application/vnd.google-earth.kml+xml"
"""Media type for downloaded ``.kml`` files."""

KMZ_MEDIA_TYPE: str = "application/vnd.google-earth.kmz"
"""Media type for downloaded ``.kmz`` files."""

# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

DEFAULT_PREFIX: str = "P"
"""Placemark name prefix used when the caller does not supply one."""

DEFAULT_OUTPUT_SUFFIX: str = "_RENAMED"
"""Suffix inserted before the extension of the downloaded file."""

UNNAMED_FOLDER_LABEL: str = "Unnamed Folder"
"""Display label for folders without a ``<name>`` child."""


def media_type_for(filename: str) -> str:
    """Return the download media type for *filename* (by extension)."""
    if filename.lower().endswith(KMZ_EXTENSION):
        return KMZ_MEDIA_TYPE
    return KML_MEDIA_TYPE
