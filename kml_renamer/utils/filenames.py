"""Download filename generation.

The renamed file keeps the uploaded name and extension with a suffix
inserted before the extension::

    site_survey.kmz  ->  site_survey_RENAMED.kmz
    Poles.KML        ->  Poles_RENAMED.KML

Only the base name of the upload is used; any directory components a
client sends are dropped.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath, PureWindowsPath

from kml_renamer.core.constants import DEFAULT_OUTPUT_SUFFIX, KML_EXTENSION

# Characters that would break a Content-Disposition header value
_HEADER_UNSAFE_RE = re.compile(r'[\x00-\x1f"\\;]+')


def base_filename(filename: str) -> str:
    """Strip directory components (POSIX or Windows style) from *filename*."""
    return PurePosixPath(PureWindowsPath(filename).name).name.strip()


def renamed_filename(filename: str, *, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> str:
    """Return the download name for a processed upload.

    Args:
        filename: The uploaded filename (e.g. ``"farm.kmz"``).
        suffix: Inserted before the extension.

    Returns:
        ``"<stem><suffix><ext>"``; ``"document<suffix>.kml"`` when the
        upload name is empty.
    """
    name = base_filename(filename)
    if not name:
        return f"document{suffix}{KML_EXTENSION}"
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return f"{name}{suffix}"
    return f"{stem}{suffix}.{ext}"


def content_disposition(filename: str) -> str:
    """Build an ``attachment`` Content-Disposition header for *filename*."""
    safe = _HEADER_UNSAFE_RE.sub("_", filename)
    ascii_name = safe.encode("ascii", errors="replace").decode("ascii").replace("?", "_")
    return f'attachment; filename="{ascii_name}"'
