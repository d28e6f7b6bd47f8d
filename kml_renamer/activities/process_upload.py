"""Upload processing activity — load, rename, repackage.

Handles the file container around the renamer:

- ``.kml`` uploads are the document itself.
- ``.kmz`` uploads are zip archives holding exactly one ``.kml`` member
  plus assets (icons, overlays). The member is extracted, renamed, and
  written back under the same member name; every other member is copied
  through unchanged.

The download name is ``<stem>_RENAMED.<ext>`` (see
``kml_renamer.utils.filenames``).
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kml_renamer.activities.rename_placemarks import RenameResult, list_folders, rename_kml
from kml_renamer.core.constants import (
    DEFAULT_OUTPUT_SUFFIX,
    KML_EXTENSION,
    SUPPORTED_EXTENSIONS,
    media_type_for,
)
from kml_renamer.core.exceptions import ValidationError
from kml_renamer.utils.filenames import base_filename, renamed_filename

if TYPE_CHECKING:
    from kml_renamer.activities.rename_placemarks import FolderPredicate
    from kml_renamer.models.report import FolderListing

logger = logging.getLogger("kml_renamer.activities.process_upload")

__all__ = [
    "KmlUpload",
    "ProcessedUpload",
    "UploadError",
    "list_upload_folders",
    "load_upload",
    "process_upload",
]


class UploadError(ValidationError):
    """Raised when an upload is not a usable KML or KMZ file."""

    default_stage = "upload"
    default_code = "UPLOAD_INVALID"


def _clone_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    """Copy the member metadata that survives a rewrite (name, date, mode, compression)."""
    clone = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.external_attr = info.external_attr
    clone.comment = info.comment
    return clone


@dataclass(frozen=True, slots=True)
class KmlUpload:
    """An uploaded file with its KML document located.

    Attributes:
        filename: Base name of the upload.
        data: Raw upload bytes (the archive for ``.kmz``).
        kml_bytes: The KML document bytes.
        member_name: Archive member holding the document (``""`` for ``.kml``).
    """

    filename: str
    data: bytes
    kml_bytes: bytes
    member_name: str = ""

    @property
    def is_kmz(self) -> bool:
        return bool(self.member_name)

    def repackage(self, kml: bytes) -> bytes:
        """Return the download bytes with *kml* in place of the original document."""
        if not self.is_kmz:
            return kml

        buffer = io.BytesIO()
        with (
            zipfile.ZipFile(io.BytesIO(self.data)) as source,
            zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target,
        ):
            for info in source.infolist():
                if info.filename == self.member_name:
                    target.writestr(_clone_info(info), kml, compress_type=zipfile.ZIP_DEFLATED)
                else:
                    target.writestr(_clone_info(info), source.read(info))
        return buffer.getvalue()


@dataclass(frozen=True, slots=True)
class ProcessedUpload:
    """Result of ``process_upload``: download payload plus diagnostics."""

    filename: str
    content: bytes
    media_type: str
    result: RenameResult


def load_upload(filename: str, data: bytes) -> KmlUpload:
    """Locate the KML document in an uploaded ``.kml`` or ``.kmz`` file.

    Raises:
        UploadError: If the extension is unsupported, the upload is empty,
            the archive is corrupt, or it holds zero or several ``.kml``
            members.
    """
    name = base_filename(filename)
    lowered = name.lower()
    if not lowered.endswith(SUPPORTED_EXTENSIONS):
        msg = f"Unsupported file type: {name or '<unnamed>'} (expected .kml or .kmz)"
        raise UploadError(msg)

    if not data:
        msg = f"Uploaded file is empty: {name}"
        raise UploadError(msg)

    if lowered.endswith(KML_EXTENSION):
        return KmlUpload(filename=name, data=data, kml_bytes=data)

    return _load_kmz(name, data)


def _load_kmz(name: str, data: bytes) -> KmlUpload:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            members = [
                info.filename
                for info in archive.infolist()
                if not info.is_dir() and info.filename.lower().endswith(KML_EXTENSION)
            ]
            if not members:
                msg = f"No KML file found in KMZ archive: {name}"
                raise UploadError(msg)
            if len(members) > 1:
                msg = (
                    f"KMZ archive {name} contains {len(members)} KML files "
                    f"({', '.join(members)}); expected exactly one"
                )
                raise UploadError(msg)
            kml_bytes = archive.read(members[0])
    except zipfile.BadZipFile as exc:
        msg = f"Not a valid KMZ archive: {name}: {exc}"
        raise UploadError(msg) from exc

    logger.debug("Extracted %s from %s (%d bytes)", members[0], name, len(kml_bytes))
    return KmlUpload(filename=name, data=data, kml_bytes=kml_bytes, member_name=members[0])


def process_upload(
    filename: str,
    data: bytes,
    selection: FolderPredicate,
    prefix: str,
    *,
    output_suffix: str = DEFAULT_OUTPUT_SUFFIX,
) -> ProcessedUpload:
    """Rename placemarks in an uploaded file and build the download.

    Args:
        filename: Uploaded filename; its extension selects KML or KMZ handling.
        data: Raw upload bytes.
        selection: Folder selection passed to ``rename_kml``.
        prefix: Placemark name prefix.
        output_suffix: Inserted before the extension of the download name.

    Raises:
        UploadError: If the upload cannot be opened.
        ParseError: If the KML document is malformed.
        SerializationError: If the renamed document cannot be serialized.
    """
    upload = load_upload(filename, data)
    logger.info(
        "Processing upload | file=%s | kmz=%s | bytes=%d",
        upload.filename,
        upload.is_kmz,
        len(data),
    )

    result = rename_kml(upload.kml_bytes, selection, prefix)
    if result.report.renamed_count:
        content = upload.repackage(result.to_bytes())
    else:
        content = upload.data

    download_name = renamed_filename(upload.filename, suffix=output_suffix)
    return ProcessedUpload(
        filename=download_name,
        content=content,
        media_type=media_type_for(download_name),
        result=result,
    )


def list_upload_folders(filename: str, data: bytes) -> FolderListing:
    """List the folders of an uploaded ``.kml`` or ``.kmz`` file.

    Raises:
        UploadError: If the upload cannot be opened.
        ParseError: If the KML document is malformed.
    """
    upload = load_upload(filename, data)
    return list_folders(upload.kml_bytes, source_file=upload.filename)
