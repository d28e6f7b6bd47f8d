"""Thin ingress boundary helpers for the HTTP entry points.

Turns an ``azure.functions.HttpRequest`` into plain values so that the
handlers never touch transport details:

- **read_upload** — the uploaded file, either as the raw request body
  (``?filename=`` names it) or as the ``file`` field of a
  ``multipart/form-data`` request; enforces the upload size limit.
- **build_rename_request** — upload plus selection mode, selected
  folders, and prefix, validated against ``RenamerConfig``.
- **validate_prefix** — rejects control characters and over-long prefixes.

Query parameters (raw-body uploads)::

    filename=<name>              required
    prefix=P                     optional, defaults to config
    mode=folders|aliases         optional, defaults to "folders"
    folders=["MV Poles","LV"]    JSON array, required in "folders" mode

Multipart uploads carry the same values as form fields, with ``folders``
repeated once per selected folder.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kml_renamer.activities.rename_placemarks import AliasSelection, FolderSelection
from kml_renamer.core.exceptions import ContractError, ValidationError

if TYPE_CHECKING:
    import azure.functions as func

    from kml_renamer.activities.rename_placemarks import FolderPredicate
    from kml_renamer.core.config import RenamerConfig

logger = logging.getLogger("kml_renamer.core.ingress")

_MULTIPART = "multipart/form-data"
_FILE_FIELD = "file"
_FILENAME_HEADER = "x-filename"
_MODES = ("folders", "aliases")


class UploadTooLargeError(ContractError):
    """Raised when the upload exceeds ``RenamerConfig.max_upload_bytes``."""

    default_stage = "ingress"
    default_code = "UPLOAD_TOO_LARGE"


# ---------------------------------------------------------------------------
# Request values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A file received over HTTP."""

    filename: str
    data: bytes


@dataclass(frozen=True, slots=True)
class RenameRequest:
    """Validated input for the rename endpoint.

    Attributes:
        upload: The uploaded KML/KMZ file.
        selection: Explicit folder selection or alias-table selection.
        prefix: Placemark name prefix.
        mode: ``"folders"`` or ``"aliases"``.
    """

    upload: UploadedFile
    selection: FolderPredicate
    prefix: str
    mode: str = "folders"


# ---------------------------------------------------------------------------
# Upload extraction
# ---------------------------------------------------------------------------


def _is_multipart(req: func.HttpRequest) -> bool:
    content_type = req.headers.get("content-type", "") or ""
    return content_type.lower().startswith(_MULTIPART)


def _field(req: func.HttpRequest, key: str, default: str = "") -> str:
    if _is_multipart(req):
        value = req.form.get(key)
        if value is not None:
            return str(value)
    value = req.params.get(key)
    return default if value is None else str(value)


def read_upload(req: func.HttpRequest, *, max_bytes: int) -> UploadedFile:
    """Extract the uploaded file from *req*.

    Raises:
        ContractError: If no file or filename was sent.
        UploadTooLargeError: If the file is larger than *max_bytes*.
    """
    if _is_multipart(req):
        storage = req.files.get(_FILE_FIELD)
        if storage is None:
            msg = f"Multipart request has no '{_FILE_FIELD}' field"
            raise ContractError(msg, stage="ingress", code="MISSING_FILE")
        filename = str(storage.filename or "")
        data = storage.read()
    else:
        filename = req.params.get("filename") or req.headers.get(_FILENAME_HEADER) or ""
        data = req.get_body() or b""

    if not data:
        msg = "Please select a file first"
        raise ContractError(msg, stage="ingress", code="MISSING_FILE")

    if not filename:
        msg = "Uploaded file has no name (pass ?filename=<name>.kml or .kmz)"
        raise ContractError(msg, stage="ingress", code="MISSING_FILENAME")

    if len(data) > max_bytes:
        msg = f"Upload is {len(data)} bytes, limit is {max_bytes} bytes"
        raise UploadTooLargeError(msg)

    logger.debug("Read upload | file=%s | bytes=%d", filename, len(data))
    return UploadedFile(filename=filename, data=data)


# ---------------------------------------------------------------------------
# Rename parameters
# ---------------------------------------------------------------------------


def validate_prefix(prefix: str, *, max_length: int) -> str:
    """Return *prefix* if it is usable as a placemark name prefix.

    Raises:
        ValidationError: If the prefix is too long or contains control
            characters.
    """
    if len(prefix) > max_length:
        msg = f"Prefix is {len(prefix)} characters, limit is {max_length}"
        raise ValidationError(msg, stage="ingress", code="INVALID_PREFIX")
    if any(not ch.isprintable() for ch in prefix):
        msg = f"Prefix contains control characters: {prefix!r}"
        raise ValidationError(msg, stage="ingress", code="INVALID_PREFIX")
    return prefix


def parse_folder_names(raw: str) -> list[str]:
    """Decode the ``folders`` query parameter (a JSON array of strings).

    Raises:
        ContractError: If *raw* is not a JSON array of strings.
    """
    if not raw.strip():
        return []
    try:
        parsed: Any = json.loads(raw)
    except (json.JSONDecodeError, ValueError) as exc:
        msg = f"'folders' must be a JSON array of strings: {exc}"
        raise ContractError(msg, stage="ingress", code="INVALID_FOLDERS") from exc
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        msg = f"'folders' must be a JSON array of strings, got {type(parsed).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_FOLDERS")
    return parsed


def _selected_folders(req: func.HttpRequest) -> list[str]:
    if _is_multipart(req):
        names = [str(name) for name in req.form.getlist("folders")]
        if names:
            return names
    return parse_folder_names(req.params.get("folders") or "")


def build_rename_request(req: func.HttpRequest, config: RenamerConfig) -> RenameRequest:
    """Build a validated ``RenameRequest`` from an HTTP request.

    Raises:
        ContractError: If the upload or a parameter is malformed.
        UploadTooLargeError: If the upload is too large.
        ValidationError: If no folder is selected in ``"folders"`` mode
            or the prefix is invalid.
    """
    upload = read_upload(req, max_bytes=config.max_upload_bytes)

    mode = _field(req, "mode", "folders").strip().lower() or "folders"
    if mode not in _MODES:
        msg = f"Unknown mode {mode!r} (expected one of: {', '.join(_MODES)})"
        raise ContractError(msg, stage="ingress", code="INVALID_MODE")

    prefix = validate_prefix(
        _field(req, "prefix", config.default_prefix),
        max_length=config.max_prefix_length,
    )

    selection: FolderPredicate
    if mode == "aliases":
        selection = AliasSelection()
    else:
        selection = FolderSelection.of(_selected_folders(req))
        if not selection:
            msg = "Please select at least one folder to process"
            raise ValidationError(msg, stage="ingress", code="NO_FOLDERS_SELECTED")

    return RenameRequest(upload=upload, selection=selection, prefix=prefix, mode=mode)
