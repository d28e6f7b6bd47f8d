"""HTTP response builders for the Functions entry points.

Maps the exception taxonomy onto status codes and serialises models and
downloads into ``azure.functions.HttpResponse`` objects.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import azure.functions as func

from kml_renamer.utils.filenames import content_disposition

if TYPE_CHECKING:
    from pydantic import BaseModel

    from kml_renamer.activities.process_upload import ProcessedUpload
    from kml_renamer.core.exceptions import RenamerError

_JSON = "application/json"

# Error code → HTTP status for codes that do not follow the category default
_STATUS_BY_CODE: dict[str, int] = {
    "UPLOAD_TOO_LARGE": 413,
    "EXPECTED_FOLDERS_MISSING": 422,
}

_STATUS_BY_CATEGORY: dict[str, int] = {
    "validation": 400,
    "contract": 400,
    "permanent": 500,
}


def status_for(error: RenamerError) -> int:
    """Return the HTTP status code for *error*."""
    if error.code in _STATUS_BY_CODE:
        return _STATUS_BY_CODE[error.code]
    return _STATUS_BY_CATEGORY.get(error.category, 500)


def error_response(error: RenamerError) -> func.HttpResponse:
    """Serialise *error* as a JSON error body."""
    return func.HttpResponse(
        json.dumps({"error": error.to_error_dict()}),
        status_code=status_for(error),
        mimetype=_JSON,
    )


def model_response(model: BaseModel, *, status_code: int = 200) -> func.HttpResponse:
    """Serialise a pydantic model as a JSON response."""
    return func.HttpResponse(
        model.model_dump_json(),
        status_code=status_code,
        mimetype=_JSON,
    )


def download_response(processed: ProcessedUpload) -> func.HttpResponse:
    """Return the renamed file as an attachment.

    The rename report travels in headers so the body stays the file:
    ``X-Renamed-Count`` and ``X-Rename-Report`` (ASCII-escaped JSON).
    """
    report = processed.result.report
    headers = {
        "Content-Disposition": content_disposition(processed.filename),
        "X-Renamed-Count": str(report.renamed_count),
        "X-Rename-Report": json.dumps(report.model_dump(), ensure_ascii=True),
    }
    if not report.is_complete:
        headers["X-Missing-Categories"] = json.dumps(report.missing_categories)
    return func.HttpResponse(
        processed.content,
        status_code=200,
        mimetype=processed.media_type,
        headers=headers,
    )
