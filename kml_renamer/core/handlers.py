"""HTTP handlers behind the Functions routes.

Each handler takes the raw request and the loaded configuration and
always returns an ``HttpResponse`` for domain errors. Unexpected
exceptions are logged and re-raised so the Functions host records them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_renamer.activities.process_upload import list_upload_folders, process_upload
from kml_renamer.core.exceptions import RenamerError
from kml_renamer.core.ingress import build_rename_request, read_upload
from kml_renamer.core.responses import download_response, error_response, model_response

if TYPE_CHECKING:
    import azure.functions as func

    from kml_renamer.core.config import RenamerConfig

logger = logging.getLogger("kml_renamer.core.handlers")


def handle_list_folders(req: func.HttpRequest, config: RenamerConfig) -> func.HttpResponse:
    """``POST /api/folders`` — list the folders of an uploaded file."""
    try:
        upload = read_upload(req, max_bytes=config.max_upload_bytes)
        listing = list_upload_folders(upload.filename, upload.data)
    except RenamerError as exc:
        logger.warning("Folder listing rejected | code=%s | %s", exc.code, exc.message)
        return error_response(exc)
    except Exception:
        logger.exception("Folder listing failed unexpectedly")
        raise

    logger.info(
        "Folder listing | file=%s | folders=%d",
        listing.source_file,
        len(listing.folders),
    )
    return model_response(listing)


def handle_rename(req: func.HttpRequest, config: RenamerConfig) -> func.HttpResponse:
    """``POST /api/rename`` — rename placemarks and return the file.

    In alias mode with ``require_all_categories`` enabled, a document
    missing any pole category is rejected with 422 instead of being
    returned partially renamed.
    """
    try:
        request = build_rename_request(req, config)
        processed = process_upload(
            request.upload.filename,
            request.upload.data,
            request.selection,
            request.prefix,
            output_suffix=config.output_suffix,
        )
        if request.mode == "aliases" and config.require_all_categories:
            processed.result.raise_for_missing()
    except RenamerError as exc:
        logger.warning("Rename rejected | code=%s | %s", exc.code, exc.message)
        return error_response(exc)
    except Exception:
        logger.exception("Rename failed unexpectedly")
        raise

    report = processed.result.report
    logger.info(
        "Rename complete | file=%s | mode=%s | renamed=%d | missing=%s",
        processed.filename,
        report.mode,
        report.renamed_count,
        ",".join(report.missing_categories) or "-",
    )
    return download_response(processed)
