"""Azure Functions entry point — KML Placemark Renamer.

This module registers the HTTP functions using the Python v2 programming
model.

All business logic lives in the kml_renamer package. This file is purely
the wiring layer between Azure Functions bindings and application code.
"""

from __future__ import annotations

import logging

import azure.functions as func

from kml_renamer.core.config import RenamerConfig
from kml_renamer.core.handlers import handle_list_folders, handle_rename

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

logger = logging.getLogger("kml_renamer.function_app")

# Fail fast on bad app settings at host startup.
config = RenamerConfig.from_env()


# ---------------------------------------------------------------------------
# HTTP: Folder listing
# ---------------------------------------------------------------------------


@app.function_name("list_folders")
@app.route(route="folders", methods=["POST"])
def list_folders(req: func.HttpRequest) -> func.HttpResponse:
    """List the folders of an uploaded KML/KMZ file as JSON.

    The client uses the listing to let the user pick folders before
    calling ``/api/rename``.
    """
    return handle_list_folders(req, config)


# ---------------------------------------------------------------------------
# HTTP: Rename placemarks
# ---------------------------------------------------------------------------


@app.function_name("rename_placemarks")
@app.route(route="rename", methods=["POST"])
def rename_placemarks(req: func.HttpRequest) -> func.HttpResponse:
    """Rename placemarks in the selected folders and return the file.

    Responds with the renamed ``.kml``/``.kmz`` as an attachment named
    ``<stem>_RENAMED.<ext>``.
    """
    return handle_rename(req, config)


# ---------------------------------------------------------------------------
# HTTP: Health (convenience for local debugging)
# ---------------------------------------------------------------------------


@app.function_name("health")
@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health(req: func.HttpRequest) -> func.HttpResponse:
    """Liveness probe."""
    logger.debug("Health check")
    return func.HttpResponse("ok", status_code=200, mimetype="text/plain")
