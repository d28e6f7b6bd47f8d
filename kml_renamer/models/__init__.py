"""Data models and schemas.

- FolderSummary / FolderListing: folders found in an uploaded document
- RenameReport: diagnostics of one rename pass
"""

from kml_renamer.models.report import (
    FolderListing,
    FolderSummary,
    RenameReport,
    SelectionMode,
)

__all__ = [
    "FolderListing",
    "FolderSummary",
    "RenameReport",
    "SelectionMode",
]
