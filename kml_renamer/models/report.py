"""Pydantic models for rename diagnostics and folder listings.

These are the JSON-facing shapes returned by the HTTP endpoints:

- **FolderSummary / FolderListing**: what ``list_folders`` found, used to
  build the folder selection
- **RenameReport**: what ``rename_kml`` did, including the pole categories
  that were never matched in alias mode
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SelectionMode = Literal["folders", "aliases"]


class FolderSummary(BaseModel):
    """One ``Folder`` element, in document order.

    Attributes:
        index: Zero-based position among all folders (pre-order).
        name: Trimmed folder name, or ``"Unnamed Folder"``.
        has_name: Whether the folder had a ``<name>`` child with text.
        depth: Number of enclosing folders.
        placemark_count: ``Placemark`` descendants, nested folders included.
        category: Pole category the name resolves to, if any.
    """

    index: int
    name: str
    has_name: bool = True
    depth: int = 0
    placemark_count: int = 0
    category: str | None = None


class FolderListing(BaseModel):
    """All folders of a document plus the pole categories it lacks."""

    source_file: str = ""
    folders: list[FolderSummary] = Field(default_factory=list)
    missing_categories: list[str] = Field(default_factory=list)

    @property
    def folder_names(self) -> list[str]:
        """Distinct folder names in first-seen order."""
        return list(dict.fromkeys(folder.name for folder in self.folders))


class RenameReport(BaseModel):
    """Outcome of one rename pass.

    Attributes:
        mode: ``"folders"`` for an explicit selection, ``"aliases"`` for
            alias-table matching.
        prefix: Prefix used for the new names.
        matched_folders: Names of matched folders, in document order.
        skipped_folders: Names of folders left untouched.
        renamed_count: Number of ``name`` elements rewritten.
        next_index: The counter value after the last matched folder.
        missing_categories: Alias categories no folder matched
            (always empty in ``"folders"`` mode).
    """

    mode: SelectionMode = "folders"
    prefix: str = ""
    matched_folders: list[str] = Field(default_factory=list)
    skipped_folders: list[str] = Field(default_factory=list)
    renamed_count: int = 0
    next_index: int = 1
    missing_categories: list[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every alias category matched at least one folder."""
        return not self.missing_categories
