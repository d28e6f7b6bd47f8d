"""Placemark renaming activity.

Renumbers the ``Placemark`` names inside selected KML folders as
``{prefix}1 .. {prefix}M``. The transformation is a single synchronous
pass over an lxml tree:

1. Parse the document (``ParseError`` on empty or malformed input)
2. Collect every ``Folder`` in document order
3. For each folder whose name satisfies the selection, rename its
   placemarks with a counter shared across all matched folders
4. Serialize (``SerializationError`` on failure)
5. Report matched/skipped folders and, in alias mode, the pole
   categories that never matched (``MissingExpectedFolders`` is a
   diagnostic the caller may raise via ``RenameResult.raise_for_missing``)

The package is split into focused stages:
- **_document**: parsing, serialization, element lookup
- **_matching**: explicit and alias-table folder selection
- **_renaming**: the counter-threaded folder walk
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kml_renamer.activities.rename_placemarks._constants import (
    ADDITIONAL_POLES,
    KML_NAMESPACE,
    LV_POLES,
    MV_POLES,
    POLE_CATEGORY_ALIASES,
)
from kml_renamer.activities.rename_placemarks._document import (
    ParseError,
    ParsedDocument,
    SerializationError,
    folder_depth,
    folder_name,
    folder_placemarks,
    iter_folders,
    parse_document,
    serialize_document,
)
from kml_renamer.activities.rename_placemarks._matching import (
    AliasSelection,
    FolderPredicate,
    FolderSelection,
    normalize_folder_name,
)
from kml_renamer.activities.rename_placemarks._renaming import (
    renumber_folders,
    renumber_placemarks,
)
from kml_renamer.core.constants import UNNAMED_FOLDER_LABEL
from kml_renamer.core.exceptions import ValidationError
from kml_renamer.models.report import FolderListing, FolderSummary, RenameReport

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("kml_renamer.activities.rename_placemarks")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "ADDITIONAL_POLES",
    "KML_NAMESPACE",
    "LV_POLES",
    "MV_POLES",
    "POLE_CATEGORY_ALIASES",
    "AliasSelection",
    "FolderPredicate",
    "FolderSelection",
    "MissingExpectedFolders",
    "ParseError",
    "ParsedDocument",
    "RenameResult",
    "SerializationError",
    "list_folders",
    "normalize_folder_name",
    "parse_document",
    "rename_kml",
    "renumber_folders",
    "renumber_placemarks",
    "serialize_document",
]


class MissingExpectedFolders(ValidationError):
    """Alias mode found no folder for one or more pole categories.

    Non-fatal: the rename still happened for the categories that were
    found. Callers that want all-or-nothing behaviour raise it through
    ``RenameResult.raise_for_missing()``.

    Attributes:
        missing: Category labels that were never matched.
    """

    default_stage = "rename_placemarks"
    default_code = "EXPECTED_FOLDERS_MISSING"

    def __init__(self, missing: Sequence[str], **kwargs: object) -> None:
        self.missing = list(missing)
        kwargs.setdefault("fatal", False)
        super().__init__(
            f"No folder found for: {', '.join(self.missing)}",
            **kwargs,  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class RenameResult:
    """Renamed document text plus diagnostics.

    Attributes:
        text: The serialized document.
        encoding: Declared encoding of the document, used by ``to_bytes``.
        report: What was matched, skipped and renamed.
    """

    text: str
    encoding: str
    report: RenameReport

    @property
    def missing_categories(self) -> list[str]:
        return self.report.missing_categories

    def to_bytes(self) -> bytes:
        """Encode ``text`` in the document's declared encoding."""
        return self.text.encode(self.encoding, errors="xmlcharrefreplace")

    def raise_for_missing(self) -> None:
        """Raise ``MissingExpectedFolders`` if any category was not matched."""
        if not self.report.is_complete:
            raise MissingExpectedFolders(self.report.missing_categories)


def rename_kml(
    content: str | bytes,
    selection: FolderPredicate,
    prefix: str,
) -> RenameResult:
    """Rename placemarks in the folders matched by *selection*.

    Args:
        content: KML document as text or raw bytes.
        selection: ``FolderSelection`` (explicit names) or
            ``AliasSelection`` (pole-category aliases), or any object
            with a ``matches(name) -> bool`` method.
        prefix: Prefix for the new names (``"P"`` gives ``P1, P2, ...``).

    Returns:
        ``RenameResult`` with the new text and a ``RenameReport``. When no
        name was rewritten the input text is returned verbatim.

    Raises:
        ParseError: If the document is empty or not well-formed XML.
        SerializationError: If the renamed tree cannot be serialized.
    """
    document = parse_document(content)
    outcome = renumber_folders(document.root, selection, prefix)

    mode = "aliases" if isinstance(selection, AliasSelection) else "folders"
    missing: list[str] = []
    if isinstance(selection, AliasSelection):
        missing = selection.missing_categories(outcome.matched_folders)

    if outcome.renamed_count:
        text = serialize_document(document)
    elif isinstance(content, str):
        text = content
    else:
        text = document.source_text

    report = RenameReport(
        mode=mode,
        prefix=prefix,
        matched_folders=outcome.matched_folders,
        skipped_folders=outcome.skipped_folders,
        renamed_count=outcome.renamed_count,
        next_index=outcome.next_index,
        missing_categories=missing,
    )

    logger.info(
        "Renamed placemarks | mode=%s | prefix=%s | folders=%d | matched=%d | renamed=%d",
        mode,
        prefix,
        len(outcome.folder_names),
        len(outcome.matched_folders),
        outcome.renamed_count,
    )
    if missing:
        logger.warning("Expected folder categories not found: %s", ", ".join(missing))

    return RenameResult(text=text, encoding=document.encoding, report=report)


def list_folders(content: str | bytes, *, source_file: str = "") -> FolderListing:
    """List every folder of a document in document order.

    Folders without a name are reported as ``"Unnamed Folder"``. Each
    entry carries the pole category its name resolves to so a caller can
    pre-select folders.

    Raises:
        ParseError: If the document is empty or not well-formed XML.
    """
    document = parse_document(content)
    aliases = AliasSelection()

    folders: list[FolderSummary] = []
    names: list[str] = []
    for idx, folder in enumerate(iter_folders(document.root)):
        name = folder_name(folder)
        names.append(name)
        folders.append(
            FolderSummary(
                index=idx,
                name=name or UNNAMED_FOLDER_LABEL,
                has_name=bool(name),
                depth=folder_depth(folder),
                placemark_count=len(folder_placemarks(folder)),
                category=aliases.category_for(name),
            )
        )

    logger.info("Listed %d folder(s) in %s", len(folders), source_file or "<upload>")

    return FolderListing(
        source_file=source_file,
        folders=folders,
        missing_categories=aliases.missing_categories(names),
    )
