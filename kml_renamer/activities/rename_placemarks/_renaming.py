"""Sequential placemark renumbering.

The counter is threaded explicitly through the folder walk: each step
takes the current index and returns the next one, so no state outlives a
single ``renumber_folders`` call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kml_renamer.activities.rename_placemarks._document import (
    first_name_child,
    folder_name,
    folder_placemarks,
    iter_folders,
    set_element_text,
)

if TYPE_CHECKING:
    from lxml.etree import _Element

    from kml_renamer.activities.rename_placemarks._matching import FolderPredicate


@dataclass(slots=True)
class RenumberOutcome:
    """Bookkeeping from one walk over the folders of a document."""

    next_index: int = 1
    renamed_count: int = 0
    matched_folders: list[str] = field(default_factory=list)
    skipped_folders: list[str] = field(default_factory=list)
    folder_names: list[str] = field(default_factory=list)


def renumber_placemarks(folder: _Element, start: int, prefix: str) -> tuple[int, int]:
    """Rename the placemarks of one folder starting at *start*.

    Every placemark consumes an index; a placemark without a ``name``
    child keeps its position in the sequence but nothing is injected.

    Returns:
        ``(next_index, renamed_count)``.
    """
    index = start
    renamed = 0
    for placemark in folder_placemarks(folder):
        name_elem = first_name_child(placemark)
        if name_elem is not None:
            set_element_text(name_elem, f"{prefix}{index}")
            renamed += 1
        index += 1
    return (index, renamed)


def renumber_folders(root: _Element, predicate: FolderPredicate, prefix: str) -> RenumberOutcome:
    """Walk all folders in document order and renumber the matched ones.

    The folder list is materialised before any name is rewritten. Nested
    folders are visited on their own, so a matched folder inside another
    matched folder renumbers its placemarks a second time.
    """
    outcome = RenumberOutcome()
    for folder in iter_folders(root):
        name = folder_name(folder)
        outcome.folder_names.append(name)
        if not predicate.matches(name):
            outcome.skipped_folders.append(name)
            continue
        next_index, renamed = renumber_placemarks(folder, outcome.next_index, prefix)
        outcome.next_index = next_index
        outcome.renamed_count += renamed
        outcome.matched_folders.append(name)
    return outcome
