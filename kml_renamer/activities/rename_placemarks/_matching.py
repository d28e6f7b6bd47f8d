"""Folder-name matching for placemark renaming.

Two selection criteria decide which folders get renumbered:

- ``FolderSelection`` — the interactive variant: the exact (trimmed)
  folder names the user ticked.
- ``AliasSelection`` — the non-interactive variant: folder names are
  normalised and looked up in the pole-category alias table.

Both expose ``matches(name)``; ``AliasSelection`` additionally reports
which categories a document never matched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from kml_renamer.activities.rename_placemarks._constants import POLE_CATEGORY_ALIASES

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)


def normalize_folder_name(name: str) -> str:
    """Fold case and drop whitespace, underscores, and punctuation.

    ``"MV_Pole"``, ``"mv pole"`` and ``" MV-POLE "`` all normalise to
    ``"mvpole"``.
    """
    return _NON_ALNUM.sub("", name.casefold())


class FolderPredicate(Protocol):
    """Anything that can decide whether a folder name is selected."""

    def matches(self, name: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class FolderSelection:
    """Explicit set of selected folder names.

    Names are compared after trimming, exactly as they are listed by
    ``list_folders``; no case folding is applied. Folders without a name
    can never be selected.
    """

    names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, names: Iterable[str]) -> FolderSelection:
        return cls(frozenset(name.strip() for name in names if name.strip()))

    def matches(self, name: str) -> bool:
        return name.strip() in self.names

    def __bool__(self) -> bool:
        return bool(self.names)


@dataclass(frozen=True, slots=True)
class AliasSelection:
    """Folder selection driven by the pole-category alias table.

    Attributes:
        categories: Mapping of category label to its aliases. Defaults
            to the MV / LV / Additional pole table.
    """

    categories: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(POLE_CATEGORY_ALIASES)
    )
    _lookup: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        lookup: dict[str, str] = {}
        for category, aliases in self.categories.items():
            for alias in aliases:
                lookup.setdefault(normalize_folder_name(alias), category)
        object.__setattr__(self, "_lookup", lookup)

    def category_for(self, name: str) -> str | None:
        """Return the category *name* belongs to, or ``None``."""
        normalized = normalize_folder_name(name)
        if not normalized:
            return None
        return self._lookup.get(normalized)

    def matches(self, name: str) -> bool:
        return self.category_for(name) is not None

    def missing_categories(self, folder_names: Iterable[str]) -> list[str]:
        """Return categories (in table order) matched by none of *folder_names*."""
        seen = {self.category_for(name) for name in folder_names}
        return [category for category in self.categories if category not in seen]
