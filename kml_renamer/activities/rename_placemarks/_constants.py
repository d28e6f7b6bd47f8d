"""Shared constants for folder matching and placemark renaming."""

from __future__ import annotations

# KML 2.2 namespace (documents may also use the legacy Google namespaces
# or none at all; matching is done on local tag names)
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

FOLDER_TAG = "Folder"
PLACEMARK_TAG = "Placemark"
NAME_TAG = "name"

# Pole categories expected in a survey KML, in report order. Aliases are
# compared after normalisation (see _matching.normalize_folder_name).
MV_POLES = "MV Poles"
LV_POLES = "LV Poles"
ADDITIONAL_POLES = "Additional Poles"

POLE_CATEGORY_ALIASES: dict[str, tuple[str, ...]] = {
    MV_POLES: (
        "MV Pole",
        "MV Poles",
        "MV",
        "Medium Voltage Pole",
        "Medium Voltage Poles",
        "MT Pole",
        "MT Poles",
    ),
    LV_POLES: (
        "LV Pole",
        "LV Poles",
        "LV",
        "Low Voltage Pole",
        "Low Voltage Poles",
        "BT Pole",
        "BT Poles",
    ),
    ADDITIONAL_POLES: (
        "Additional Pole",
        "Additional Poles",
        "Additional",
        "Add Pole",
        "Add Poles",
        "Extra Pole",
        "Extra Poles",
        "New Pole",
        "New Poles",
    ),
}
