"""Tests for the rename_placemarks activity.

Covers:
- Alias-mode renaming of the pole survey (MV_Pole / Other / LV pole)
- Explicit folder selection
- Shared counter across folders, document order
- Nested folders renumbered again when matched on their own
- Placemarks without a <name> consume an index but get nothing injected
- Idempotence for the same prefix and selection
- Empty documents, malformed XML, missing-category diagnostics
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from lxml import etree

from kml_renamer.activities.rename_placemarks import (
    ADDITIONAL_POLES,
    KML_NAMESPACE,
    LV_POLES,
    MV_POLES,
    AliasSelection,
    FolderSelection,
    MissingExpectedFolders,
    ParseError,
    rename_kml,
)

if TYPE_CHECKING:
    from pathlib import Path

NS = {"kml": KML_NAMESPACE}


def _names_by_folder(text: str) -> dict[str, list[str]]:
    """Map each folder name to the names of its direct Placemark children."""
    root = etree.fromstring(text.encode("utf-8"))
    result: dict[str, list[str]] = {}
    for folder in root.iterfind(".//kml:Folder", NS):
        folder_name = folder.findtext("kml:name", default="", namespaces=NS).strip()
        result[folder_name] = [
            pm.findtext("kml:name", default="<none>", namespaces=NS)
            for pm in folder.findall("kml:Placemark", NS)
        ]
    return result


class TestAliasMode:
    """Folders matched through the pole-category alias table."""

    def test_pole_survey_renamed_in_document_order(self, pole_survey_kml: Path) -> None:
        """Test matched folders share one counter in document order."""
        result = rename_kml(pole_survey_kml.read_text(encoding="utf-8"), AliasSelection(), "P")

        names = _names_by_folder(result.text)
        assert names["MV_Pole"] == ["P1", "P2"]
        assert names["Other"] == ["Substation gate"]
        assert names["LV pole"] == ["P3", "P4", "P5"]

    def test_pole_survey_reports_missing_additional(self, pole_survey_kml: Path) -> None:
        """Test the report lists matched, skipped and missing folders."""
        result = rename_kml(pole_survey_kml.read_bytes(), AliasSelection(), "P")

        assert result.missing_categories == [ADDITIONAL_POLES]
        assert result.report.mode == "aliases"
        assert result.report.is_complete is False
        assert result.report.matched_folders == ["MV_Pole", "LV pole"]
        assert result.report.skipped_folders == ["Other"]
        assert result.report.renamed_count == 5
        assert result.report.next_index == 6

    def test_raise_for_missing(self, pole_survey_kml: Path) -> None:
        """Test missing categories can be raised as an error."""
        result = rename_kml(pole_survey_kml.read_bytes(), AliasSelection(), "P")

        with pytest.raises(MissingExpectedFolders, match="Additional Poles") as exc_info:
            result.raise_for_missing()
        assert exc_info.value.missing == [ADDITIONAL_POLES]
        assert exc_info.value.fatal is False
        assert exc_info.value.code == "EXPECTED_FOLDERS_MISSING"

    def test_empty_document_unchanged_all_missing(self, no_folders_kml: Path) -> None:
        """Test a document without folders is returned unchanged."""
        original = no_folders_kml.read_text(encoding="utf-8")
        result = rename_kml(original, AliasSelection(), "P")

        assert result.text == original
        assert result.report.renamed_count == 0
        assert result.missing_categories == [MV_POLES, LV_POLES, ADDITIONAL_POLES]

    def test_unnamed_folder_never_matches(self, unnamed_folder_kml: Path) -> None:
        """Test folders without a name are skipped."""
        result = rename_kml(unnamed_folder_kml.read_bytes(), AliasSelection(), "X")

        names = _names_by_folder(result.text)
        assert names[""] == ["orphan"]
        assert result.report.skipped_folders == [""]


class TestFolderSelection:
    """Folders matched by explicit, user-selected names."""

    def test_only_selected_folders_renamed(self, pole_survey_kml: Path) -> None:
        """Test only the selected folders are renumbered."""
        selection = FolderSelection.of(["Other", "LV pole"])
        result = rename_kml(pole_survey_kml.read_bytes(), selection, "T-")

        names = _names_by_folder(result.text)
        assert names["MV_Pole"] == ["mv-a", "mv-b"]
        assert names["Other"] == ["T-1"]
        assert names["LV pole"] == ["T-2", "T-3", "T-4"]
        assert result.report.mode == "folders"
        assert result.missing_categories == []
        assert result.report.is_complete is True

    def test_selection_is_exact_not_alias(self, pole_survey_kml: Path) -> None:
        """Test explicit selection does not use aliases."""
        selection = FolderSelection.of(["mv pole"])
        result = rename_kml(pole_survey_kml.read_bytes(), selection, "P")

        assert result.report.renamed_count == 0
        assert _names_by_folder(result.text)["MV_Pole"] == ["mv-a", "mv-b"]

    def test_selection_names_are_trimmed(self, pole_survey_kml: Path) -> None:
        """Test selected names are trimmed."""
        selection = FolderSelection.of(["  MV_Pole "])
        result = rename_kml(pole_survey_kml.read_bytes(), selection, "P")

        assert _names_by_folder(result.text)["MV_Pole"] == ["P1", "P2"]

    def test_empty_prefix(self, pole_survey_kml: Path) -> None:
        """Test an empty prefix gives bare numbers."""
        result = rename_kml(pole_survey_kml.read_bytes(), FolderSelection.of(["MV_Pole"]), "")

        assert _names_by_folder(result.text)["MV_Pole"] == ["1", "2"]

    def test_placemark_without_name_consumes_index(self, unnamed_folder_kml: Path) -> None:
        """Test a placemark without a name still takes a number."""
        selection = FolderSelection.of(["Additional Poles"])
        result = rename_kml(unnamed_folder_kml.read_bytes(), selection, "A")

        assert _names_by_folder(result.text)["Additional Poles"] == ["A1", "<none>", "A3"]
        assert result.report.renamed_count == 2
        assert result.report.next_index == 4
        assert "No name on this one" in result.text


class TestNestedFolders:
    """Nested folders are visited independently with the running counter."""

    def test_outer_folder_includes_nested_placemarks(self, nested_folders_kml: Path) -> None:
        """Test an outer folder renumbers its nested placemarks."""
        result = rename_kml(nested_folders_kml.read_bytes(), FolderSelection.of(["Route A"]), "R")

        names = _names_by_folder(result.text)
        assert names["Route A"] == ["R1", "R4"]
        assert names["Route A - spur"] == ["R2", "R3"]
        assert names["Route B"] == ["only"]

    def test_matched_nested_folder_renumbered_again(self, nested_folders_kml: Path) -> None:
        """Test a matched nested folder is renumbered a second time."""
        selection = FolderSelection.of(["Route A", "Route A - spur"])
        result = rename_kml(nested_folders_kml.read_bytes(), selection, "R")

        names = _names_by_folder(result.text)
        assert names["Route A"] == ["R1", "R4"]
        assert names["Route A - spur"] == ["R5", "R6"]
        assert result.report.renamed_count == 6
        assert result.report.next_index == 7

    def test_counter_continues_after_nested_folder(self, nested_folders_kml: Path) -> None:
        """Test the counter carries on past a nested folder."""
        selection = FolderSelection.of(["Route A - spur", "Route B"])
        result = rename_kml(nested_folders_kml.read_bytes(), selection, "R")

        names = _names_by_folder(result.text)
        assert names["Route A"] == ["start", "end"]
        assert names["Route A - spur"] == ["R1", "R2"]
        assert names["Route B"] == ["R3"]


class TestOutputProperties:
    """Serialization and idempotence."""

    def test_same_prefix_and_selection_is_idempotent(self, pole_survey_kml: Path) -> None:
        """Test a second pass with the same inputs changes nothing."""
        first = rename_kml(pole_survey_kml.read_bytes(), AliasSelection(), "P")
        second = rename_kml(first.text, AliasSelection(), "P")

        assert second.text == first.text

    def test_different_prefix_changes_output(self, pole_survey_kml: Path) -> None:
        """Test a second pass with another prefix renames again."""
        first = rename_kml(pole_survey_kml.read_bytes(), AliasSelection(), "P")
        second = rename_kml(first.text, AliasSelection(), "Q")

        assert second.text != first.text
        assert _names_by_folder(second.text)["MV_Pole"] == ["Q1", "Q2"]

    def test_declaration_and_other_content_kept(self, pole_survey_kml: Path) -> None:
        """Test content outside the names is kept."""
        result = rename_kml(pole_survey_kml.read_bytes(), AliasSelection(), "P")

        assert result.text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<coordinates>101.6869,3.1390,0</coordinates>" in result.text
        assert "<name>Feeder 12 pole survey</name>" in result.text

    def test_only_name_text_changes(self, pole_survey_kml: Path) -> None:
        """Test the output differs from the input only in renamed names."""
        original = pole_survey_kml.read_text(encoding="utf-8")
        result = rename_kml(original, AliasSelection(), "P")

        expected = original
        for old, new in [
            ("mv-a", "P1"),
            ("mv-b", "P2"),
            ("lv-a", "P3"),
            ("lv-b", "P4"),
            ("lv-c", "P5"),
        ]:
            expected = expected.replace(f"<name>{old}</name>", f"<name>{new}</name>")
        assert result.text == expected

    def test_declaration_on_same_line_as_root(self) -> None:
        """Test no line break is added after an inline XML declaration."""
        kml = (
            '<?xml version="1.0"?><kml><Folder><name>MV</name>'
            "<Placemark><name>a</name></Placemark></Folder></kml>"
        )
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.text == kml.replace("<name>a</name>", "<name>P1</name>")

    def test_text_after_root_kept(self) -> None:
        """Test trailing comments and newlines after the root survive a rename."""
        kml = (
            "<!-- exported -->\n<kml><Folder><name>LV</name>"
            "<Placemark><name>a</name></Placemark></Folder></kml>\n<!-- end -->\n"
        )
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.text == kml.replace("<name>a</name>", "<name>P1</name>")

    def test_doctype_kept_verbatim(self) -> None:
        """Test a DOCTYPE with an internal subset is copied unchanged."""
        kml = (
            '<?xml version="1.0"?>\n<!DOCTYPE kml [ <!ENTITY co "ACME"> ]>\n'
            "<kml><Folder><name>MV</name><Placemark><name>&co;</name></Placemark>"
            "</Folder></kml>\n"
        )
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.text == kml.replace("<name>&co;</name>", "<name>P1</name>")

    def test_unchanged_text_returned_as_given(self) -> None:
        """Test a text input with a BOM comes back identical when nothing is renamed."""
        kml = "\ufeff<kml/>\n"
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.report.renamed_count == 0
        assert result.text == kml

    def test_bom_kept_after_rename(self) -> None:
        """Test a leading BOM in text input is kept when names are rewritten."""
        kml = "\ufeff<kml><Folder><name>MV</name><Placemark><name>a</name></Placemark></Folder></kml>"
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.text == kml.replace("<name>a</name>", "<name>P1</name>")

    def test_utf8_bom_bytes_kept_after_rename(self) -> None:
        """Test a UTF-8 BOM in byte input is written back by to_bytes."""
        kml = (
            b"\xef\xbb\xbf<?xml version='1.0' encoding='UTF-8'?>\n"
            b"<kml><Folder><name>LV</name><Placemark><name>a</name></Placemark></Folder></kml>\n"
        )
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.to_bytes() == kml.replace(b"<name>a</name>", b"<name>P1</name>")

    def test_to_bytes_uses_declared_encoding(self) -> None:
        """Test to_bytes encodes in the declared encoding."""
        kml = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            '<kml xmlns="http://www.opengis.net/kml/2.2"><Folder><name>MV</name>'
            "<Placemark><name>Poste é</name></Placemark></Folder></kml>"
        ).encode("iso-8859-1")
        result = rename_kml(kml, AliasSelection(), "É")

        assert result.encoding == "ISO-8859-1"
        assert result.to_bytes().decode("iso-8859-1").count("<name>É1</name>") == 1

    def test_document_without_namespace(self) -> None:
        """Test documents without the KML namespace."""
        kml = "<kml><Folder><name>LV</name><Placemark><name>x</name></Placemark></Folder></kml>"
        result = rename_kml(kml, AliasSelection(), "P")

        assert result.text == (
            "<kml><Folder><name>LV</name><Placemark><name>P1</name></Placemark></Folder></kml>"
        )


class TestMalformedInput:
    """Malformed input yields ParseError and no output."""

    def test_unclosed_tags(self, malformed_kml: Path) -> None:
        """Test rejection of unclosed tags."""
        with pytest.raises(ParseError, match="Not valid XML") as exc_info:
            rename_kml(malformed_kml.read_bytes(), AliasSelection(), "P")
        assert exc_info.value.code == "KML_PARSE_FAILED"
        assert exc_info.value.category == "validation"

    def test_empty_input(self) -> None:
        """Test rejection of whitespace-only input."""
        with pytest.raises(ParseError, match="empty"):
            rename_kml("   \n", AliasSelection(), "P")

    def test_not_xml(self) -> None:
        """Test rejection of binary input."""
        with pytest.raises(ParseError):
            rename_kml(b"PK\x03\x04 definitely a zip", FolderSelection.of(["x"]), "P")
