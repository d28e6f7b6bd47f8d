"""Document handling for placemark renaming.

Responsibilities:
- Parse KML/XML text or bytes into an lxml tree (``ParseError``)
- Serialize the mutated tree back to text (``SerializationError``)
- Locate ``Folder``/``Placemark``/``name`` elements by local tag name
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lxml import etree

from kml_renamer.activities.rename_placemarks._constants import (
    FOLDER_TAG,
    NAME_TAG,
    PLACEMARK_TAG,
)
from kml_renamer.core.exceptions import PermanentError, ValidationError

if TYPE_CHECKING:
    from lxml.etree import _Element, _ElementTree

# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class ParseError(ValidationError):
    """Raised when the input is empty or not well-formed XML."""

    default_stage = "rename_placemarks"
    default_code = "KML_PARSE_FAILED"


class SerializationError(PermanentError):
    """Raised when the renamed tree cannot be written back to text."""

    default_stage = "rename_placemarks"
    default_code = "KML_SERIALIZE_FAILED"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_BOM = "\ufeff"
_XML_DECLARATION = re.compile(r"^\s*<\?xml\b[^>]*\?>")
_ENCODING_ATTR = re.compile(r"""encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")
# Everything ahead of the root start tag: declaration, PIs, comments,
# DOCTYPE (with an optional internal subset) and whitespace.
_PROLOG = re.compile(
    r"\ufeff?(?:\s|<\?(?:(?!\?>).)*\?>|<!--(?:(?!-->).)*-->|<!DOCTYPE(?:[^\[>]|\[[^\]]*\])*>)*",
    re.DOTALL,
)


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """A parsed document plus what is needed to write it back.

    Attributes:
        tree: The lxml element tree. Owned by the caller until serialized.
        source_text: The input as text. A leading BOM is kept when the
            document is re-encoded as UTF-8.
        declaration: The original ``<?xml ...?>`` declaration, or ``""``.
        encoding: Declared document encoding (``"UTF-8"`` when undeclared).
        prolog: Source text ahead of the root element, verbatim.
        epilog: Source text after the root element, verbatim.
    """

    tree: _ElementTree
    source_text: str
    declaration: str
    encoding: str
    prolog: str = ""
    epilog: str = ""

    @property
    def root(self) -> _Element:
        return self.tree.getroot()


def _make_parser(*, encoding: str | None = None) -> etree.XMLParser:
    return etree.XMLParser(
        encoding=encoding,
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
        strip_cdata=False,
        remove_blank_text=False,
        remove_comments=False,
    )


def _declared_encoding(head: str) -> tuple[str, str]:
    match = _XML_DECLARATION.match(head)
    if match is None:
        return ("", "UTF-8")
    declaration = match.group(0).lstrip()
    enc = _ENCODING_ATTR.search(declaration)
    return (declaration, enc.group(1) if enc else "UTF-8")


def _is_utf8(encoding: str) -> bool:
    try:
        return codecs.lookup(encoding).name == "utf-8"
    except LookupError:
        return False


def _epilog_start(text: str) -> int:
    """Offset just past the root element's end tag.

    Only whitespace, comments and processing instructions may follow the
    root element, so they are peeled off from the end.
    """
    end = len(text)
    while True:
        end = len(text[:end].rstrip())
        if text.endswith("-->", 0, end):
            start = text.rfind("<!--", 0, end)
        elif text.endswith("?>", 0, end):
            start = text.rfind("<?", 0, end)
        else:
            return end
        if start < 0:
            return end
        end = start


def parse_document(content: str | bytes) -> ParsedDocument:
    """Parse KML text or bytes.

    ``str`` input is parsed as Unicode regardless of what its declaration
    claims; ``bytes`` input is decoded by lxml (BOM or declared encoding)
    and the same encoding is used to recover the source text.

    Raises:
        ParseError: If the input is empty, cannot be decoded, or is not
            well-formed XML.
    """
    if isinstance(content, bytes):
        data = content
        parser = _make_parser()
    else:
        data = content.lstrip(_BOM).encode("utf-8")
        parser = _make_parser(encoding="utf-8")

    if not data.strip():
        msg = "Document is empty"
        raise ParseError(msg)

    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Not valid XML: {exc}"
        raise ParseError(msg) from exc

    if isinstance(content, bytes):
        detected = root.getroottree().docinfo.encoding or "UTF-8"
        try:
            text = content.decode(detected)
        except (LookupError, UnicodeDecodeError) as exc:
            msg = f"Cannot decode document as {detected}: {exc}"
            raise ParseError(msg) from exc
    else:
        text = content

    declaration, encoding = _declared_encoding(text.lstrip(_BOM))
    # The BOM only survives re-encoding as UTF-8; other encodings emit
    # their own.
    if isinstance(content, bytes) and not (
        content.startswith(codecs.BOM_UTF8) and _is_utf8(encoding)
    ):
        text = text.lstrip(_BOM)

    prolog_end = _PROLOG.match(text).end()
    epilog_start = max(_epilog_start(text), prolog_end)

    return ParsedDocument(
        tree=root.getroottree(),
        source_text=text,
        declaration=declaration,
        encoding=encoding,
        prolog=text[:prolog_end],
        epilog=text[epilog_start:],
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize_document(document: ParsedDocument) -> str:
    """Serialize the (mutated) root element between the original prolog and epilog.

    Text outside the root element (BOM, declaration, DOCTYPE, comments
    and surrounding whitespace) is copied from the source unchanged.

    Raises:
        SerializationError: If lxml cannot serialize the tree.
    """
    try:
        body = etree.tostring(document.root, encoding="unicode", with_tail=False)
    except (etree.SerialisationError, ValueError, TypeError) as exc:
        msg = f"Cannot serialize document: {exc}"
        raise SerializationError(msg) from exc

    return f"{document.prolog}{body}{document.epilog}"


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def _local_name(elem: _Element) -> str:
    tag = elem.tag
    if not isinstance(tag, str):
        # comments and processing instructions
        return ""
    return etree.QName(tag).localname


def _namespace(elem: _Element) -> str | None:
    return etree.QName(elem.tag).namespace


def iter_folders(root: _Element) -> list[_Element]:
    """Return every ``Folder`` element in document (pre-)order."""
    return [elem for elem in root.iter() if _local_name(elem) == FOLDER_TAG]


def first_name_child(elem: _Element) -> _Element | None:
    """Return the first direct ``name`` child in *elem*'s namespace."""
    namespace = _namespace(elem)
    for child in elem:
        if _local_name(child) == NAME_TAG and _namespace(child) == namespace:
            return child
    return None


def folder_name(folder: _Element) -> str:
    """Return the trimmed text of the folder's ``name`` child (``""`` if absent)."""
    name_elem = first_name_child(folder)
    if name_elem is None:
        return ""
    return "".join(name_elem.itertext()).strip()


def folder_placemarks(folder: _Element) -> list[_Element]:
    """Return every ``Placemark`` descendant in the folder's namespace, in order."""
    namespace = _namespace(folder)
    return [
        elem
        for elem in folder.iterdescendants()
        if _local_name(elem) == PLACEMARK_TAG and _namespace(elem) == namespace
    ]


def folder_depth(folder: _Element) -> int:
    """Number of ``Folder`` ancestors (0 for a top-level folder)."""
    return sum(1 for ancestor in folder.iterancestors() if _local_name(ancestor) == FOLDER_TAG)


def set_element_text(elem: _Element, text: str) -> None:
    """Replace all content of *elem* with *text* (attributes and tail kept)."""
    for child in list(elem):
        elem.remove(child)
    elem.text = text
