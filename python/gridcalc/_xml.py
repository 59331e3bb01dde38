"""XML snapshot reading and writing.

Layout::

    <spreadsheet version="default">
      <cell>
        <name>A1</name>
        <contents>=B1+2</contents>
      </cell>
    </spreadsheet>

This module only moves ``(name, contents)`` strings in and out of files;
interpreting them is the Spreadsheet's job.
"""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable

from gridcalc._exceptions import PersistenceError

ROOT_TAG = "spreadsheet"


# Characters XML 1.0 cannot carry at all, escaped or not
_ILLEGAL_XML_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _check_xml_safe(text: str, what: str) -> None:
    m = _ILLEGAL_XML_RE.search(text)
    if m is not None:
        raise PersistenceError(
            f"{what} contains {m.group()!r}, which cannot be stored in an XML snapshot"
        )


def write_snapshot(
    filename: str | os.PathLike[str],
    version: str,
    records: Iterable[tuple[str, str]],
) -> None:
    """Write ``(name, contents)`` records under a versioned root element.

    Raises PersistenceError before touching the file if any string holds a
    character XML cannot represent.
    """
    _check_xml_safe(version, "The version")
    root = ET.Element(ROOT_TAG, version=version)
    for name, contents in records:
        _check_xml_safe(name, "The cell name")
        _check_xml_safe(contents, f"Cell {name}")
        cell_elem = ET.SubElement(root, "cell")
        ET.SubElement(cell_elem, "name").text = name
        ET.SubElement(cell_elem, "contents").text = contents
    ET.indent(root, space="  ")
    # Parsers fold a literal \r into \n; a character reference survives
    body = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
    try:
        with open(filename, "w", encoding="utf-8", newline="") as f:
            f.write("<?xml version='1.0' encoding='utf-8'?>\n")
            f.write(body)
            f.write("\n")
    except OSError as e:
        raise PersistenceError(f"There was a problem writing to {os.fspath(filename)!r}") from e


def _parse(filename: str | os.PathLike[str]) -> ET.Element:
    try:
        root = ET.parse(filename).getroot()
    except OSError as e:
        raise PersistenceError(f"There was a problem opening {os.fspath(filename)!r}") from e
    except ET.ParseError as e:
        raise PersistenceError(f"There was a problem reading {os.fspath(filename)!r}: {e}") from e
    if root.tag != ROOT_TAG:
        raise PersistenceError(f"Expected a <{ROOT_TAG}> root element, found <{root.tag}>")
    return root


def read_version(filename: str | os.PathLike[str]) -> str:
    """Version tag of the snapshot in *filename*."""
    version = _parse(filename).get("version")
    if version is None:
        raise PersistenceError("The saved spreadsheet has no version")
    return version


def read_snapshot(filename: str | os.PathLike[str]) -> tuple[str, list[tuple[str, str]]]:
    """Return the version tag and the ``(name, contents)`` records, in file order."""
    root = _parse(filename)
    version = root.get("version")
    if version is None:
        raise PersistenceError("The saved spreadsheet has no version")

    records: list[tuple[str, str]] = []
    for cell_elem in root.findall("cell"):
        name = cell_elem.findtext("name")
        contents = cell_elem.findtext("contents")
        if name is None or contents is None:
            raise PersistenceError("Every <cell> needs a <name> and a <contents> element")
        records.append((name, contents))
    return version, records
