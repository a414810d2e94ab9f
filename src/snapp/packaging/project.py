"""Project document scanning.

The project XML is read as a forward stream of element-start events
(:func:`iter_element_starts`); everything the pipeline needs from the
document is a fold over that stream:

- :func:`extract_project_name` stops at the first ``project`` element with a
  non-empty ``name`` attribute and fails if the document ends without one.
- :func:`has_project_name` scans the whole document so that malformed XML is
  reported even after the name has been seen (request validation).

A document without a project name is an error on both paths.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from snapp.core.errors import MissingProjectNameError, XmlParseError
from snapp.packaging.models import ProjectDescriptor

PROJECT_TAG = "project"
NAME_ATTRIBUTE = "name"

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class ElementStart:
    """An element-start event: local tag name and attribute map."""

    name: str
    attributes: Mapping[str, str]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def iter_element_starts(xml: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[ElementStart]:
    """Yield element-start events from *xml* in document order.

    The document is fed to the scanner in chunks, so a consumer that stops
    iterating early never scans the rest of the document.

    Raises:
        XmlParseError: when the scanner rejects the document.
    """
    parser = ET.XMLPullParser(events=("start",))
    try:
        for offset in range(0, len(xml), chunk_size):
            parser.feed(xml[offset:offset + chunk_size])
            for _event, element in parser.read_events():
                yield ElementStart(_local_name(element.tag), dict(element.attrib))
        parser.close()
        for _event, element in parser.read_events():
            yield ElementStart(_local_name(element.tag), dict(element.attrib))
    except ET.ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise XmlParseError(str(exc), line=line, column=column, cause=exc) from exc


def _declared_name(element: ElementStart) -> str | None:
    if element.name != PROJECT_TAG:
        return None
    return element.attributes.get(NAME_ATTRIBUTE) or None


def find_project_name(xml: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str | None:
    """Name of the first named ``project`` element, or ``None`` at end of document."""
    for element in iter_element_starts(xml, chunk_size=chunk_size):
        name = _declared_name(element)
        if name is not None:
            return name
    return None


def extract_project_name(xml: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Project name declared by *xml*.

    Raises:
        XmlParseError: the scanner rejected the document before a name was found.
        MissingProjectNameError: the document has no named ``project`` element.
    """
    name = find_project_name(xml, chunk_size=chunk_size)
    if name is None:
        raise MissingProjectNameError()
    return name


def has_project_name(xml: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
    """Scan the entire document and report whether a project name is declared.

    Raises:
        XmlParseError: anywhere in the document, even after a name was seen.
    """
    found = False
    for element in iter_element_starts(xml, chunk_size=chunk_size):
        if not found and _declared_name(element) is not None:
            found = True
    return found


def describe_project(xml: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ProjectDescriptor:
    """Bundle *xml* with its extracted name."""
    return ProjectDescriptor(raw_xml=xml, name=extract_project_name(xml, chunk_size=chunk_size))


__all__ = [
    "ElementStart",
    "NAME_ATTRIBUTE",
    "PROJECT_TAG",
    "describe_project",
    "extract_project_name",
    "find_project_name",
    "has_project_name",
    "iter_element_starts",
]
