"""Parsing and serialization of post bodies.

Fragments (what a rich-text editor hands us) are parsed with the
``html.parser`` backend, which keeps them in source order without
synthesizing ``<html>``/``<head>``/``<body>``.  Complete documents
(starting with a doctype or ``<html>``) go through ``lxml`` so head and body
are placed correctly.

Attribute values are kept as plain strings (``multi_valued_attributes=None``)
so ``class="a  b"`` survives a parse/serialize round trip unchanged, and
serialization keeps attributes in source order instead of bs4's default
alphabetical sort.

The markers of downlevel-revealed conditional comments (``<![if !IE]>``,
``<![endif]>``) come out of ``html.parser`` as bs4 declarations, which would
serialize as ``<?if !IE?>``; they are swapped for ``MarkedSection`` nodes that
write them back unchanged.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.element import Declaration, PageElement, PreformattedString, Tag
from bs4.formatter import HTMLFormatter

from parsing.filtering import BOOLEAN_ATTRIBUTES

_FULL_DOCUMENT_RE = re.compile(r"^\s*(?:<!--.*?-->\s*)*<(?:!doctype|html)\b", re.I | re.S)


class SourceOrderFormatter(HTMLFormatter):
    """HTML formatter that keeps attribute order and writes ``<br>`` not ``<br/>``.

    Empty boolean attributes (``defer``, ``allowfullscreen``...) are written
    bare; every other empty attribute keeps its ``=""``.
    """

    def __init__(self) -> None:
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix=None,
        )

    def attributes(self, tag: Tag):  # noqa: ANN201
        if tag.attrs is None:
            return []
        return [
            (key, None if value == "" and key in BOOLEAN_ATTRIBUTES else value)
            for key, value in tag.attrs.items()
        ]


FORMATTER = SourceOrderFormatter()


class MarkedSection(PreformattedString):
    """A ``<![...]>`` marked-section marker, written back as it was read."""

    PREFIX = "<!["
    SUFFIX = "]>"


def _restore_marked_sections(root: PageElement) -> None:
    for node in list(root.descendants):
        if type(node) is Declaration:
            node.replace_with(MarkedSection(str(node)))


def is_full_document(html: str) -> bool:
    """Return True when *html* is a complete document rather than a fragment."""
    return bool(_FULL_DOCUMENT_RE.match(html))


def parse_html(html: str) -> BeautifulSoup:
    """Parse a fragment or full document into a mutable tree.

    Raises whatever the backend raises on markup it rejects outright
    (``bs4.ParserRejectedMarkup``); the orchestrator treats that as fatal.
    """
    features = "lxml" if is_full_document(html) else "html.parser"
    soup = BeautifulSoup(html, features, multi_valued_attributes=None)
    _restore_marked_sections(soup)
    return soup


def parse_fragment(markup: str) -> list[PageElement]:
    """Parse a snippet and return its top-level nodes, detached and ready to insert."""
    soup = BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)
    _restore_marked_sections(soup)
    return [node.extract() for node in list(soup.contents)]


def serialize(node: PageElement) -> str:
    """Serialize a tree or subtree with the source-order formatter."""
    if isinstance(node, Tag):
        return node.decode(formatter=FORMATTER)
    return node.output_ready(formatter=FORMATTER)


def count_elements(soup: BeautifulSoup) -> int:
    """Count element nodes (the Impact Accountant's node metric)."""
    return len(soup.find_all(True))


def content_root(soup: BeautifulSoup) -> Tag:
    """Return ``<body>`` for full documents, the soup itself for fragments."""
    return soup.body if soup.body is not None else soup


def head_or_root(soup: BeautifulSoup) -> Tag:
    """Return ``<head>`` (or ``<body>``) for full documents, the soup itself for fragments."""
    if soup.head is not None:
        return soup.head
    return content_root(soup)
