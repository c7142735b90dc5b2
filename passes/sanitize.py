"""Tree Sanitizer: strip comments and empty attributes in a single walk.

Preservation flags short-circuit the walk for whole subtrees:

* ``preserve_links`` -- every ``<a>`` and its contents,
* ``preserve_iframes`` -- every ``<iframe>`` still in the tree (YouTube
  iframes are gone by now when embeds are lazy-loaded, so lazy loading wins),
* ``preserve_shortcodes`` -- any element whose own text holds a
  ``[shortcode]``, plus comments directly next to shortcode text
  (``<!-- wp:shortcode -->[gallery]<!-- /wp:shortcode -->``).

Boolean attributes (``defer``, ``allowfullscreen``...), ``alt`` and
``value`` are never treated as empty, and placeholder elements keep every
attribute.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import Comment, Tag

from models.options import CleaningOptions
from parsing.filtering import (
    BOOLEAN_ATTRIBUTES,
    FACADE_ATTR,
    MEANINGFUL_EMPTY_ATTRIBUTES,
    adjacent_siblings,
    is_shortcode_text,
)
from passes.contract import LAZY_KIND_ATTR

if TYPE_CHECKING:
    from pipeline.context import PassContext

# Containers too broad to freeze just because they hold a shortcode.
_DOCUMENT_LEVEL = frozenset({"html", "body", "head"})


@dataclass
class SanitizeStats:
    comments: int = 0
    attributes: int = 0


def _holds_shortcode(tag: Tag) -> bool:
    return tag.name not in _DOCUMENT_LEVEL and any(is_shortcode_text(child) for child in tag.contents)


def is_preserved(tag: Tag, options: CleaningOptions) -> bool:
    """True when *tag* and its subtree must not be touched."""
    if options.preserve_links and tag.name == "a":
        return True
    if options.preserve_iframes and tag.name == "iframe":
        return True
    if options.preserve_shortcodes and _holds_shortcode(tag):
        return True
    return False


def _comment_guarded(comment: Comment, options: CleaningOptions) -> bool:
    if not options.preserve_shortcodes:
        return False
    return any(is_shortcode_text(sibling) for sibling in adjacent_siblings(comment))


def remove_empty_attributes(tag: Tag) -> int:
    """Drop attributes whose value is empty or whitespace; return the count."""
    if tag.has_attr(FACADE_ATTR) or tag.has_attr(LAZY_KIND_ATTR):
        return 0
    removed = 0
    for name, value in list(tag.attrs.items()):
        if name in BOOLEAN_ATTRIBUTES or name in MEANINGFUL_EMPTY_ATTRIBUTES:
            continue
        if isinstance(value, list):
            value = " ".join(value)
        if value is None or not str(value).strip():
            del tag[name]
            removed += 1
    return removed


def sanitize_tree(soup: BeautifulSoup, options: CleaningOptions) -> SanitizeStats:
    """Walk the tree once, removing comments and empty attributes per *options*."""
    stats = SanitizeStats()
    stack: list[Tag] = [soup]
    while stack:
        parent = stack.pop()
        for child in list(parent.contents):
            if isinstance(child, Comment):
                if options.strip_comments and not _comment_guarded(child, options):
                    child.extract()
                    stats.comments += 1
            elif isinstance(child, Tag):
                if is_preserved(child, options):
                    continue
                if options.remove_empty_attributes:
                    stats.attributes += remove_empty_attributes(child)
                stack.append(child)
    return stats


def run(ctx: PassContext) -> None:
    stats = sanitize_tree(ctx.soup, ctx.options)
    if stats.comments:
        ctx.record(f"Removed {stats.comments} HTML comment(s).")
    if stats.attributes:
        ctx.record(f"Removed {stats.attributes} empty attribute(s).")
