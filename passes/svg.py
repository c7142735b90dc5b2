"""Inline SVG trimming.

Removes what editors leave behind in pasted SVG markup: comments,
``<metadata>``/``<title>``/``<desc>``, empty ``<defs>`` and Inkscape /
Sodipodi attributes.  Non-empty ``<defs>`` stay because ``<use>`` may
reference them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import Comment, Tag

from parsing.filtering import is_blank, is_inside_facade

if TYPE_CHECKING:
    from pipeline.context import PassContext

STRIP_SVG_TAGS = ("metadata", "title", "desc")
_EDITOR_PREFIXES = ("inkscape:", "sodipodi:", "xmlns:inkscape", "xmlns:sodipodi")


def trim_svg(svg: Tag) -> int:
    """Trim a single ``<svg>`` in place; return the number of removals."""
    removed = 0
    for comment in svg.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
        removed += 1
    for tag_name in STRIP_SVG_TAGS:
        for tag in svg.find_all(tag_name):
            tag.decompose()
            removed += 1
    for defs in svg.find_all("defs"):
        if all(is_blank(child) for child in defs.contents):
            defs.decompose()
            removed += 1
    for tag in [svg, *svg.find_all(True)]:
        editor_attrs = [attr for attr in tag.attrs if attr.startswith(_EDITOR_PREFIXES)]
        for attr in editor_attrs:
            del tag[attr]
            removed += 1
    return removed


def optimize_inline_svgs(soup: BeautifulSoup) -> int:
    """Trim every inline SVG outside facade placeholders; return how many changed."""
    changed = 0
    for svg in soup.find_all("svg"):
        if is_inside_facade(svg) or svg.find_parent("svg") is not None:
            continue
        if trim_svg(svg):
            changed += 1
    return changed


def run(ctx: PassContext) -> None:
    changed = optimize_inline_svgs(ctx.soup)
    if changed:
        ctx.record(f"Minified {changed} inline SVG(s) (metadata, comments and editor data removed).")
