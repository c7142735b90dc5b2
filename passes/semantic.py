"""Tree-based semantic rewrite: rename presentational tags to their semantic equivalents.

Used when no AI service is configured.  Attributes and children are kept,
so the rewrite is structure-preserving by construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from parsing.filtering import is_inside, is_inside_facade

if TYPE_CHECKING:
    from pipeline.context import PassContext

SEMANTIC_TAGS = {
    "b": "strong",
    "i": "em",
    "strike": "del",
}


def rewrite_semantic_tags(soup: BeautifulSoup, *, skip_links: bool = False) -> int:
    """Rename tags in place; with *skip_links*, link contents are left alone."""
    skipped = {"svg", "math", "template", "a"} if skip_links else {"svg", "math", "template"}
    count = 0
    for tag in soup.find_all(list(SEMANTIC_TAGS)):
        if is_inside_facade(tag) or is_inside(tag, skipped):
            continue
        tag.name = SEMANTIC_TAGS[tag.name]
        count += 1
    return count


def run(ctx: PassContext) -> None:
    count = rewrite_semantic_tags(ctx.soup, skip_links=ctx.options.preserve_links)
    if count:
        ctx.record(f"Rewrote {count} presentational tag(s) to semantic HTML5 equivalents.")
