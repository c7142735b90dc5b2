"""CSS delivery: load non-critical stylesheets without blocking render.

Uses the print-media trick::

    <link rel="stylesheet" href="x.css" media="print" onload="this.onload=null;this.media='all'">
    <noscript><link rel="stylesheet" href="x.css"></noscript>

Stylesheets that look render-critical (by filename, id or class) are left
synchronous, as are font stylesheets (handled by ``passes.fonts``).
"""

from __future__ import annotations

import copy
import re
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import Tag

from parsing.filtering import class_tokens, is_inside
from parsing.urls import path_basename
from passes.fonts import is_font_stylesheet

if TYPE_CHECKING:
    from pipeline.context import PassContext

CRITICAL_RE = re.compile(
    r"(?:^|[^a-z])(critical|above[-_]?(?:the[-_]?)?fold|atf|inline[-_]?css)(?:[^a-z]|$)", re.I
)


def is_critical_stylesheet(link: Tag) -> bool:
    """Keyword heuristic over the filename, id, class and ``data-critical``."""
    if link.has_attr("data-critical"):
        return True
    haystack = " ".join(
        [path_basename(link.get("href") or ""), link.get("id") or "", *class_tokens(link)]
    )
    return bool(CRITICAL_RE.search(haystack))


def defer_stylesheets(soup: BeautifulSoup) -> int:
    """Apply the print-media swap to deferrable stylesheets; return the count."""
    count = 0
    for link in soup.find_all("link", href=True):
        rels = (link.get("rel") or "").lower().split()
        if "stylesheet" not in rels or "alternate" in rels:
            continue
        if is_inside(link, {"noscript", "template"}):
            continue
        if is_font_stylesheet(link["href"]) or is_critical_stylesheet(link):
            continue
        if (link.get("media") or "").lower() == "print":
            # Already swapped by an earlier run, or a print-only sheet.
            continue

        fallback = copy.copy(link)
        target_media = (link.get("media") or "all").replace("'", "")
        link["media"] = "print"
        link["onload"] = f"this.onload=null;this.media='{target_media}'"

        noscript = soup.new_tag("noscript")
        noscript.append(fallback)
        link.insert_after(noscript)
        count += 1
    return count


def run(ctx: PassContext) -> None:
    count = defer_stylesheets(ctx.soup)
    if count:
        ctx.record(f"Deferred {count} non-critical stylesheet(s) with a noscript fallback.")
