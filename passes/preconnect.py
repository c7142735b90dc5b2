"""Preconnect hints: one ``<link rel="preconnect">`` per third-party origin.

Origins are collected in document order from stylesheet links, scripts and
images, de-duplicated against hints that are already present, and capped
so a post with dozens of hosts does not open dozens of sockets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import NavigableString

from parsing.document import head_or_root
from parsing.filtering import is_inside, is_inside_facade
from parsing.urls import origin_of
from passes.fonts import FONT_CSS_HOSTS

if TYPE_CHECKING:
    from pipeline.context import PassContext

HINT_RELS = ("preconnect", "dns-prefetch")

# Fonts referenced by font CSS are fetched from a second, CORS-enabled origin.
FONT_FILE_ORIGINS = {
    "fonts.googleapis.com": "https://fonts.gstatic.com",
    "fonts.bunny.net": "https://fonts.bunny.net",
}


def _rel_tokens(link) -> list[str]:  # noqa: ANN001
    return (link.get("rel") or "").lower().split()


def existing_hint_origins(soup: BeautifulSoup) -> set[str]:
    origins: set[str] = set()
    for link in soup.find_all("link", href=True):
        if any(rel in HINT_RELS for rel in _rel_tokens(link)):
            origin = origin_of(link["href"])
            if origin:
                origins.add(origin)
    return origins


def referenced_origins(soup: BeautifulSoup) -> list[tuple[str, bool]]:
    """Return ``(origin, crossorigin)`` pairs in first-reference order."""
    found: dict[str, bool] = {}
    for el in soup.find_all(["link", "script", "img"]):
        if is_inside_facade(el) or is_inside(el, {"template"}):
            continue
        if el.name == "link":
            rels = _rel_tokens(el)
            if any(rel in HINT_RELS for rel in rels) or "stylesheet" not in rels:
                continue
            url = el.get("href") or ""
        else:
            url = el.get("src") or ""
        origin = origin_of(url)
        if origin is None:
            continue
        found.setdefault(origin, False)
        host = origin.split("://", 1)[1]
        if el.name == "link" and host in FONT_CSS_HOSTS:
            font_origin = FONT_FILE_ORIGINS[host]
            found[font_origin] = True
    return list(found.items())


def add_preconnect_hints(soup: BeautifulSoup, limit: int) -> list[str]:
    """Insert missing preconnect hints; return the origins added."""
    present = existing_hint_origins(soup)
    missing = [(origin, cors) for origin, cors in referenced_origins(soup) if origin not in present]
    missing = missing[: max(0, limit - len(present))]
    if not missing:
        return []

    target = head_or_root(soup)
    insert_at = 0
    for origin, cors in missing:
        link = soup.new_tag("link", attrs={"rel": "preconnect", "href": origin})
        if cors:
            link["crossorigin"] = ""
        target.insert(insert_at, link)
        target.insert(insert_at + 1, NavigableString("\n"))
        insert_at += 2
    return [origin for origin, _ in missing]


def run(ctx: PassContext) -> None:
    added = add_preconnect_hints(ctx.soup, ctx.settings.max_preconnect_hints)
    if added:
        ctx.record(f"Added preconnect hints for {len(added)} origin(s): {', '.join(added)}.")
