"""Font loading: make hosted web fonts swap instead of blocking text."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from parsing.urls import get_query_param, host_of, set_query_param

if TYPE_CHECKING:
    from pipeline.context import PassContext

# Hosts serving the Google Fonts CSS API (``/css`` and ``/css2``).
FONT_CSS_HOSTS = ("fonts.googleapis.com", "fonts.bunny.net")


def is_font_stylesheet(href: str) -> bool:
    """True for stylesheet URLs served by a known font CSS API."""
    if host_of(href) not in FONT_CSS_HOSTS:
        return False
    return "/css" in href


def add_font_display_swap(soup: BeautifulSoup) -> int:
    """Append ``display=swap`` to font stylesheet links that lack a display value."""
    count = 0
    for link in soup.find_all("link", href=True):
        href = link["href"].strip()
        if not is_font_stylesheet(href):
            continue
        try:
            if get_query_param(href, "display") is not None:
                continue
            link["href"] = set_query_param(href, "display", "swap")
        except ValueError:
            continue
        count += 1
    return count


def run(ctx: PassContext) -> None:
    count = add_font_display_swap(ctx.soup)
    if count:
        ctx.record(f"Added display=swap to {count} web font stylesheet(s).")
