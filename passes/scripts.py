"""Script deferral: add ``defer`` to external scripts that can tolerate it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from parsing.filtering import is_inside
from passes.contract import RUNTIME_SCRIPT_ID

if TYPE_CHECKING:
    from pipeline.context import PassContext

# Libraries that inline code on the page expects to find defined synchronously.
SYNC_SCRIPT_MARKERS = (
    "jquery",
    "prototype.js",
    "mootools",
    "document-write",
    "gtag/js",
    "googletagmanager.com/gtm.js",
)

_JS_TYPES = frozenset({"", "text/javascript", "application/javascript", "application/x-javascript"})


def should_defer(script) -> bool:  # noqa: ANN001
    """Return True when *script* is an external classic script safe to defer."""
    src = (script.get("src") or "").strip()
    if not src:
        return False
    if script.has_attr("defer") or script.has_attr("async"):
        return False
    if script.get("id") == RUNTIME_SCRIPT_ID:
        return False
    if (script.get("type") or "").strip().lower() not in _JS_TYPES:
        # Modules are deferred by default; other types are not executed.
        return False
    lowered = src.lower()
    return not any(marker in lowered for marker in SYNC_SCRIPT_MARKERS)


def defer_scripts(soup: BeautifulSoup) -> int:
    count = 0
    for script in soup.find_all("script"):
        if is_inside(script, {"noscript", "template"}) or not should_defer(script):
            continue
        script["defer"] = ""
        count += 1
    return count


def run(ctx: PassContext) -> None:
    count = defer_scripts(ctx.soup)
    if count:
        ctx.record(f"Added defer to {count} render-blocking external script(s).")
