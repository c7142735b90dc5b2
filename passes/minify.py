"""Minification of inline ``<style>``/``<script>`` and whitespace collapsing.

Both work on the tree, not on serialized text, so they can never reach into
attribute values (the facade payloads in particular).  CSS and classic
JavaScript bodies go through minify-html one element at a time; JSON blocks
(JSON-LD, configuration) are re-serialized compactly.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

import minify_html
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement

from parsing.filtering import BLOCK_TAGS, HTML_WHITESPACE, SHORTCODE_RE, is_inside
from passes.contract import RUNTIME_SCRIPT_ID

if TYPE_CHECKING:
    from pipeline.context import PassContext

logger = logging.getLogger("leanpost")

_WS_RE = re.compile(r"[ \t\n\f\r]+")

JS_SCRIPT_TYPES = frozenset({"", "text/javascript", "application/javascript"})
JSON_SCRIPT_TYPES = frozenset({"application/ld+json", "application/json"})
PRESERVE_WHITESPACE_TAGS = frozenset({"pre", "textarea", "script", "style", "template"})


# ---------------------------------------------------------------------------
# Minifiers
# ---------------------------------------------------------------------------


def _minify_element_body(tag: str, body: str, **flags: bool) -> str:
    """Run minify-html over a lone ``<tag>`` element and return its new body."""
    opening, closing = f"<{tag}>", f"</{tag}>"
    result = minify_html.minify(f"{opening}{body}{closing}", keep_closing_tags=True, **flags)
    if not (result.startswith(opening) and result.endswith(closing)):
        raise ValueError(f"unexpected minifier output for <{tag}>")
    return result[len(opening):-len(closing)]


def minify_css(source: str) -> str:
    return _minify_element_body("style", source, minify_css=True)


def minify_js(source: str) -> str:
    return _minify_element_body("script", source, minify_js=True)


def minify_json(source: str) -> str:
    """Compact a JSON document; raises ValueError when it does not parse."""
    compact = json.dumps(json.loads(source), ensure_ascii=False, separators=(",", ":"))
    # A literal "</" would end the surrounding <script> early.
    return compact.replace("</", "<\\/")


def _script_minifier(script):  # noqa: ANN001, ANN202
    kind = (script.get("type") or "").strip().lower()
    if kind in JS_SCRIPT_TYPES:
        return minify_js
    if kind in JSON_SCRIPT_TYPES:
        return minify_json
    return None


def _replace_body(text: NavigableString, minify) -> bool:  # noqa: ANN001
    try:
        minified = minify(str(text))
    except ValueError as exc:
        logger.debug("left inline block unminified: %s", exc, extra={"step": "minify"})
        return False
    if not minified or minified == text:
        return False
    text.replace_with(type(text)(minified))
    return True


def minify_inline_assets(soup: BeautifulSoup) -> tuple[int, int]:
    """Minify inline style and script bodies in place; return ``(styles, scripts)`` changed."""
    styles = scripts = 0
    for style in soup.find_all("style"):
        if style.string is not None and _replace_body(style.string, minify_css):
            styles += 1
    for script in soup.find_all("script"):
        if script.get("src") or script.get("id") == RUNTIME_SCRIPT_ID:
            continue
        minify = _script_minifier(script)
        if minify is None or script.string is None:
            continue
        if _replace_body(script.string, minify):
            scripts += 1
    return styles, scripts


# ---------------------------------------------------------------------------
# Whitespace
# ---------------------------------------------------------------------------


def _is_boundary(node: PageElement | None, parent: PageElement) -> bool:
    """True when whitespace next to *node* can be dropped entirely."""
    if node is None:
        return parent.name in BLOCK_TAGS or parent.name == "[document]"
    return getattr(node, "name", None) in BLOCK_TAGS


def collapse_whitespace(soup: BeautifulSoup, *, preserve_links: bool, preserve_shortcodes: bool) -> int:
    """Collapse whitespace runs in text nodes and drop it between blocks.

    ``pre``/``textarea``/``script``/``style`` content is never touched, nor
    link text when links are preserved, nor shortcode text when shortcodes
    are preserved.
    """
    changed = 0
    for text in list(soup.find_all(string=True)):
        if type(text) is not NavigableString or text.parent is None:
            continue
        if is_inside(text, PRESERVE_WHITESPACE_TAGS):
            continue
        if preserve_links and is_inside(text, {"a"}):
            continue
        value = str(text)
        if preserve_shortcodes and SHORTCODE_RE.search(value):
            continue
        if not value.strip(HTML_WHITESPACE):
            parent = text.parent
            if _is_boundary(text.previous_sibling, parent) or _is_boundary(text.next_sibling, parent):
                text.extract()
                changed += 1
            elif value != " ":
                text.replace_with(" ")
                changed += 1
            continue
        collapsed = _WS_RE.sub(" ", value)
        if collapsed != value:
            text.replace_with(collapsed)
            changed += 1
    return changed


def run_minify(ctx: PassContext) -> None:
    styles, scripts = minify_inline_assets(ctx.soup)
    if styles or scripts:
        ctx.record(f"Minified {styles} inline <style> and {scripts} inline <script> block(s).")


def run_whitespace(ctx: PassContext) -> None:
    changed = collapse_whitespace(
        ctx.soup,
        preserve_links=ctx.options.preserve_links,
        preserve_shortcodes=ctx.options.preserve_shortcodes,
    )
    if changed:
        ctx.record(f"Collapsed redundant whitespace in {changed} text node(s).")
