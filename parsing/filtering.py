"""Tree predicates shared by the optimization passes."""

from __future__ import annotations

import re

from bs4.element import Comment, NavigableString, PageElement, Tag

# Attributes whose presence is the value.  Never treated as "empty".
BOOLEAN_ATTRIBUTES = frozenset(
    {
        "allowfullscreen",
        "async",
        "autofocus",
        "autoplay",
        "checked",
        "controls",
        "crossorigin",
        "default",
        "defer",
        "disabled",
        "formnovalidate",
        "hidden",
        "inert",
        "ismap",
        "itemscope",
        "loop",
        "multiple",
        "muted",
        "nomodule",
        "novalidate",
        "open",
        "playsinline",
        "readonly",
        "required",
        "reversed",
        "selected",
    }
)

# Attributes where an empty value is meaningful (decorative alt text, blank option).
MEANINGFUL_EMPTY_ATTRIBUTES = frozenset({"alt", "value"})

FACADE_ATTR = "data-facade"

# WordPress-style shortcodes: [gallery ids="1,2"], [/caption], [embed]
SHORTCODE_RE = re.compile(r"\[[^\[\]]+\]")

# HTML's whitespace set; U+00A0 is content, not whitespace.
HTML_WHITESPACE = " \t\n\f\r"

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "dd", "details",
        "dialog", "div", "dl", "dt", "fieldset", "figcaption", "figure",
        "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "head",
        "header", "hgroup", "hr", "html", "iframe", "li", "link", "main",
        "meta", "nav", "noscript", "ol", "p", "picture", "pre", "script",
        "section", "style", "summary", "table", "tbody", "td", "tfoot", "th",
        "thead", "title", "tr", "ul", "video",
    }
)


def class_tokens(tag: Tag) -> list[str]:
    """Return the class tokens of *tag* whether bs4 stored a string or a list."""
    value = tag.get("class") or ""
    if isinstance(value, list):
        return [str(v) for v in value]
    return value.split()


def add_class(tag: Tag, name: str) -> None:
    tokens = class_tokens(tag)
    if name not in tokens:
        tokens.append(name)
        tag["class"] = " ".join(tokens)


def is_inside_facade(el: PageElement) -> bool:
    """True when *el* sits inside (or is) a facade placeholder."""
    if isinstance(el, Tag) and el.has_attr(FACADE_ATTR):
        return True
    return el.find_parent(attrs={FACADE_ATTR: True}) is not None


def is_inside(el: PageElement, names: frozenset[str] | set[str]) -> bool:
    """True when any ancestor of *el* has a tag name in *names*."""
    return any(parent.name in names for parent in el.parents)


def is_shortcode_text(node: PageElement) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, Comment) and bool(
        SHORTCODE_RE.search(str(node))
    )


def is_blank(node: PageElement | None) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, Comment) and not str(node).strip(HTML_WHITESPACE)


def adjacent_siblings(node: PageElement) -> list[PageElement]:
    """Return the nearest non-blank previous and next siblings of *node*."""
    result: list[PageElement] = []
    prev = node.previous_sibling
    while prev is not None and is_blank(prev):
        prev = prev.previous_sibling
    if prev is not None:
        result.append(prev)
    nxt = node.next_sibling
    while nxt is not None and is_blank(nxt):
        nxt = nxt.next_sibling
    if nxt is not None:
        result.append(nxt)
    return result


def parse_dimension(value: str | None) -> int | None:
    """Parse a width/height attribute (``"640"``, ``"640px"``) into an int."""
    if not value:
        return None
    match = re.fullmatch(r"\s*(\d{1,5})(?:px)?\s*", str(value))
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def is_attached(el: PageElement, root: PageElement) -> bool:
    """True while *el* is still part of the tree rooted at *root*."""
    if el is root:
        return True
    return any(parent is root for parent in el.parents)
