"""Facade Generator: swap heavy third-party embeds for lightweight placeholders.

Each placeholder is a ``<div>`` carrying:

* the kind's class name and ``data-facade="<kind>"``,
* either the literal source (YouTube: ``data-original-src`` plus
  ``data-video-id``) or the original outer markup as a base64 payload
  (``data-tweet-html``, ``data-insta-html``...),
* inline styling for the unloaded state, with every decorative child set
  to ``pointer-events:none`` so clicks land on the placeholder itself.

CSS background images are not replaced: the element keeps its content, loses
the ``background-image`` declaration, and gets ``class="lazy-background"``
plus ``data-bg-src``.

The runtime script in ``passes.runtime`` reverses all of this in the browser.
"""

from __future__ import annotations

import html
import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from parsing.document import parse_fragment, serialize
from parsing.filtering import (
    FACADE_ATTR,
    add_class,
    is_attached,
    is_inside,
    is_inside_facade,
    parse_dimension,
)
from parsing.urls import is_data_uri
from passes.contract import (
    BACKGROUND,
    BACKGROUND_SRC_ATTR,
    INSTAGRAM,
    LAZY_KIND_ATTR,
    ORIGINAL_SRC_ATTR,
    REDDIT,
    SOCIAL_KINDS,
    TIKTOK,
    TWEET,
    VIDEO,
    VIDEO_ID_ATTR,
    YOUTUBE,
    FacadeKind,
)
from passes.encoding import encode_markup

if TYPE_CHECKING:
    from pipeline.context import PassContext

logger = logging.getLogger("leanpost")

_EMBED_ID_RE = re.compile(r"embed/([^?&/#\"']+)")
_AUTHOR_RE = re.compile(r"\u2014 (.*?) \(@")
_BACKGROUND_DECL_RE = re.compile(
    r"background-image\s*:\s*url\(\s*(['\"]?)(.*?)\1\s*\)\s*(?:!important\s*)?(?:;|$)",
    re.I | re.S,
)
_PREVIEW_CHARS = 150

# Elements whose contents are never facaded (fallback markup, templates).
_SKIP_CONTAINERS = frozenset({"noscript", "template"})

_INERT = "pointer-events:none;"

_CARD_STYLE = (
    "display:block;border:1px solid #374151;border-radius:12px;padding:16px;"
    "cursor:pointer;background-color:#1a202c;color:#e5e7eb;"
    "font-family:system-ui,sans-serif;font-size:15px;line-height:1.4;"
    "max-width:{max_width};margin:1rem auto;"
)

_YOUTUBE_OVERLAY = (
    f'<div style="position:absolute;top:0;left:0;width:100%;height:100%;display:flex;'
    f'align-items:center;justify-content:center;background:rgba(0,0,0,0.2);{_INERT}">'
    '<svg aria-hidden="true" style="width:68px;height:48px;filter:drop-shadow(0 0 5px rgba(0,0,0,0.5));" '
    'viewBox="0 0 68 48"><path d="M66.52,7.74c-0.78-2.93-2.49-5.41-5.42-6.19C55.79,.13,34,0,34,0'
    "S12.21,.13,6.9,1.55C3.97,2.33,2.27,4.81,1.48,7.74C0.06,13.05,0,24,0,24s0.06,10.95,1.48,16.26"
    "c0.78,2.93,2.49,5.41,5.42,6.19C12.21,47.87,34,48,34,48s21.79-0.13,27.1-1.55c2.93-0.78,4.64-3.26,"
    '5.42-6.19C67.94,34.95,68,24,68,24S67.94,13.05,66.52,7.74z" fill="#f00"></path>'
    '<path d="M 45,24 27,14 27,34" fill="#fff"></path></svg></div>'
)

_ICONS = {
    TWEET.name: (
        '<svg aria-hidden="true" viewBox="0 0 24 24" fill="currentColor" style="width:24px;height:24px;">'
        '<path d="M18.244 2.25h3.308l-7.227 8.26 8.502 11.24H16.17l-5.214-6.817L4.99 21.75H1.68'
        'l7.73-8.835L1.254 2.25H8.08l4.713 6.231zm-1.161 17.52h1.833L7.084 4.126H5.117z"></path></svg>'
    ),
    INSTAGRAM.name: (
        '<svg aria-hidden="true" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2" '
        'style="width:24px;height:24px;"><rect x="2" y="2" width="20" height="20" rx="5" ry="5"></rect>'
        '<path d="M16 11.37A4 4 0 1 1 12.63 8 4 4 0 0 1 16 11.37z"></path>'
        '<line x1="17.5" y1="6.5" x2="17.51" y2="6.5"></line></svg>'
    ),
    TIKTOK.name: (
        '<svg aria-hidden="true" viewBox="0 0 24 24" fill="currentColor" style="width:24px;height:24px;">'
        '<path d="M16.6 5.82A4.28 4.28 0 0 1 15.54 3h-3.09v12.4a2.59 2.59 0 1 1-2.59-2.59c.27 0 .53.04'
        '.77.12V9.77a5.7 5.7 0 1 0 4.91 5.63V9.01a7.3 7.3 0 0 0 4.26 1.36V7.3a4.28 4.28 0 0 1-3.2-1.48z">'
        "</path></svg>"
    ),
    REDDIT.name: (
        '<svg aria-hidden="true" viewBox="0 0 24 24" fill="currentColor" style="width:24px;height:24px;">'
        '<circle cx="12" cy="13" r="7"></circle><circle cx="18" cy="5" r="2"></circle></svg>'
    ),
}

_CARD_TEXT = {
    TWEET.name: ("View on X", "Load Tweet", "550px"),
    INSTAGRAM.name: ("View on Instagram", "Load Instagram Post", "540px"),
    TIKTOK.name: ("View on TikTok", "Load TikTok Video", "325px"),
    REDDIT.name: ("View on Reddit", "Load Reddit Post", "550px"),
}

_DEFAULT_PREVIEW = {
    TWEET.name: "A post from X.",
    INSTAGRAM.name: "A post from Instagram.",
    TIKTOK.name: "A video from TikTok.",
    REDDIT.name: "A post from Reddit.",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _css_url(url: str) -> str:
    """Quote a URL for use inside an inline ``style`` attribute."""
    cleaned = url.replace("'", "%27").replace("\n", "").replace("\r", "")
    return f"url('{cleaned}')"


def _aspect_ratio(el: Tag) -> tuple[str, str]:
    """Return ``(width_css, aspect_ratio_css)`` from width/height attributes."""
    width = parse_dimension(el.get("width"))
    height = parse_dimension(el.get("height"))
    ratio = f"{width}/{height}" if width and height else "16/9"
    return (f"{width}px" if width else "100%"), ratio


def _new_placeholder(soup: BeautifulSoup, kind: FacadeKind, style: str, label: str) -> Tag:
    placeholder = soup.new_tag("div")
    placeholder["class"] = kind.css_class
    placeholder[FACADE_ATTR] = kind.name
    placeholder["role"] = "button"
    placeholder["tabindex"] = "0"
    placeholder["aria-label"] = label
    placeholder["style"] = style
    return placeholder


def _decorate(placeholder: Tag, markup: str) -> None:
    for node in parse_fragment(markup):
        placeholder.append(node)


def _skippable(el: Tag, soup: BeautifulSoup) -> bool:
    return (
        not is_attached(el, soup)
        or is_inside_facade(el)
        or is_inside(el, _SKIP_CONTAINERS)
    )


def youtube_id_from_src(src: str) -> str | None:
    """Extract the video ID from an embed URL, falling back to a regex scan."""
    try:
        segments = [s for s in urlsplit(src).path.split("/") if s]
    except ValueError:
        segments = []
    if "embed" in segments:
        index = segments.index("embed")
        if index + 1 < len(segments) and segments[index + 1] != "videoseries":
            return segments[index + 1]
    match = _EMBED_ID_RE.search(src)
    if match and match.group(1) != "videoseries":
        return match.group(1)
    return None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_youtube_facade(soup: BeautifulSoup, iframe: Tag) -> Tag | None:
    """Build a click-to-play placeholder for a YouTube iframe, or None."""
    src = (iframe.get("src") or "").strip()
    video_id = youtube_id_from_src(src)
    if not video_id:
        return None
    width_css, ratio = _aspect_ratio(iframe)
    style = (
        f"position:relative;display:block;cursor:pointer;width:{width_css};max-width:100%;"
        f"aspect-ratio:{ratio};"
        f"background-image:{_css_url(f'https://i.ytimg.com/vi/{video_id}/hqdefault.jpg')};"
        "background-size:cover;background-position:center;border-radius:8px;overflow:hidden;"
    )
    title = (iframe.get("title") or "").strip() or "YouTube video"
    placeholder = _new_placeholder(soup, YOUTUBE, style, f"Play video: {title}")
    placeholder[VIDEO_ID_ATTR] = video_id
    placeholder[ORIGINAL_SRC_ATTR] = src
    _decorate(placeholder, _YOUTUBE_OVERLAY)
    return placeholder


def _preview_text(kind: FacadeKind, embed: Tag) -> tuple[str, str]:
    """Return ``(author, preview)`` text for a social card."""
    paragraph = embed.find("p")
    preview = paragraph.get_text(" ", strip=True) if paragraph else ""
    if len(preview) > _PREVIEW_CHARS:
        preview = preview[:_PREVIEW_CHARS] + "…"
    author = ""
    if kind is TWEET:
        match = _AUTHOR_RE.search(embed.get_text())
        author = match.group(1).strip() if match else "X User"
    return author, preview or _DEFAULT_PREVIEW[kind.name]


def _card_markup(kind: FacadeKind, author: str, preview: str) -> str:
    subtitle, button, _ = _CARD_TEXT[kind.name]
    heading = f'<strong style="font-weight:bold;color:#fff;">{html.escape(author)}</strong>' if author else ""
    return (
        f'<div style="display:flex;align-items:center;margin-bottom:12px;{_INERT}">'
        '<div style="width:48px;height:48px;background-color:#374151;border-radius:9999px;display:flex;'
        f'align-items:center;justify-content:center;flex-shrink:0;margin-right:12px;{_INERT}">'
        f"{_ICONS[kind.name]}</div>"
        f'<div style="{_INERT}">{heading}<div style="color:#8899a6;">{subtitle}</div></div></div>'
        f'<p style="margin:0 0 16px 0;color:#e5e7eb;{_INERT}">{html.escape(preview)}</p>'
        '<div style="text-align:center;padding:10px;border:1px solid #374151;border-radius:9999px;'
        f'font-weight:bold;color:#fff;{_INERT}">{button}</div>'
    )


def _remove_adjacent_loader(kind: FacadeKind, embed: Tag) -> bool:
    sibling = embed.find_next_sibling()
    if sibling is None or sibling.name != "script":
        return False
    src = sibling.get("src") or ""
    if any(marker in src for marker in kind.loader_markers):
        sibling.decompose()
        return True
    return False


def build_social_facade(soup: BeautifulSoup, kind: FacadeKind, embed: Tag) -> Tag:
    """Build a placeholder holding the embed's outer markup as a base64 payload."""
    author, preview = _preview_text(kind, embed)
    _, button, max_width = _CARD_TEXT[kind.name]
    placeholder = _new_placeholder(soup, kind, _CARD_STYLE.format(max_width=max_width), button)
    placeholder[kind.payload_attr] = encode_markup(serialize(embed))
    _decorate(placeholder, _card_markup(kind, author, preview))
    return placeholder


def build_video_facade(soup: BeautifulSoup, video: Tag) -> Tag:
    """Build a restore-when-visible placeholder for a raw ``<video>``."""
    width_css, ratio = _aspect_ratio(video)
    style = (
        f"position:relative;display:block;width:{width_css};max-width:100%;aspect-ratio:{ratio};"
        "background-color:#000;"
    )
    poster = (video.get("poster") or "").strip()
    if poster:
        style += f"background-image:{_css_url(poster)};background-size:cover;background-position:center;"
    placeholder = _new_placeholder(soup, VIDEO, style, "Load video")
    placeholder[VIDEO.payload_attr] = encode_markup(serialize(video))
    _decorate(placeholder, _YOUTUBE_OVERLAY.replace('fill="#f00"', 'fill="#212121"'))
    return placeholder


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def generate_embed_facades(soup: BeautifulSoup) -> dict[str, int]:
    """Replace YouTube iframes, social blockquotes and videos; return counts per kind."""
    counts: dict[str, int] = {}

    def _replace(el: Tag, placeholder: Tag, kind: FacadeKind) -> None:
        el.replace_with(placeholder)
        el.decompose()
        counts[kind.name] = counts.get(kind.name, 0) + 1

    for iframe in soup.select(YOUTUBE.source_selector):
        if _skippable(iframe, soup):
            continue
        placeholder = build_youtube_facade(soup, iframe)
        if placeholder is not None:
            _replace(iframe, placeholder, YOUTUBE)

    for kind in SOCIAL_KINDS:
        for embed in soup.select(kind.source_selector):
            if _skippable(embed, soup):
                continue
            _remove_adjacent_loader(kind, embed)
            _replace(embed, build_social_facade(soup, kind, embed), kind)

    for video in soup.select(VIDEO.source_selector):
        if _skippable(video, soup):
            continue
        _replace(video, build_video_facade(soup, video), VIDEO)

    return counts


def defer_background_images(soup: BeautifulSoup) -> int:
    """Move inline ``background-image`` URLs into ``data-bg-src``; return the count."""
    count = 0
    for el in soup.select('[style*="background-image"], [style*="BACKGROUND-IMAGE"]'):
        if _skippable(el, soup) or el.has_attr(BACKGROUND_SRC_ATTR):
            continue
        style = el.get("style") or ""
        match = _BACKGROUND_DECL_RE.search(style)
        if match is None:
            continue
        url = match.group(2).strip()
        if not url or is_data_uri(url):
            continue
        remaining = (style[: match.start()] + style[match.end():]).strip()
        remaining = re.sub(r";\s*;", ";", remaining).strip("; ")
        if remaining:
            el["style"] = remaining + ";"
        else:
            del el["style"]
        add_class(el, BACKGROUND.css_class)
        el[LAZY_KIND_ATTR] = BACKGROUND.name
        el[BACKGROUND_SRC_ATTR] = url
        count += 1
    return count


_KIND_LABELS = {
    YOUTUBE.name: "YouTube embed(s)",
    TWEET.name: "X/Twitter post embed(s)",
    INSTAGRAM.name: "Instagram embed(s)",
    TIKTOK.name: "TikTok embed(s)",
    REDDIT.name: "Reddit embed(s)",
    VIDEO.name: "<video> element(s)",
}


def run_embeds(ctx: PassContext) -> None:
    counts = generate_embed_facades(ctx.soup)
    for kind_name, count in counts.items():
        ctx.record(f"Replaced {count} {_KIND_LABELS[kind_name]} with lightweight click-to-load facades.")
    if counts:
        logger.debug("facades generated", extra={"step": "facades", "counts": counts})


def run_backgrounds(ctx: PassContext) -> None:
    count = defer_background_images(ctx.soup)
    if count:
        ctx.record(f"Deferred {count} CSS background image(s) until they scroll into view.")
