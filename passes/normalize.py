"""Embed Normalizer: rewrite WordPress embed blocks into canonical embed markup.

The block editor stores an embed as::

    <figure class="wp-block-embed is-provider-twitter wp-block-embed-twitter">
      <div class="wp-block-embed__wrapper">https://twitter.com/u/status/1</div>
    </figure>

which only renders through server-side oEmbed.  Each rule below extracts
the URL from the wrapper text and swaps the wrapper for the markup the
facade pass knows how to match (``blockquote.twitter-tweet``, a YouTube
``iframe``...).  The ``figure`` itself stays, so captions and alignment
classes survive.  If the URL does not validate the block is left untouched.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup

from parsing.document import parse_fragment
from parsing.urls import host_matches

if TYPE_CHECKING:
    from pipeline.context import PassContext

logger = logging.getLogger("leanpost")

_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{6,20}$")
_TIKTOK_ID_RE = re.compile(r"/video/(\d+)")


@dataclass(frozen=True)
class EmbedRule:
    """How to recognize one provider's block and what to replace it with."""

    provider: str
    selector: str
    build: Callable[[str], Optional[str]]


def _parse_http_url(url: str):  # noqa: ANN202
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"not an absolute http(s) URL: {url!r}")
    return parts


def youtube_video_id(url: str) -> str | None:
    """Extract the video ID from watch, short, embed and youtu.be URLs."""
    try:
        parts = _parse_http_url(url)
    except ValueError:
        return None
    host = parts.hostname.lower()
    candidate: str | None = None
    if host_matches(host, "youtu.be"):
        candidate = parts.path.strip("/").split("/")[0]
    elif host_matches(host, "youtube.com") or host_matches(host, "youtube-nocookie.com"):
        segments = [s for s in parts.path.split("/") if s]
        if segments and segments[0] in ("embed", "shorts", "live", "v") and len(segments) > 1:
            candidate = segments[1]
        else:
            candidate = (parse_qs(parts.query).get("v") or [None])[0]
    if candidate and _YOUTUBE_ID_RE.match(candidate):
        return candidate
    return None


def _build_tweet(url: str) -> str | None:
    parts = _parse_http_url(url)
    host = parts.hostname.lower()
    if not (host_matches(host, "twitter.com") or host_matches(host, "x.com")):
        return None
    if "/status/" not in parts.path:
        return None
    return f'<blockquote class="twitter-tweet"><a href="{html.escape(url)}"></a></blockquote>'


def _build_youtube(url: str) -> str | None:
    video_id = youtube_video_id(url)
    if video_id is None:
        return None
    return (
        f'<iframe width="560" height="315" src="https://www.youtube.com/embed/{video_id}" '
        'title="YouTube video player" frameborder="0" '
        'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture" '
        "allowfullscreen></iframe>"
    )


def _build_reddit(url: str) -> str | None:
    parts = _parse_http_url(url)
    if not host_matches(parts.hostname.lower(), "reddit.com") or "/comments/" not in parts.path:
        return None
    return f'<blockquote class="reddit-embed-bq"><a href="{html.escape(url)}"></a></blockquote>'


def _build_instagram(url: str) -> str | None:
    parts = _parse_http_url(url)
    if not host_matches(parts.hostname.lower(), "instagram.com"):
        return None
    if not re.match(r"^/(p|reel|tv)/[^/]+", parts.path):
        return None
    escaped = html.escape(url)
    return (
        f'<blockquote class="instagram-media" data-instgrm-permalink="{escaped}" '
        f'data-instgrm-version="14"><a href="{escaped}"></a></blockquote>'
    )


def _build_tiktok(url: str) -> str | None:
    parts = _parse_http_url(url)
    if not host_matches(parts.hostname.lower(), "tiktok.com"):
        return None
    match = _TIKTOK_ID_RE.search(parts.path)
    if not match:
        return None
    escaped = html.escape(url)
    return (
        f'<blockquote class="tiktok-embed" cite="{escaped}" data-video-id="{match.group(1)}">'
        f'<section><a href="{escaped}"></a></section></blockquote>'
    )


EMBED_RULES: tuple[EmbedRule, ...] = (
    EmbedRule(
        "twitter",
        "figure.wp-block-embed-twitter, figure.is-provider-twitter, figure.is-provider-x",
        _build_tweet,
    ),
    EmbedRule("youtube", "figure.wp-block-embed-youtube, figure.is-provider-youtube", _build_youtube),
    EmbedRule("reddit", "figure.wp-block-embed-reddit, figure.is-provider-reddit", _build_reddit),
    EmbedRule(
        "instagram", "figure.wp-block-embed-instagram, figure.is-provider-instagram", _build_instagram
    ),
    EmbedRule("tiktok", "figure.wp-block-embed-tiktok, figure.is-provider-tiktok", _build_tiktok),
)


def normalize_embed_blocks(soup: BeautifulSoup) -> dict[str, int]:
    """Rewrite recognized embed blocks in place; return counts per provider."""
    counts: dict[str, int] = {}
    for rule in EMBED_RULES:
        for figure in soup.select(rule.selector):
            wrapper = figure.select_one(".wp-block-embed__wrapper")
            if wrapper is None or wrapper.find(True) is not None:
                # Missing wrapper, or it already holds real embed markup.
                continue
            url = wrapper.get_text(strip=True)
            if not url:
                continue
            try:
                markup = rule.build(url)
            except ValueError as exc:
                logger.debug("skipping %s embed block: %s", rule.provider, exc)
                continue
            if markup is None:
                continue
            replacement = parse_fragment(markup)
            for node in replacement:
                wrapper.insert_before(node)
            wrapper.decompose()
            counts[rule.provider] = counts.get(rule.provider, 0) + 1
    return counts


def run(ctx: PassContext) -> None:
    counts = normalize_embed_blocks(ctx.soup)
    for provider, count in counts.items():
        ctx.record(f"Normalized {count} {provider} embed block(s) into standard embed markup.")
