"""Markup contract shared by the facade pass, the idempotency guard and the runtime script.

The companion runtime script is generated from these tables (see
``passes.runtime``), so changing a class name or payload attribute here
changes both sides at once.
"""

from __future__ import annotations

from dataclasses import dataclass

from parsing.filtering import FACADE_ATTR

RUNTIME_SCRIPT_ID = "leanpost-lazy-runtime"
RUNTIME_VERSION = "3"

# Kind tag for elements that are marked in place rather than replaced.
LAZY_KIND_ATTR = "data-lazy"

VIDEO_ID_ATTR = "data-video-id"
ORIGINAL_SRC_ATTR = "data-original-src"
BACKGROUND_SRC_ATTR = "data-bg-src"


@dataclass(frozen=True)
class FacadeKind:
    """One kind of placeholder and everything needed to restore it."""

    name: str
    css_class: str
    payload_attr: str | None = None
    source_selector: str | None = None
    loader_id: str | None = None
    loader_src: str | None = None
    loader_markers: tuple[str, ...] = ()
    trigger: str = "click"


YOUTUBE = FacadeKind(
    name="youtube",
    css_class="lazy-youtube-embed",
    source_selector=(
        'iframe[src*="youtube.com/embed/"], iframe[src*="youtube-nocookie.com/embed/"]'
    ),
)
TWEET = FacadeKind(
    name="tweet",
    css_class="lazy-tweet-facade",
    payload_attr="data-tweet-html",
    source_selector="blockquote.twitter-tweet, blockquote.twitter-video",
    loader_id="twitter-wjs",
    loader_src="https://platform.twitter.com/widgets.js",
    loader_markers=("platform.twitter.com/widgets.js", "platform.x.com/widgets.js"),
)
INSTAGRAM = FacadeKind(
    name="instagram",
    css_class="lazy-instagram-embed",
    payload_attr="data-insta-html",
    source_selector="blockquote.instagram-media",
    loader_id="instagram-embed-script",
    loader_src="https://www.instagram.com/embed.js",
    loader_markers=("instagram.com/embed.js",),
)
TIKTOK = FacadeKind(
    name="tiktok",
    css_class="lazy-tiktok-facade",
    payload_attr="data-tiktok-html",
    source_selector="blockquote.tiktok-embed",
    loader_id="tiktok-embed-script",
    loader_src="https://www.tiktok.com/embed.js",
    loader_markers=("tiktok.com/embed.js",),
)
REDDIT = FacadeKind(
    name="reddit",
    css_class="lazy-reddit-facade",
    payload_attr="data-reddit-html",
    source_selector="blockquote.reddit-embed-bq, blockquote.reddit-card",
    loader_id="reddit-embed-script",
    loader_src="https://embed.reddit.com/widgets.js",
    loader_markers=("embed.reddit.com/widgets.js", "redditmedia.com/widgets/platform.js"),
)
VIDEO = FacadeKind(
    name="video",
    css_class="lazy-video-facade",
    payload_attr="data-video-html",
    source_selector="video",
    trigger="visible",
)
BACKGROUND = FacadeKind(
    name="background-image",
    css_class="lazy-background",
    trigger="visible",
)

SOCIAL_KINDS: tuple[FacadeKind, ...] = (TWEET, INSTAGRAM, TIKTOK, REDDIT)
ALL_KINDS: tuple[FacadeKind, ...] = (YOUTUBE, TWEET, INSTAGRAM, TIKTOK, REDDIT, VIDEO, BACKGROUND)

# Class markers of the id-less runtime written by earlier releases.
LEGACY_RUNTIME_MARKERS = (".lazy-youtube-embed", ".lazy-tweet-facade")


def placeholder_selector() -> str:
    """CSS selector matching every placeholder or marked element this pipeline writes."""
    return f"[{FACADE_ATTR}], [{LAZY_KIND_ATTR}]"
