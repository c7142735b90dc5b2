"""Image passes: loading policy, responsive srcset synthesis and format upgrade.

The three passes are independent and gated by separate options, but run in
this order so that synthesized ``srcset`` candidates also receive the
next-gen format parameter.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import Tag

from parsing.filtering import is_inside, is_inside_facade, parse_dimension
from parsing.urls import (
    get_query_param,
    host_matches,
    host_of,
    is_data_uri,
    path_basename,
    path_extension,
    set_query_param,
)

if TYPE_CHECKING:
    from pipeline.context import PassContext

logger = logging.getLogger("leanpost")

# WordPress-style generated sizes: photo-1024x768.jpg
_FILENAME_DIMENSIONS_RE = re.compile(
    r"-(\d{2,5})x(\d{2,5})\.(?:jpe?g|png|gif|webp|avif)$", re.I
)
_SRCSET_ENTRY_RE = re.compile(r"^\s*(\S+)(\s+[\d.]+[wx])?\s*$")

_SKIP_CONTAINERS = frozenset({"noscript", "template"})


@dataclass(frozen=True)
class CdnProfile:
    """An image CDN that resizes and converts through query parameters."""

    domain: str
    width_param: str
    format_param: str | None


# Photon (Jetpack) negotiates WebP/AVIF from the Accept header itself, so it
# only takes part in srcset synthesis.
CDN_PROFILES: tuple[CdnProfile, ...] = (
    CdnProfile("wp.com", "w", None),
    CdnProfile("imgix.net", "w", "fm"),
    CdnProfile("images.unsplash.com", "w", "fm"),
    CdnProfile("images.ctfassets.net", "w", "fm"),
    CdnProfile("cdn.sanity.io", "w", "fm"),
    CdnProfile("cdn.shopify.com", "width", "format"),
)

def cdn_profile_for(url: str) -> CdnProfile | None:
    """Return the CDN profile serving *url*, or None for unrecognized hosts."""
    if not url or is_data_uri(url):
        return None
    host = host_of(url)
    if not host:
        return None
    for profile in CDN_PROFILES:
        if host_matches(host, profile.domain):
            return profile
    return None


def content_images(soup: BeautifulSoup) -> list[Tag]:
    """Return ``<img>`` elements in document order, excluding facades and fallbacks."""
    return [
        img
        for img in soup.find_all("img")
        if not is_inside_facade(img) and not is_inside(img, _SKIP_CONTAINERS)
    ]


def filename_dimensions(src: str) -> tuple[int, int] | None:
    """Parse ``name-WxH.ext`` dimensions out of an image URL."""
    match = _FILENAME_DIMENSIONS_RE.search(path_basename(src))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def intrinsic_width(img: Tag) -> int | None:
    """Best-known intrinsic width: the width attribute, else the filename."""
    width = parse_dimension(img.get("width"))
    if width:
        return width
    dims = filename_dimensions(img.get("src") or "")
    return dims[0] if dims else None


# ---------------------------------------------------------------------------
# Loading policy (LCP protection + lazy loading + dimension back-fill)
# ---------------------------------------------------------------------------


def apply_loading_policy(soup: BeautifulSoup, eager_count: int) -> dict[str, int]:
    """Eager-load the first *eager_count* images, lazy-load the rest.

    The very first image also gets ``fetchpriority="high"``.  Missing
    width/height are back-filled from ``name-WxH.ext`` filenames.
    """
    stats = {"eager": 0, "lazy": 0, "dimensions": 0}
    for index, img in enumerate(content_images(soup)):
        src = img.get("src") or ""
        if not img.has_attr("width") and not img.has_attr("height"):
            dims = filename_dimensions(src)
            if dims:
                img["width"], img["height"] = str(dims[0]), str(dims[1])
                stats["dimensions"] += 1

        if index < eager_count:
            if (img.get("loading") or "").lower() != "eager":
                img["loading"] = "eager"
                stats["eager"] += 1
            if index == 0 and not img.has_attr("fetchpriority"):
                img["fetchpriority"] = "high"
            continue

        if not img.has_attr("loading"):
            img["loading"] = "lazy"
            stats["lazy"] += 1
        if not img.has_attr("decoding"):
            img["decoding"] = "async"
    return stats


# ---------------------------------------------------------------------------
# Responsive srcset
# ---------------------------------------------------------------------------


def build_srcset(src: str, profile: CdnProfile, max_width: int, ladder: tuple[int, ...]) -> str | None:
    """Return a ``srcset`` value for widths up to *max_width*, or None if too few."""
    widths = [w for w in ladder if w < max_width]
    widths.append(max_width)
    if len(widths) < 2:
        return None
    return ", ".join(
        f"{set_query_param(src, profile.width_param, str(width))} {width}w" for width in widths
    )


def add_responsive_srcsets(soup: BeautifulSoup, ladder: tuple[int, ...]) -> int:
    """Synthesize srcset/sizes for CDN images with a known intrinsic width."""
    count = 0
    for img in content_images(soup):
        if img.has_attr("srcset"):
            continue
        src = (img.get("src") or "").strip()
        profile = cdn_profile_for(src)
        if profile is None or path_extension(src) == "svg":
            continue
        width = intrinsic_width(img)
        if not width:
            continue
        try:
            srcset = build_srcset(src, profile, width, ladder)
        except ValueError as exc:
            logger.debug("skipping srcset for %s: %s", src, exc)
            continue
        if srcset is None:
            continue
        img["srcset"] = srcset
        if not img.has_attr("sizes"):
            img["sizes"] = f"(max-width: {width}px) 100vw, {width}px"
        count += 1
    return count


# ---------------------------------------------------------------------------
# Next-gen format upgrade
# ---------------------------------------------------------------------------


def upgrade_url(url: str, target: str) -> str | None:
    """Return *url* rewritten to request *target* format, or None if not applicable."""
    profile = cdn_profile_for(url)
    if profile is None or profile.format_param is None:
        return None
    if path_extension(url) == "svg":
        return None
    current = (get_query_param(url, profile.format_param) or "").lower()
    if current == target:
        return None
    return set_query_param(url, profile.format_param, target)


def upgrade_srcset(srcset: str, target: str) -> str | None:
    """Rewrite each candidate of a srcset; None when nothing changed."""
    changed = False
    entries: list[str] = []
    for entry in srcset.split(","):
        match = _SRCSET_ENTRY_RE.match(entry)
        if not match:
            entries.append(entry.strip())
            continue
        url, descriptor = match.group(1), match.group(2) or ""
        upgraded = upgrade_url(url, target)
        if upgraded is not None:
            url = upgraded
            changed = True
        entries.append(f"{url}{descriptor}")
    return ", ".join(entries) if changed else None


def upgrade_image_formats(soup: BeautifulSoup, prefer_avif: bool) -> int:
    """Request WebP (or AVIF) from recognized CDNs in img src and srcset."""
    target = "avif" if prefer_avif else "webp"
    count = 0
    for img in content_images(soup):
        touched = False
        try:
            upgraded = upgrade_url(img.get("src") or "", target)
            if upgraded is not None:
                img["src"] = upgraded
                touched = True
            if img.has_attr("srcset"):
                new_srcset = upgrade_srcset(img["srcset"], target)
                if new_srcset is not None:
                    img["srcset"] = new_srcset
                    touched = True
        except ValueError as exc:
            logger.debug("skipping format upgrade: %s", exc)
            continue
        if touched:
            count += 1
    return count


def run_loading(ctx: PassContext) -> None:
    stats = apply_loading_policy(ctx.soup, ctx.settings.eager_image_count)
    if stats["eager"]:
        ctx.record(f"Marked {stats['eager']} above-the-fold image(s) for eager, high-priority loading.")
    if stats["lazy"]:
        ctx.record(f"Added native lazy loading to {stats['lazy']} image(s).")
    if stats["dimensions"]:
        ctx.record(f"Added width/height to {stats['dimensions']} image(s) to prevent layout shift.")


def run_srcset(ctx: PassContext) -> None:
    count = add_responsive_srcsets(ctx.soup, ctx.settings.srcset_breakpoints)
    if count:
        ctx.record(f"Generated responsive srcset/sizes for {count} image(s).")


def run_formats(ctx: PassContext) -> None:
    count = upgrade_image_formats(ctx.soup, ctx.options.convert_to_avif)
    if count:
        target = "AVIF" if ctx.options.convert_to_avif else "WebP"
        ctx.record(f"Requested {target} delivery for {count} CDN image(s).")
