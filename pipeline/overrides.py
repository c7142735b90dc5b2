"""Merge AI recommendations into the caller's CleaningOptions.

Recommendations that name canonical option keys in ``options`` are applied
directly.  Items without keys fall back to the legacy free-text match: the
lower-cased title is scanned for the phrases below.  That match is kept for
plans produced before the keyed format existed and is known to be loose;
new integrations should always send keys.

Overrides only ever switch flags on.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from models.options import CleaningOptions, resolve_option_key
from models.recommendation import Recommendation

logger = logging.getLogger("leanpost")

# (phrases, option attribute) -- any phrase in the title enables the option.
LEGACY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("offscreen images", "defer offscreen", "lazy-load images", "lazy load images"), "lazy_load_images"),
    (("third-party", "third party", "embed", "facade"), "lazy_load_embeds"),
    (("background image",), "lazy_load_background_images"),
    (("next-gen", "modern image format", "webp", "avif"), "optimize_images"),
    (("properly size images", "responsive image", "srcset"), "add_responsive_srcset"),
    (("render-blocking", "render blocking"), "defer_scripts"),
    (("unused javascript", "javascript execution"), "defer_scripts"),
    (("font-display", "web font", "webfont", "text remains visible"), "optimize_font_loading"),
    (("preconnect", "dns-prefetch", "required origins"), "add_prefetch_hints"),
    (("unused css", "critical css", "css delivery"), "optimize_css_loading"),
    (("minify css", "minify javascript", "minify"), "minify_inline_css_js"),
    (("dom size", "excessive dom"), "remove_empty_attributes"),
    (("svg",), "optimize_svgs"),
    (("semantic", "heading elements", "landmark"), "semantic_rewrite"),
)


def keys_for(recommendation: Recommendation) -> list[str]:
    """Option attribute names a single recommendation asks for."""
    keyed = [name for name in map(resolve_option_key, recommendation.options) if name]
    if keyed:
        return keyed
    title = recommendation.title.lower()
    return [name for phrases, name in LEGACY_KEYWORDS if any(p in title for p in phrases)]


def merge_recommendations(
    options: CleaningOptions, recommendations: Optional[Iterable[Recommendation]]
) -> tuple[CleaningOptions, list[str]]:
    """Return ``(effective_options, newly_enabled)``.

    ``newly_enabled`` lists the attribute names that were off in *options*
    and got switched on, in first-seen order.
    """
    if not recommendations:
        return options, []
    enabled: list[str] = []
    for recommendation in recommendations:
        for name in keys_for(recommendation):
            if not getattr(options, name) and name not in enabled:
                enabled.append(name)
    if enabled:
        logger.info("applied AI overrides", extra={"step": "overrides", "overrides": enabled})
    return options.with_enabled(enabled), enabled
