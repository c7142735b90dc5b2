"""Tunables that are not part of the user-facing option set."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("leanpost")

DEFAULT_BREAKPOINTS: tuple[int, ...] = (320, 480, 640, 768, 1024, 1280, 1536, 1920)


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d", name, raw, default)
        return default
    return max(minimum, value)


@dataclass(frozen=True)
class PipelineSettings:
    """Settings controlling pass behaviour beyond the boolean options.

    eager_image_count: how many leading images are protected as LCP
        candidates (loaded eagerly, never lazy).
    max_preconnect_hints: cap on injected ``<link rel="preconnect">`` tags.
    srcset_breakpoints: width ladder for synthesized ``srcset`` values.
    """

    eager_image_count: int = 1
    max_preconnect_hints: int = 6
    srcset_breakpoints: tuple[int, ...] = DEFAULT_BREAKPOINTS

    @classmethod
    def from_env(cls) -> PipelineSettings:
        """Build settings from ``LEANPOST_*`` environment variables."""
        return cls(
            eager_image_count=_env_int("LEANPOST_EAGER_IMAGES", 1, minimum=1),
            max_preconnect_hints=_env_int("LEANPOST_MAX_PRECONNECT", 6),
        )
