"""Idempotency guard: remove artifacts of a previous pipeline run.

Runs once, right after parsing and before any pass, so that feeding the
pipeline its own output converges instead of accumulating duplicate
runtime scripts or double-loading third-party widgets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup

from parsing.filtering import is_inside_facade
from passes.contract import (
    LEGACY_RUNTIME_MARKERS,
    RUNTIME_SCRIPT_ID,
    SOCIAL_KINDS,
    FacadeKind,
)

logger = logging.getLogger("leanpost")


@dataclass(frozen=True)
class GuardReport:
    """What the guard removed."""

    runtime_scripts: int = 0
    loader_scripts: int = 0

    @property
    def had_previous_run(self) -> bool:
        return self.runtime_scripts > 0


def _is_runtime_script(script) -> bool:  # noqa: ANN001
    if script.get("id") == RUNTIME_SCRIPT_ID:
        return True
    if script.get("src"):
        return False
    text = script.string or ""
    return all(marker in text for marker in LEGACY_RUNTIME_MARKERS)


def _is_loader_for(script, kind: FacadeKind) -> bool:  # noqa: ANN001
    if kind.loader_id and script.get("id") == kind.loader_id:
        return True
    src = script.get("src") or ""
    return any(marker in src for marker in kind.loader_markers)


def _has_facade(soup: BeautifulSoup, kind: FacadeKind) -> bool:
    return soup.select_one(f".{kind.css_class}") is not None


def _has_raw_embed(soup: BeautifulSoup, kind: FacadeKind) -> bool:
    return any(
        not is_inside_facade(el) for el in soup.select(kind.source_selector or "")
    )


def strip_previous_run(soup: BeautifulSoup, *, lazy_load_embeds: bool) -> GuardReport:
    """Remove prior runtime scripts and orphaned platform loader scripts.

    A platform loader (``widgets.js``, ``embed.js``) is removed when a
    placeholder of that platform is already present (the runtime loads the
    loader itself on restore), or when embeds are about to be converted to
    placeholders in this run.  Loaders belonging to embeds that stay live
    are left alone.
    """
    runtime_count = 0
    for script in soup.find_all("script"):
        if _is_runtime_script(script):
            script.decompose()
            runtime_count += 1

    loader_count = 0
    for kind in SOCIAL_KINDS:
        orphaned = _has_facade(soup, kind)
        consumed = lazy_load_embeds and _has_raw_embed(soup, kind)
        if not (orphaned or consumed):
            continue
        for script in soup.find_all("script"):
            if _is_loader_for(script, kind):
                script.decompose()
                loader_count += 1

    if runtime_count or loader_count:
        logger.info(
            "removed previous-run artifacts",
            extra={"step": "guard", "runtime_scripts": runtime_count, "loader_scripts": loader_count},
        )
    return GuardReport(runtime_scripts=runtime_count, loader_scripts=loader_count)
