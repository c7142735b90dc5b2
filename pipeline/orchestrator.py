"""Pipeline orchestrator: the single entry point that cleans one document.

Pass order is data, not control flow: ``PIPELINE`` lists every step with
the option predicate that enables it.  Facades run before the sanitizer so
that ``lazyLoadEmbeds`` wins over ``preserveIframes``; the runtime script is
appended last so the minifier and whitespace pass never see it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from models.options import CleaningOptions
from models.recommendation import Recommendation
from models.response import CleanResult
from parsing.document import count_elements, parse_html, serialize
from passes import (
    css,
    facades,
    fonts,
    images,
    minify,
    normalize,
    preconnect,
    runtime,
    sanitize,
    scripts,
    semantic,
    svg,
)
from passes.guard import strip_previous_run
from pipeline.context import PassContext
from pipeline.impact import build_summary, failure_summary
from pipeline.overrides import merge_recommendations
from pipeline.settings import PipelineSettings

logger = logging.getLogger("leanpost")

Rewriter = Callable[[str], str]


@dataclass(frozen=True)
class PipelineStep:
    """One named pass and the option predicate that enables it."""

    name: str
    enabled: Callable[[CleaningOptions], bool]
    apply: Callable[[PassContext], None]


class PipelineStepError(RuntimeError):
    """A pass raised; carries the step name for the action log."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause


PIPELINE: tuple[PipelineStep, ...] = (
    PipelineStep("semantic", lambda o: o.semantic_rewrite, semantic.run),
    PipelineStep("normalize", lambda o: o.lazy_load_embeds, normalize.run),
    PipelineStep("facades", lambda o: o.lazy_load_embeds, facades.run_embeds),
    PipelineStep("backgrounds", lambda o: o.lazy_load_background_images, facades.run_backgrounds),
    PipelineStep("image-loading", lambda o: o.lazy_load_images, images.run_loading),
    PipelineStep("srcset", lambda o: o.add_responsive_srcset, images.run_srcset),
    PipelineStep("image-formats", lambda o: o.optimize_images, images.run_formats),
    PipelineStep("svg", lambda o: o.optimize_svgs, svg.run),
    PipelineStep("scripts", lambda o: o.defer_scripts, scripts.run),
    PipelineStep("fonts", lambda o: o.optimize_font_loading, fonts.run),
    PipelineStep("preconnect", lambda o: o.add_prefetch_hints, preconnect.run),
    PipelineStep("css", lambda o: o.optimize_css_loading, css.run),
    PipelineStep("sanitize", lambda o: o.strip_comments or o.remove_empty_attributes, sanitize.run),
    PipelineStep("minify", lambda o: o.minify_inline_css_js, minify.run_minify),
    PipelineStep("whitespace", lambda o: o.collapse_whitespace, minify.run_whitespace),
    PipelineStep("runtime", lambda o: True, runtime.run),
)


def step_names(options: CleaningOptions) -> list[str]:
    """Names of the steps *options* enables, in execution order."""
    return [step.name for step in PIPELINE if step.enabled(options)]


def _apply_rewriter(html: str, rewriter: Rewriter, actions: list[str]) -> str:
    """Run the AI text rewrite; on any failure keep the pre-rewrite markup."""
    try:
        rewritten = rewriter(html)
    except Exception as exc:  # noqa: BLE001 -- optional enhancement, never blocks cleaning
        logger.warning(
            "semantic rewrite failed: %s: %s",
            type(exc).__name__,
            exc,
            extra={"step": "semantic-ai"},
        )
        actions.append("AI semantic rewrite failed; continued with the original markup.")
        return html
    actions.append("Applied AI semantic HTML rewrite.")
    return rewritten


def _guarded(name: str, func: Callable, *args, **kwargs):  # noqa: ANN202
    try:
        return func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        raise PipelineStepError(name, exc) from exc


def _run_steps(ctx: PassContext) -> None:
    for step in PIPELINE:
        if not step.enabled(ctx.options):
            continue
        started = time.perf_counter()
        try:
            step.apply(ctx)
        except Exception as exc:  # noqa: BLE001
            raise PipelineStepError(step.name, exc) from exc
        logger.debug(
            "step done",
            extra={"step": step.name, "elapsed_ms": round((time.perf_counter() - started) * 1000, 2)},
        )


def run(
    raw_html: str,
    options: Optional[CleaningOptions] = None,
    recommendations: Optional[Iterable[Recommendation]] = None,
    *,
    settings: Optional[PipelineSettings] = None,
    rewriter: Optional[Rewriter] = None,
) -> CleanResult:
    """Clean one document.

    1. Merge AI recommendations into the effective options.
    2. Optional AI text rewrite (before parsing, never interleaved with passes).
    3. Parse, then strip artifacts of a previous run (idempotency guard).
    4. Run every enabled step of ``PIPELINE`` in order.
    5. Serialize and account for the impact.

    Any failure after step 1 returns *raw_html* unchanged with an error
    entry in the action log and zero savings.
    """
    options = options or CleaningOptions()
    settings = settings or PipelineSettings()
    effective, overrides = merge_recommendations(options, recommendations)

    actions: list[str] = []
    if overrides:
        actions.append(
            f"Auto-applied {len(overrides)} AI recommendation(s): {', '.join(overrides)}."
        )

    working = raw_html
    if effective.semantic_rewrite and rewriter is not None:
        working = _apply_rewriter(working, rewriter, actions)

    try:
        soup = parse_html(raw_html)
        original_nodes = count_elements(soup)
        if working is not raw_html:
            soup = parse_html(working)
    except Exception as exc:  # noqa: BLE001 -- fatal class: parser rejected the document
        logger.exception("parse failed", extra={"step": "parse"})
        message = f"Optimization failed while parsing: {exc}. Original HTML returned unchanged."
        return CleanResult(
            cleaned_html=raw_html,
            summary=failure_summary(raw_html, message),
            effective_options=effective,
        )

    ctx = PassContext(soup=soup, options=effective, settings=settings, actions=actions)
    try:
        report = _guarded("guard", strip_previous_run, soup, lazy_load_embeds=effective.lazy_load_embeds)
        _run_steps(ctx)
        cleaned = _guarded("serialize", serialize, soup)
    except PipelineStepError as exc:
        logger.exception("pipeline step failed", extra={"step": exc.step})
        message = (
            f"Optimization failed during {exc.step}: {exc.cause}. "
            "Original HTML returned unchanged."
        )
        return CleanResult(
            cleaned_html=raw_html,
            summary=failure_summary(raw_html, message),
            effective_options=effective,
        )

    if effective.collapse_whitespace:
        cleaned = cleaned.strip()

    summary = build_summary(
        raw_html,
        cleaned,
        original_nodes,
        count_elements(soup),
        ctx.actions,
    )
    logger.info(
        "document cleaned",
        extra={
            "step": "pipeline",
            "bytes_saved": summary.bytes_saved,
            "overrides": overrides,
            "rerun": report.had_previous_run,
        },
    )
    return CleanResult(cleaned_html=cleaned, summary=summary, effective_options=effective)
