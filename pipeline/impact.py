"""Impact Accountant: byte/element accounting for one run."""

from __future__ import annotations

from typing import Sequence

from models.summary import ImpactSummary

NO_OPTIMIZATIONS = "No applicable optimizations were found for this content."


def utf8_length(text: str) -> int:
    return len(text.encode("utf-8"))


def speed_gain(original_bytes: int, bytes_saved: int) -> str:
    """Percentage size reduction, formatted like ``"12.34%"``."""
    if original_bytes <= 0:
        return "0.00%"
    return f"{bytes_saved / original_bytes * 100:.2f}%"


def build_summary(
    original_html: str,
    cleaned_html: str,
    original_nodes: int,
    cleaned_nodes: int,
    actions: Sequence[str],
) -> ImpactSummary:
    """Measure before/after sizes; savings are clamped at zero."""
    original_bytes = utf8_length(original_html)
    cleaned_bytes = utf8_length(cleaned_html)
    bytes_saved = max(0, original_bytes - cleaned_bytes)
    return ImpactSummary(
        original_bytes=original_bytes,
        cleaned_bytes=cleaned_bytes,
        bytes_saved=bytes_saved,
        nodes_removed=max(0, original_nodes - cleaned_nodes),
        estimated_speed_gain=speed_gain(original_bytes, bytes_saved),
        action_log=tuple(actions) or (NO_OPTIMIZATIONS,),
    )


def failure_summary(original_html: str, message: str) -> ImpactSummary:
    """Summary for a run that returned the input unchanged."""
    size = utf8_length(original_html)
    return ImpactSummary(
        original_bytes=size,
        cleaned_bytes=size,
        bytes_saved=0,
        nodes_removed=0,
        estimated_speed_gain="0.00%",
        action_log=(message,),
    )
