"""State handed to every pass during one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from models.options import CleaningOptions
from pipeline.settings import PipelineSettings


@dataclass
class PassContext:
    """The live tree plus the read-only inputs of a run.

    Passes mutate ``soup`` and append to ``actions`` through ``record()``;
    nothing else is shared between them.
    """

    soup: BeautifulSoup
    options: CleaningOptions
    settings: PipelineSettings = field(default_factory=PipelineSettings)
    actions: list[str] = field(default_factory=list)

    def record(self, message: str) -> None:
        """Append a human-readable entry to the action log."""
        self.actions.append(message)
