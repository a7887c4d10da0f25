"""Summarizer capability interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Union

from ..core.types import ArticleDraft, PolicySummary, SummaryRequest

SummaryOutput = Union[ArticleDraft, PolicySummary, None]


class SummaryError(RuntimeError):
    """Raised when a summary cannot be produced for one article.

    Attributes:
        kind: "provider_error", "parse_error" or "schema_error"
    """

    def __init__(self, message: str, kind: str = "provider_error"):
        super().__init__(message)
        self.kind = kind


class Summarizer(ABC):
    """Turns approved article text into an audience-facing summary.

    Implementations return an ArticleDraft (flat article), a PolicySummary
    (folded into a Policy timeline), or None when the article turns out not
    to be policy relevant. They raise SummaryError for per-article failures.

    A summarizer is constructed once per process and closed on shutdown.
    """

    name = "base"
    external = False

    @abstractmethod
    def summarize(self, request: SummaryRequest) -> SummaryOutput:
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
