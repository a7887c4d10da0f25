"""
Structured policy summarization through an external language model.

The model is asked for one strict JSON object describing the policy the
article reports on. The response is validated into a PolicySummary; an
article the model flags as not policy relevant yields None.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.status import PolicyDomain, PolicyStatus
from ..core.types import PolicySummary, SummaryRequest
from ..json_parser import parse_json_response
from ..llm.prompts import build_policy_summary_prompt
from ..llm.providers.base import TextGenerationProvider
from .base import Summarizer, SummaryError

logger = logging.getLogger(__name__)

SHORT_TITLE_WORDS = 7


class PolicySummarizer(Summarizer):
    """Summarizer backed by a TextGenerationProvider."""

    name = "policy"
    external = True

    def __init__(
        self,
        provider: TextGenerationProvider,
        max_content_chars: int = 4000,
        max_output_tokens: int = 800,
    ):
        self.provider = provider
        self.max_content_chars = max_content_chars
        self.max_output_tokens = max_output_tokens

    def summarize(self, request: SummaryRequest) -> PolicySummary | None:
        prompt = build_policy_summary_prompt(request, self.max_content_chars)
        try:
            content = self.provider.generate(
                prompt,
                max_output_tokens=self.max_output_tokens,
                temperature=0.2,
                label="policy_summary",
            )
        except httpx.TimeoutException as exc:
            raise SummaryError(f"Timeout: {type(exc).__name__}: {exc}", kind="provider_error") from exc
        except httpx.HTTPError as exc:
            raise SummaryError(f"{type(exc).__name__}: {exc}", kind="provider_error") from exc

        try:
            obj = parse_json_response(content)
        except json.JSONDecodeError as exc:
            raise SummaryError(f"JSONDecodeError: {exc}", kind="parse_error") from exc

        if not _as_bool(obj.get("isPolicyRelevant")):
            logger.info("Skipping non-policy article: %s", request.title)
            return None
        return parse_policy_summary(obj)

    def close(self) -> None:
        self.provider.close()


def parse_policy_summary(obj: dict[str, Any]) -> PolicySummary:
    """Validate a decoded model response into a PolicySummary.

    Raises:
        SummaryError: With kind "schema_error" when required fields are
            missing or the lifecycle status is not a known PolicyStatus
    """
    title = _as_text(obj.get("title"))
    if not title:
        raise SummaryError("Response is missing 'title'", kind="schema_error")
    short_title = _as_text(obj.get("shortTitle")) or " ".join(title.split()[:SHORT_TITLE_WORDS])

    change_summary = _as_text(obj.get("changeSummary"))
    if not change_summary:
        raise SummaryError("Response is missing 'changeSummary'", kind="schema_error")

    raw_status = _as_text(obj.get("status")).upper().replace(" ", "_")
    try:
        status = PolicyStatus(raw_status)
    except ValueError as exc:
        raise SummaryError(f"Unknown policy status: {obj.get('status')!r}", kind="schema_error") from exc

    raw_domain = _as_text(obj.get("domain")).lower()
    try:
        domain = PolicyDomain(raw_domain)
    except ValueError:
        domain = PolicyDomain.GENERAL

    return PolicySummary(
        title=title,
        short_title=short_title,
        description=_as_text(obj.get("description")),
        domain=domain,
        status=status,
        change_summary=change_summary,
        ai_summary=_as_text(obj.get("aiSummary")) or change_summary,
        next_milestone=_as_text(obj.get("nextMilestone")) or None,
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)
