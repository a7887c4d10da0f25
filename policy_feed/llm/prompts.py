"""Prompt loading and rendering helpers for LLM providers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from ..core.status import PolicyDomain, PolicyStatus
from ..core.types import SummaryRequest


_PROMPT_DIR = Path(__file__).resolve().parent / "templates"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def build_policy_summary_prompt(request: SummaryRequest, max_content_chars: int = 4000) -> str:
    return _render_template(
        "policy_summary",
        source_name=request.source_name,
        title=request.title,
        content=(request.content or "")[:max_content_chars],
        domains=", ".join(d.value for d in PolicyDomain),
        statuses=", ".join(s.value for s in PolicyStatus),
    )
