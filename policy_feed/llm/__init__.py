"""LLM providers, prompts and observability."""

from .prompts import build_policy_summary_prompt
from .providers.base import TextGenerationProvider
from .providers.factory import available_providers, create_provider
from .tracing import flush, record_span_error, set_span_output, setup_langfuse, start_span

__all__ = [
    "TextGenerationProvider",
    "available_providers",
    "build_policy_summary_prompt",
    "create_provider",
    "flush",
    "record_span_error",
    "set_span_output",
    "setup_langfuse",
    "start_span",
]
