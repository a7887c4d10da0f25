"""Summarizer construction from runtime config."""

from __future__ import annotations

import logging

from ..config import AppConfig
from ..llm.providers.factory import create_provider
from .base import Summarizer
from .extractive import ExtractiveSummarizer
from .policy import PolicySummarizer

STRATEGIES = ("extractive", "policy")


def build_summarizer(cfg: AppConfig, llm_logger: logging.Logger | None = None) -> Summarizer:
    """Build the configured summarizer.

    Raises:
        ValueError: If the strategy is unknown, or the policy strategy has no
            usable provider configuration
    """
    strategy = cfg.summary.strategy.lower().strip()
    if strategy == "extractive":
        return ExtractiveSummarizer(max_sentences=cfg.summary.max_sentences)
    if strategy == "policy":
        provider = create_provider(cfg.provider, cfg.logging, llm_logger)
        return PolicySummarizer(
            provider,
            max_content_chars=cfg.summary.max_content_chars,
            max_output_tokens=cfg.summary.max_output_tokens,
        )
    raise ValueError(
        f"Unsupported summary strategy: {cfg.summary.strategy}. Supported: {', '.join(STRATEGIES)}"
    )
