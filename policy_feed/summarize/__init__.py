"""Pluggable summarization strategies."""

from .base import Summarizer, SummaryError, SummaryOutput
from .extractive import ExtractiveSummarizer, extractive_summary
from .factory import STRATEGIES, build_summarizer
from .policy import PolicySummarizer, parse_policy_summary

__all__ = [
    "ExtractiveSummarizer",
    "PolicySummarizer",
    "STRATEGIES",
    "Summarizer",
    "SummaryError",
    "SummaryOutput",
    "build_summarizer",
    "extractive_summary",
    "parse_policy_summary",
]
