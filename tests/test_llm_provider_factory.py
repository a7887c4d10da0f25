"""Tests for hot-swappable LLM provider factory."""

import pytest

from policy_feed.config import AppConfig, LoggingConfig, ProviderConfig
from policy_feed.llm.providers.anthropic import AnthropicProvider, extract_anthropic_text
from policy_feed.llm.providers.factory import available_providers, create_provider
from policy_feed.llm.providers.gemini import GeminiProvider, extract_gemini_text
from policy_feed.summarize.extractive import ExtractiveSummarizer
from policy_feed.summarize.factory import build_summarizer
from policy_feed.summarize.policy import PolicySummarizer


def test_available_providers_contains_expected_backends():
    names = available_providers()
    assert "anthropic" in names
    assert "claude" in names
    assert "gemini" in names


def test_create_provider_anthropic_uses_defaults():
    provider = create_provider(ProviderConfig(name="anthropic", api_key="test-key"), LoggingConfig())
    assert isinstance(provider, AnthropicProvider)
    assert provider.model == "claude-3-haiku-20240307"
    assert provider.base_url == "https://api.anthropic.com"
    provider.close()


def test_create_provider_gemini_with_overrides():
    provider = create_provider(
        ProviderConfig(
            name="Gemini",
            model="gemini-2.5-flash",
            api_key="test-key",
            base_url="https://generativelanguage.googleapis.com/",
        ),
        LoggingConfig(),
    )
    assert isinstance(provider, GeminiProvider)
    assert provider.model == "gemini-2.5-flash"
    assert provider.base_url == "https://generativelanguage.googleapis.com"
    provider.close()


def test_create_provider_reads_key_from_default_env(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
    provider = create_provider(ProviderConfig(name="claude"))
    assert provider.api_key == "env-key"
    provider.close()


def test_create_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
        create_provider(ProviderConfig(name="gemini"))


def test_create_provider_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider(ProviderConfig(name="unknown-provider", api_key="test-key"), LoggingConfig())


def test_extract_gemini_text_joins_non_thought_parts():
    data = {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"thought": True, "text": "internal reasoning"},
                        {"text": '{"isPolicyRelevant": true'},
                        {"text": ', "title": "A"}'},
                    ]
                }
            }
        ]
    }

    assert extract_gemini_text(data) == '{"isPolicyRelevant": true, "title": "A"}'


def test_extract_gemini_text_falls_back_to_all_text_when_only_thought():
    data = {"candidates": [{"content": {"parts": [{"thought": True, "text": "first"}, {"thought": True, "text": " second"}]}}]}
    assert extract_gemini_text(data) == "first second"
    assert extract_gemini_text({}) == ""


def test_extract_anthropic_text_skips_non_text_blocks():
    data = {"content": [{"type": "tool_use", "id": "x"}, {"type": "text", "text": "hello"}]}
    assert extract_anthropic_text(data) == "hello"


def test_build_summarizer_selects_strategy():
    cfg = AppConfig()
    assert isinstance(build_summarizer(cfg), ExtractiveSummarizer)

    cfg.summary.strategy = "policy"
    cfg.provider.api_key = "test-key"
    summarizer = build_summarizer(cfg)
    assert isinstance(summarizer, PolicySummarizer)
    assert summarizer.external
    summarizer.close()

    cfg.summary.strategy = "abstractive"
    with pytest.raises(ValueError, match="Unsupported summary strategy"):
        build_summarizer(cfg)
