"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: RSS and article page fetching settings
- ExtractConfig: Full-content extraction settings
- ScoringConfig: Relevance admission-control settings
- SummaryConfig: Summarizer strategy and limits
- BatchConfig: Per-run batch sizes
- MatchingConfig: Policy title matching settings
- ProviderConfig: LLM provider settings
- StoreConfig: Database settings
- ScheduleConfig: Watch-mode interval
- ServerConfig: HTTP ingestion trigger settings
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for HTTP fetching of feeds and article pages.

    Attributes:
        feed_timeout_seconds: Timeout for a single RSS/Atom feed request
        page_timeout_seconds: Timeout for a single article page request
        max_items_per_feed: Number of feed items taken per poll, in feed order
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    feed_timeout_seconds: float = 10.0
    page_timeout_seconds: float = 15.0
    max_items_per_feed: int = 10
    trust_env: bool = True
    user_agent: str = "RoundtablePA/1.0 (News Aggregator)"


@dataclass
class ExtractConfig:
    """Configuration for full-content extraction.

    Attributes:
        enabled: Whether short snippets trigger a full page fetch
        primary: Primary extraction method ("selectors", "readability", or "trafilatura")
        fallback: List of fallback methods to try if primary yields nothing
        min_snippet_chars: Snippets shorter than this trigger a page fetch
        min_candidate_chars: Minimum text length for a selector candidate to be accepted
        max_chars: Maximum length of extracted text
    """

    enabled: bool = True
    primary: str = "selectors"
    fallback: list[str] = field(default_factory=lambda: ["readability", "trafilatura"])
    min_snippet_chars: int = 500
    min_candidate_chars: int = 200
    max_chars: int = 10000


@dataclass
class ScoringConfig:
    """Configuration for relevance scoring.

    Attributes:
        threshold: Minimum score for an article to be approved
    """

    threshold: float = 0.3


@dataclass
class SummaryConfig:
    """Configuration for summarization.

    Attributes:
        strategy: "extractive" for the local algorithm, "policy" for the LLM policy summarizer
        max_sentences: Sentences kept by the extractive summarizer
        max_content_chars: Characters of article text sent to the LLM
        max_output_tokens: Output token budget for the LLM call
        request_delay_seconds: Pause between external summarization calls
    """

    strategy: str = "extractive"
    max_sentences: int = 4
    max_content_chars: int = 4000
    max_output_tokens: int = 800
    request_delay_seconds: float = 0.5


@dataclass
class BatchConfig:
    """Configuration for per-run batch sizes.

    Attributes:
        score_limit: Pending articles scored per run
        summarize_limit: Approved articles summarized per run
    """

    score_limit: int = 20
    summarize_limit: int = 5


@dataclass
class MatchingConfig:
    """Configuration for folding summaries into existing policies.

    Attributes:
        fuzzy_threshold: rapidfuzz similarity (0-100) accepted after an exact
            normalized match fails; None disables fuzzy matching
    """

    fuzzy_threshold: int | None = 92


@dataclass
class ProviderConfig:
    """Configuration for LLM provider.

    Attributes:
        name: Provider name ("anthropic" or "gemini")
        model: Model identifier; None uses the provider's default
        api_key_env: Environment variable name containing the API key;
            None uses the provider's default (ANTHROPIC_API_KEY / GOOGLE_API_KEY)
        base_url: Base URL for the provider API; None uses the provider's default
        api_key: Optional inline API key (overrides env var)
        timeout_seconds: Request timeout for a single generation call
        trust_env: Whether to respect system proxy settings for API requests
    """

    name: str = "anthropic"
    model: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 20.0
    trust_env: bool = True


@dataclass
class StoreConfig:
    """Configuration for the article store.

    Attributes:
        url: SQLAlchemy database URL
        url_env: Environment variable that overrides url when set
        echo: Whether SQLAlchemy logs emitted SQL
    """

    url: str = "sqlite:///policy_feed.db"
    url_env: str = "DATABASE_URL"
    echo: bool = False


@dataclass
class ScheduleConfig:
    """Configuration for continuous (watch) mode.

    Attributes:
        interval_seconds: Delay between ingestion cycles
    """

    interval_seconds: float = 300.0


@dataclass
class ServerConfig:
    """Configuration for the HTTP ingestion trigger.

    Attributes:
        host: Bind address
        port: Bind port
        ingest_secret_env: Environment variable holding the bearer token
        ingest_secret: Optional inline bearer token (overrides env var)
    """

    host: str = "127.0.0.1"
    port: int = 8000
    ingest_secret_env: str = "INGEST_SECRET"
    ingest_secret: str | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        directory: Directory for log files
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: LLM log detail level ("response_only", "prompt_response")
        llm_log_redaction: Redaction mode for LLM logs ("none", "redact_content", "redact_urls")
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    directory: str = "logs"
    filename: str = "ingest.jsonl"
    llm_log_enabled: bool = False
    llm_log_detail: str = "response_only"
    llm_log_redaction: str = "redact_urls"
    llm_log_file: str = "llm.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        redaction: Redaction mode for prompt/response payloads
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    redaction: str = "redact_urls"
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)
    feeds_file: str | None = None


_SECTIONS: dict[str, type] = {
    "fetch": FetchConfig,
    "extract": ExtractConfig,
    "scoring": ScoringConfig,
    "summary": SummaryConfig,
    "batch": BatchConfig,
    "matching": MatchingConfig,
    "provider": ProviderConfig,
    "store": StoreConfig,
    "schedule": ScheduleConfig,
    "server": ServerConfig,
    "logging": LoggingConfig,
    "langfuse": LangfuseConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config file {path}: expected a mapping at top level")
    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown top-level keys are ignored; unknown keys inside a section raise
    ValueError because they usually indicate a typo.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    sections: dict[str, Any] = {}
    for name, section_cls in _SECTIONS.items():
        try:
            sections[name] = section_cls(**data[name])
        except TypeError as exc:
            raise ValueError(f"Invalid '{name}' config section: {exc}") from exc
    return AppConfig(feeds_file=data.get("feeds_file"), **sections)


DEFAULT_API_KEY_ENVS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}


def api_key_env_name(cfg: ProviderConfig) -> str:
    if cfg.api_key_env:
        return cfg.api_key_env
    return DEFAULT_API_KEY_ENVS.get(cfg.name.lower().strip(), "LLM_API_KEY")


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(api_key_env_name(cfg))


def get_database_url(cfg: StoreConfig) -> str:
    """Get the database URL, preferring the configured environment variable."""
    return os.getenv(cfg.url_env) or cfg.url


def get_ingest_secret(cfg: ServerConfig) -> str | None:
    """Get the ingestion bearer token from inline config or environment variable."""
    if cfg.ingest_secret:
        return cfg.ingest_secret
    return os.getenv(cfg.ingest_secret_env)
