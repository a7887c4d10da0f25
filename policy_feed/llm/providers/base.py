"""Abstract interface for text-generation providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any

import httpx

from ...config import LoggingConfig, ProviderConfig, api_key_env_name
from ...logging_utils import log_event, redact_text, truncate_text
from ..tracing import record_span_error, set_span_output, start_span


class TextGenerationProvider(ABC):
    """Provider interface: one prompt in, one completion out.

    Subclasses implement ``_post`` and ``_extract_text``; ``generate`` adds
    tracing and optional JSONL logging of responses. A provider owns one
    httpx client for its whole lifetime and must be closed explicitly.
    """

    name = "base"
    default_model = ""
    default_base_url = ""

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        log_cfg: LoggingConfig | None = None,
        llm_logger: logging.Logger | None = None,
        client: httpx.Client | None = None,
    ):
        if not api_key:
            raise ValueError(
                f"Missing API key for provider '{cfg.name}' (set {api_key_env_name(cfg)})"
            )
        self.cfg = cfg
        self.api_key = api_key
        self.model = cfg.model or self.default_model
        self.base_url = (cfg.base_url or self.default_base_url).rstrip("/")
        self.log_cfg = log_cfg or LoggingConfig()
        self.llm_logger = llm_logger
        self._client = client or httpx.Client(
            timeout=cfg.timeout_seconds,
            trust_env=cfg.trust_env,
        )

    def generate(
        self,
        prompt: str,
        max_output_tokens: int = 800,
        temperature: float = 0.2,
        label: str = "generate",
    ) -> str:
        """Send a prompt and return the completion text.

        Raises:
            httpx.HTTPError: On network failure, timeout or non-2xx status
        """
        with start_span(
            f"{self.name}.{label}",
            kind="llm",
            input_value=prompt,
            attributes={"llm.model": self.model, "llm.provider": self.name},
        ) as span:
            try:
                data = self._post(prompt, max_output_tokens, temperature)
            except httpx.HTTPError as exc:
                record_span_error(span, exc)
                self._log_response(label, "provider_error", f"{type(exc).__name__}: {exc}", prompt)
                raise
            content = self._extract_text(data)
            set_span_output(span, content)
            self._log_response(label, "ok", content, prompt)
            return content

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @abstractmethod
    def _post(self, prompt: str, max_output_tokens: int, temperature: float) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def _extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    def _log_response(self, label: str, status: str, content: str, prompt: str) -> None:
        if self.llm_logger is None:
            return
        redaction = self.log_cfg.llm_log_redaction
        payload: dict[str, Any] = {
            "event": f"llm_{label}",
            "status": status,
            "provider": self.name,
            "model": self.model,
            "raw_response": truncate_text(redact_text(content, redaction)),
        }
        if self.log_cfg.llm_log_detail == "prompt_response":
            payload["raw_prompt"] = truncate_text(redact_text(prompt, redaction))
        log_event(self.llm_logger, "LLM response", **payload)
