"""Anthropic provider (Messages REST API)."""

from __future__ import annotations

from typing import Any

from .base import TextGenerationProvider

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(TextGenerationProvider):
    name = "anthropic"
    default_model = "claude-3-haiku-20240307"
    default_base_url = "https://api.anthropic.com"

    def _post(self, prompt: str, max_output_tokens: int, temperature: float) -> dict[str, Any]:
        url = f"{self.base_url}/v1/messages"
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": max_output_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        resp = self._client.post(url, headers=headers, json=payload)
        resp.raise_for_status()
        return resp.json()

    def _extract_text(self, data: dict[str, Any]) -> str:
        return extract_anthropic_text(data)


def extract_anthropic_text(data: dict[str, Any]) -> str:
    blocks = data.get("content") or []
    return "".join(
        block.get("text", "")
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    )
