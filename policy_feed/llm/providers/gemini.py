"""Google Gemini provider (generateContent REST API)."""

from __future__ import annotations

from typing import Any

from .base import TextGenerationProvider


class GeminiProvider(TextGenerationProvider):
    name = "gemini"
    default_model = "gemini-2.0-flash"
    default_base_url = "https://generativelanguage.googleapis.com"

    def _post(self, prompt: str, max_output_tokens: int, temperature: float) -> dict[str, Any]:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
                "responseMimeType": "application/json",
            },
        }
        resp = self._client.post(url, headers={"x-goog-api-key": self.api_key}, json=payload)
        resp.raise_for_status()
        return resp.json()

    def _extract_text(self, data: dict[str, Any]) -> str:
        return extract_gemini_text(data)


def extract_gemini_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate, skipping thought parts when possible."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    texts = [p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")]
    if not any(texts):
        texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
    return "".join(texts)
