"""JSON extraction from language-model responses.

Models asked for "JSON only" still sometimes wrap the object in a markdown
code fence or add a sentence before it. ``parse_json_response`` accepts:
- a bare JSON object
- a fenced block (```json ... ``` or ``` ... ```)
- free text containing one outermost {...} object
"""

from __future__ import annotations

import json
from typing import Any


def parse_json_response(content: str) -> dict[str, Any]:
    """Parse a model response into a JSON object.

    Args:
        content: Raw model output

    Returns:
        The decoded JSON object

    Raises:
        json.JSONDecodeError: If no JSON object can be decoded, or the
            decoded value is not an object
    """
    if not content or not content.strip():
        raise json.JSONDecodeError("Empty content", content or "", 0)
    try:
        obj = json.loads(content)
    except json.JSONDecodeError:
        obj = json.loads(extract_json_snippet(content))
    if not isinstance(obj, dict):
        raise json.JSONDecodeError(f"Expected a JSON object, got {type(obj).__name__}", content, 0)
    return obj


def extract_json_snippet(content: str) -> str:
    fence = extract_fenced_block(content)
    if fence:
        return fence
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise json.JSONDecodeError("No JSON object found", content, 0)
    return content[start : end + 1]


def extract_fenced_block(content: str) -> str | None:
    """Return the body of the first markdown code fence, if any."""
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("```"):
            language = stripped[3:].strip().lower()
            if language in ("", "json"):
                start_idx = idx + 1
                break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None
