"""Helpers for reading structured data out of LLM responses."""

import json
import re
from typing import Any

_FENCE_START = re.compile(r"^```[a-zA-Z]*\s*\n?")
_FENCE_END = re.compile(r"\n?```\s*$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    content = content.strip()
    if content.startswith("```"):
        content = _FENCE_END.sub("", _FENCE_START.sub("", content))
    return content.strip()


def parse_json_object(content: str) -> dict[str, Any] | None:
    """Parse a JSON object from LLM output.

    Tolerates code fences and prose around the object. Returns None when no
    JSON object can be recovered.
    """
    cleaned = strip_code_fences(content)
    if not cleaned:
        return None

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if not match:
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None

    return data if isinstance(data, dict) else None
