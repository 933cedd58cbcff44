"""
Parsing of model replies.

Free-tier chat models often wrap JSON in markdown fences or add a sentence
before it, so the reply is cleaned up before ``json.loads``.
"""

from __future__ import annotations

import json
import re
from typing import Any

from app.core.logging import get_logger

logger = get_logger("openai.validation")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def _first_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` block, ignoring braces inside strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def parse_json_reply(text: str | None) -> dict[str, Any] | None:
    """
    Parse a model reply into a dict.

    Returns None when the reply holds no JSON object.
    """
    if not text or not text.strip():
        return None

    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        block = _first_json_object(cleaned)
        if block is None:
            logger.warning("Model reply contained no JSON object")
            return None
        try:
            parsed = json.loads(block)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from model reply: {e}")
            return None

    if not isinstance(parsed, dict):
        logger.warning("Model reply JSON is not an object")
        return None
    return parsed


def clamp_unit(value: Any, default: float = 0.5) -> float:
    """Coerce to float in [0, 1]; non-numbers become ``default``."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return max(0.0, min(1.0, number))


def pick_choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    """Lower-cased ``value`` if it is one of ``allowed``, else ``default``."""
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def string_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [str(item).strip() for item in value if str(item).strip()]
    return items[:limit] if limit else items
