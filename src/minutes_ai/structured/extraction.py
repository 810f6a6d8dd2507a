"""Heuristic JSON extraction from free-form LLM responses.

Models asked for "JSON only" still wrap it in code fences or surround it
with prose. Each strategy below looks at the raw text one way and returns
an ExtractedJSON on success or None; extract_json() tries them in a fixed
order and the first success wins:

1. direct    -- the whole response is JSON
2. fenced    -- content of the first ``` code block (optionally ```json)
3. object    -- first "{" through last "}"
4. array     -- first "[" through last "]"
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractedJSON:
    """A parsed JSON value and the strategy that found it."""

    value: Any
    strategy: str


def _loads(text: str, strategy: str) -> ExtractedJSON | None:
    try:
        return ExtractedJSON(value=json.loads(text), strategy=strategy)
    except ValueError:
        return None


def parse_direct(text: str) -> ExtractedJSON | None:
    return _loads(text.strip(), "direct")


def parse_fenced(text: str) -> ExtractedJSON | None:
    match = _CODE_FENCE.search(text)
    if match is None:
        return None
    content = match.group(1).strip()
    if not content:
        return None
    return _loads(content, "fenced")


def _parse_span(text: str, open_char: str, close_char: str, strategy: str) -> ExtractedJSON | None:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start < 0 or end <= start:
        return None
    return _loads(text[start : end + 1], strategy)


def parse_object_span(text: str) -> ExtractedJSON | None:
    return _parse_span(text, "{", "}", "object")


def parse_array_span(text: str) -> ExtractedJSON | None:
    return _parse_span(text, "[", "]", "array")


EXTRACTION_STRATEGIES: tuple[Callable[[str], ExtractedJSON | None], ...] = (
    parse_direct,
    parse_fenced,
    parse_object_span,
    parse_array_span,
)


def extract_json(text: str) -> ExtractedJSON | None:
    """Return the first successful extraction from ``text``, or None."""
    for strategy in EXTRACTION_STRATEGIES:
        extracted = strategy(text)
        if extracted is not None:
            return extracted
    return None
