"""Defensive parsing of generative model output."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from app.core.errors import ParseError


@dataclass(frozen=True)
class Parsed:
    """Model output that decoded as JSON."""

    value: Any


@dataclass(frozen=True)
class Unparseable:
    """Model output that could not be decoded."""

    reason: str


ParseResult = Parsed | Unparseable


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    # Extract JSON from markdown code fences
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    # Fallback: strip leading/trailing fences without regex
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _decode_first_json(text: str) -> Any:
    """Decode the whole text, or else the first JSON object/array embedded in prose."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
            return value
        except json.JSONDecodeError:
            continue
    raise ParseError("no JSON value found in model output")


def parse_model_json(raw_output: str | None) -> ParseResult:
    """
    Parse model output as JSON without ever raising.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```)
    - Leading/trailing whitespace and prose around the JSON

    Returns:
        Parsed(value) on success, Unparseable(reason) otherwise
    """
    if not raw_output or not raw_output.strip():
        return Unparseable("empty model output")

    try:
        return Parsed(_decode_first_json(_strip_llm_fences(raw_output)))
    except ParseError as e:
        return Unparseable(str(e))
