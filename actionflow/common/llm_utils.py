"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

import json


class ExtractionParseError(ValueError):
    """Model output did not contain a parseable JSON object."""


def parse_action_json(raw: str) -> dict:
    """Parse the single JSON object embedded in a model response.

    The object is taken as the substring between the first '{' and the last
    '}', which tolerates code fences and preamble text around it.

    Raises:
        ExtractionParseError: no object found, invalid JSON, or not an object
    """
    if not raw:
        raise ExtractionParseError("Empty model output")

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ExtractionParseError("No JSON object found in model output")

    try:
        data = json.loads(raw[start:end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionParseError(f"Invalid JSON in model output: {e}") from e

    if not isinstance(data, dict):
        raise ExtractionParseError("Model output JSON is not an object")
    return data
