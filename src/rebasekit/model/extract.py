"""Pull usable payloads out of free-form model output."""

from __future__ import annotations

import json
import re
from typing import Any

from rebasekit.core.errors import AnalysisParseError

# First fenced block, optional language tag on the opening fence
_CODE_FENCE = re.compile(r"```(?:[\w+-]+)?[ \t]*\r?\n(.*?)```", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced code block, or text as is."""
    match = _CODE_FENCE.search(text)
    if match:
        return match.group(1)
    return text


def extract_json_object(text: str) -> dict[str, Any]:
    """Decode the first JSON object embedded in text.

    Tries every ``{`` in order and returns the first position that
    decodes to a JSON object, so prose or a code fence around the
    object is ignored.

    Raises:
        AnalysisParseError: If no JSON object can be decoded
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)
    raise AnalysisParseError("Failed to parse AI response as JSON")
