"""
Helpers for pulling JSON out of model responses.
"""

from __future__ import annotations

import json
import re
from typing import Any

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")


def extract_json(text: str | None) -> Any:
    """Extract the first parseable JSON value from free text.

    Tries, in order: the whole text, fenced code blocks, the outermost
    ``{...}`` span, the outermost ``[...]`` span.

    Returns:
        Parsed JSON value, or None if nothing parses
    """
    if not text or not text.strip():
        return None

    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    for match in _CODE_BLOCK.finditer(text):
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            continue

    for pattern in (_OBJECT, _ARRAY):
        match = pattern.search(text)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                continue

    return None
