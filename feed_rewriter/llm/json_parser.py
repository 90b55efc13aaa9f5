"""
Recovery of a JSON object from free-form provider output.

Stage 1 strips markdown code fences and parses the whole text. Stage 2 scans
for the first balanced {...} object, tracking string literals and escapes so
braces inside string values do not end the object early.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import RewriteParseError


_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?")


def parse_response(text: str) -> dict[str, Any]:
    """Decode a provider response into a JSON object.

    Raises:
        RewriteParseError: If neither the cleaned text nor any embedded
            brace-delimited object decodes to a JSON object
    """
    if not text or not text.strip():
        raise RewriteParseError("Empty response", text)

    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, dict):
        return value

    start = 0
    while True:
        snippet = extract_first_object(cleaned, start)
        if snippet is None:
            break
        snippet_text, end = snippet
        try:
            value = json.loads(snippet_text)
        except json.JSONDecodeError:
            start = cleaned.find("{", start) + 1
            continue
        if isinstance(value, dict):
            return value
        start = end

    raise RewriteParseError("No valid JSON object found in the response", text)


def extract_first_object(text: str, start: int = 0) -> tuple[str, int] | None:
    """Return the first balanced {...} substring at or after start.

    Returns:
        (snippet, end_index) or None when no balanced object exists
    """
    begin = text.find("{", start)
    while begin != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(begin, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[begin : idx + 1], idx + 1
        # Unbalanced from this brace; try the next one
        begin = text.find("{", begin + 1)
    return None
