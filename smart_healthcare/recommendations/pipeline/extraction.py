"""Locate the JSON object inside a free-form LLM answer.

Models are told to answer with a bare JSON object but regularly wrap it in
markdown fences, add a sentence before or after it, or get cut off by the
token limit. The extractor is a pure function over the text:

1. Strip a leading ```` ``` ```` fence (and its language tag line) together with
   everything from the last fence onward.
2. Scan for balanced ``{...}`` candidates, ignoring braces inside JSON strings
   and honoring backslash escapes, and return the first one that parses as a
   JSON object.
3. Otherwise try the naive first-``{``-to-last-``}`` slice, which recovers
   answers whose trailing text was truncated after the object was complete.
"""

from __future__ import annotations

import json
from collections.abc import Iterator

FENCE = "```"


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```` ```json ... ``` ```` fence, if present."""
    stripped = text.strip()
    if stripped.startswith(FENCE):
        first_newline = stripped.find("\n")
        if first_newline > 0:
            stripped = stripped[first_newline + 1 :]
        last_fence = stripped.rfind(FENCE)
        if last_fence >= 0:
            stripped = stripped[:last_fence]
    return stripped.strip()


def _balanced_spans(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) of each top-level balanced brace span, end inclusive."""
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            # strings only matter once an object has been opened
            in_string = depth > 0
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield start, index
                start = -1


def _is_json_object(candidate: str) -> bool:
    try:
        return isinstance(json.loads(candidate), dict)
    except (ValueError, RecursionError):
        return False


def extract_json_object(raw: str | None) -> str | None:
    """Return the first JSON object embedded in ``raw``, or None.

    Args:
        raw: Full textual answer from the model

    Returns:
        Substring of the (fence-stripped) text that parses as one JSON object,
        or None when no such object can be located
    """
    if raw is None or not raw.strip():
        return None

    text = strip_code_fences(raw)

    for start, end in _balanced_spans(text):
        candidate = text[start : end + 1]
        if _is_json_object(candidate):
            return candidate

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        candidate = text[first_brace : last_brace + 1]
        if _is_json_object(candidate):
            return candidate

    return None
