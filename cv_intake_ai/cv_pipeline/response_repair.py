"""Best-effort repair of model output into a parseable JSON document."""

import json
import re
from typing import Any, List, Optional, Tuple

from cv_intake_ai.cv_pipeline.errors import JSONParseError
from cv_intake_ai.utils.helpers import head_and_tail

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_COLON_BREAK_RE = re.compile(r'"\s*:[ \t]*[\r\n]+\s*')
_SUGGESTIONS_KEY_RE = re.compile(r'"suggestions"\s*:')
_OBJECT_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

_CLOSERS = {"{": "}", "[": "]"}


def repair_json_text(raw: str) -> str:
    """
    Turn raw model text into a JSON candidate. Never raises; the result may still
    fail to parse, which the caller counts as a failed attempt.

    Steps, in order:
    1. strip code fences (```json and bare ```)
    2. keep only the first balanced top-level {...} object
    3. drop trailing commas before } or ] until none remain
    4. collapse line breaks right after a key's colon
    5. drop anything after the last } or ]
    6. if the text still does not start with {, cut from the first { to the last }
    7. for a truncated "suggestions" payload, cut back to the last complete item
       and close whatever is still open

    Applying it to its own output returns the same string.
    """
    text = _FENCE_RE.sub("", raw or "").strip()

    span = _first_object_span(text)
    if span is not None:
        text = text[span[0]:span[1]]

    text = _remove_trailing_commas(text)
    text = _COLON_BREAK_RE.sub('": ', text)

    last_close = max(text.rfind("}"), text.rfind("]"))
    if last_close >= 0:
        text = text[: last_close + 1]

    if not text.startswith("{"):
        match = _OBJECT_BLOCK_RE.search(text)
        if match:
            text = match.group(0)

    if _SUGGESTIONS_KEY_RE.search(text):
        closed = _close_truncated(text)
        if closed is not None:
            text = closed

    return text.strip()


def parse_json_candidate(candidate: str, raw: Optional[str] = None) -> Any:
    """Deserialize a repaired candidate; raise JSONParseError with a bounded excerpt."""
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, TypeError) as e:
        head, tail = head_and_tail(raw if raw is not None else candidate or "")
        reason = e.msg if isinstance(e, json.JSONDecodeError) else str(e)
        raise JSONParseError(f"Invalid JSON after repair: {reason}", head=head, tail=tail) from e


def _remove_trailing_commas(text: str) -> str:
    while True:
        text, count = _TRAILING_COMMA_RE.subn(r"\1", text)
        if count == 0:
            return text


def _first_object_span(text: str) -> Optional[Tuple[int, int]]:
    """(start, end) of the first balanced object starting at the first '{', or None."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
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
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return (start, i + 1)
    return None


def _close_truncated(text: str) -> Optional[str]:
    """
    For an unbalanced document, cut after the last object that completed inside an
    array and append the closers still open at that point. None if balanced or no
    complete item exists.
    """
    stack: List[str] = []
    in_string = False
    escaped = False
    safe_point: Optional[Tuple[int, List[str]]] = None
    for i, ch in enumerate(text):
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
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            if stack:
                stack.pop()
            if ch == "}" and stack and stack[-1] == "[":
                safe_point = (i, list(stack))
    if not stack and not in_string:
        return None
    if safe_point is None:
        return None
    end, open_at_end = safe_point
    return text[: end + 1] + "".join(_CLOSERS[c] for c in reversed(open_at_end))
