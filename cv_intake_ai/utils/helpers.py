"""Helper utilities for the CV intake pipeline."""

import hashlib
import json
import re
from typing import Any, List


def extract_emails(text: str) -> List[str]:
    """Extract email addresses from text using regex."""
    if not text:
        return []
    pattern = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
    return list(dict.fromkeys(re.findall(pattern, text)))


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of raw file bytes."""
    return hashlib.sha256(data or b"").hexdigest()


def data_hash(data: Any) -> str:
    """SHA-256 hex digest of a JSON-serializable value (key order independent)."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def head_and_tail(text: str, size: int = 200) -> tuple[str, str]:
    """First and last `size` characters of text, for bounded diagnostics."""
    if not text:
        return ("", "")
    if len(text) <= size * 2:
        return (text, "")
    return (text[:size], text[-size:])


def truncate_for_log(text: str, size: int = 200) -> str:
    """Collapse long text to head ... tail so logs stay bounded."""
    head, tail = head_and_tail(text or "", size)
    if not tail:
        return head
    return f"{head} ...[{len(text) - size * 2} chars omitted]... {tail}"
