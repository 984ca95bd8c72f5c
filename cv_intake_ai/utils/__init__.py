"""Utility exports."""

from .helpers import content_hash, data_hash, extract_emails, head_and_tail, truncate_for_log
from .logger import get_logger

__all__ = [
    "get_logger",
    "extract_emails",
    "content_hash",
    "data_hash",
    "head_and_tail",
    "truncate_for_log",
]
