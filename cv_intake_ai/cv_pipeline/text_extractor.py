"""Extract raw text from uploaded CV files (PDF, DOCX, plain text). In-memory only."""

import re
import unicodedata
from io import BytesIO
from typing import Optional

import pdfplumber
from docx import Document

from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"


def _normalize_unicode(text: str) -> str:
    """Normalize unicode (NFC)."""
    if not text:
        return ""
    return unicodedata.normalize("NFC", text)


def _clean_cv_text(text: str, max_chars: int = 50000) -> str:
    """Remove excessive whitespace and normalize unicode for CV content."""
    if not text or not text.strip():
        return ""
    t = _normalize_unicode(text)
    t = re.sub(r"[ \t]+", " ", t)
    t = re.sub(r"\n\s*\n\s*\n", "\n\n", t)
    t = t.strip()
    if len(t) > max_chars:
        t = t[:max_chars] + "\n\n[Content truncated.]"
    return t


def _extract_pdf(bytes_io: BytesIO) -> Optional[str]:
    """Extract text from PDF using pdfplumber."""
    try:
        with pdfplumber.open(bytes_io) as pdf:
            parts = []
            for page in pdf.pages:
                ptext = page.extract_text()
                if ptext:
                    parts.append(ptext)
            return "\n\n".join(parts) if parts else None
    except Exception as e:
        logger.exception("PDF extraction failed: %s", e)
        return None


def _extract_docx(bytes_io: BytesIO) -> Optional[str]:
    """Extract text from DOCX using python-docx."""
    try:
        doc = Document(bytes_io)
        parts = [p.text for p in doc.paragraphs if p.text.strip()]
        return "\n\n".join(parts) if parts else None
    except Exception as e:
        logger.exception("DOCX extraction failed: %s", e)
        return None


def _extract_plain(data: bytes) -> Optional[str]:
    return data.decode("utf-8", errors="replace")


def extract_text_from_file(file_bytes: bytes, mime_type: str) -> Optional[str]:
    """
    Extract and clean text from an uploaded CV file, chosen by MIME type.
    Returns cleaned text or None if the type is unsupported or extraction fails.
    """
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime == PDF_MIME:
        raw = _extract_pdf(BytesIO(file_bytes))
    elif mime == DOCX_MIME:
        raw = _extract_docx(BytesIO(file_bytes))
    elif mime == TEXT_MIME:
        raw = _extract_plain(file_bytes)
    else:
        logger.warning("Unsupported file type for text extraction: %s", mime_type)
        return None

    if not raw or not raw.strip():
        return None
    return _clean_cv_text(raw)
