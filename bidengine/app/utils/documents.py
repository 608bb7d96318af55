"""Helpers for classifying uploaded documents and pulling text out of them."""

from __future__ import annotations

import io
import logging
import re
from typing import List

from docx import Document
from pdfminer.high_level import extract_text as extract_pdf_text

from bidengine.app.core.errors import ValidationError

logger = logging.getLogger(__name__)

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\r]")


def classify_document(filename: str) -> str:
    """Return ``pdf``, ``docx``, ``doc`` or ``text`` from the file extension."""

    lowered = (filename or "").lower()
    if lowered.endswith(".pdf"):
        return "pdf"
    if lowered.endswith(".docx"):
        return "docx"
    if lowered.endswith(".doc"):
        return "doc"
    return "text"


def decode_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def printable_text(content: bytes) -> str:
    return _NON_PRINTABLE.sub(" ", content.decode("utf-8", errors="replace"))


def extract_text_from_pdf(content: bytes) -> str:
    try:
        return extract_pdf_text(io.BytesIO(content))
    except Exception as exc:
        logger.warning("extract_text_from_pdf failed: %s", exc)
        raise ValidationError("Failed to extract text from PDF") from exc


def extract_text_from_docx(content: bytes) -> str:
    try:
        document = Document(io.BytesIO(content))
    except Exception as exc:
        logger.warning("extract_text_from_docx failed: %s", exc)
        raise ValidationError("Failed to extract text from DOCX") from exc

    parts: List[str] = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text and cell.text.strip()]
            if cells:
                parts.append("\t".join(cells))
    return "\n".join(parts)


def extract_text(filename: str, content: bytes) -> str:
    """Best-effort text for an uploaded evidence document."""

    lowered = (filename or "").lower()
    if lowered.endswith(".pdf"):
        text = extract_text_from_pdf(content)
    elif lowered.endswith(".docx"):
        text = extract_text_from_docx(content)
    elif lowered.endswith(".doc"):
        # legacy binary Word: keep printable runs only
        text = printable_text(content)
        if len(text.strip()) < 100:
            raise ValidationError("Cannot extract text from old .doc format. Please convert to .docx")
    elif lowered.endswith(".txt"):
        text = decode_text(content)
    else:
        text = printable_text(content)

    logger.info("extract_text: filename=%s length=%s", filename, len(text))
    return text
