"""PyMuPDF loading and serialization helpers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import fitz  # PyMuPDF

from core.errors import MalformedDocumentError

_HEADER_WINDOW = 1024


@contextmanager
def open_pdf(data: bytes) -> Iterator[fitz.Document]:
    """Open PDF bytes as an in-memory document, closing it on exit."""
    if not data or b"%PDF-" not in data[:_HEADER_WINDOW]:
        raise MalformedDocumentError("Document is not a PDF")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise MalformedDocumentError(f"Unable to parse PDF: {exc}") from exc
    try:
        if doc.needs_pass:
            raise MalformedDocumentError("Encrypted PDFs are not supported")
        yield doc
    finally:
        doc.close()


def serialize(doc: fitz.Document) -> bytes:
    """Write a document to bytes without a fresh file id so output is reproducible."""
    try:
        return doc.tobytes(garbage=3, deflate=True, no_new_id=True)
    except (RuntimeError, ValueError) as exc:
        raise MalformedDocumentError(f"Unable to serialize PDF: {exc}") from exc


def page_count(data: bytes) -> int:
    with open_pdf(data) as doc:
        return doc.page_count


__all__ = ["open_pdf", "page_count", "serialize"]
