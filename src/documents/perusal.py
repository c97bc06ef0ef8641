"""Upload-time derivation of page-limited perusal copies."""

from __future__ import annotations

import logging

from documents.pdf import open_pdf, serialize

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10


def derive_perusal(full_bytes: bytes, max_pages: int = DEFAULT_MAX_PAGES) -> bytes:
    """Return a copy of the script containing at most ``max_pages`` leading pages.

    Dropped pages, embedded files and any objects left unreferenced are removed
    from the output, so the complete work never travels with the perusal copy.
    """
    if max_pages < 1:
        raise ValueError("max_pages must be >= 1")

    with open_pdf(full_bytes) as doc:
        total = doc.page_count
        if total == 0:
            return full_bytes
        if total > max_pages:
            doc.select(list(range(max_pages)))
        for name in doc.embfile_names():
            doc.embfile_del(name)
        logger.debug("Derived perusal copy with %d of %d pages", doc.page_count, total)
        return serialize(doc)


__all__ = ["DEFAULT_MAX_PAGES", "derive_perusal"]
