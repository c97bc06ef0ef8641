"""Text watermarking for PDF scripts.

Every function here is pure: it takes PDF bytes and returns new PDF bytes.
Latin text is drawn with the built-in Helvetica font, which PyMuPDF references
rather than embeds. Characters outside Latin-1 are drawn in runs with PyMuPDF's
bundled Unicode fallback font (Droid Sans Fallback), embedded once per document,
so names in other scripts survive in the stamp. The same input and options always
serialize the same page content.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Callable, Literal, Sequence

import fitz  # PyMuPDF
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.errors import MalformedDocumentError
from documents.pdf import open_pdf, serialize

logger = logging.getLogger(__name__)

Placement = Literal["diagonal", "header", "footer", "center"]

PERUSAL_STAMP = "PERUSAL COPY - NOT FOR PERFORMANCE"
UNKNOWN_THEATER = "Unknown Theater"
UNKNOWN_EMAIL = "unknown@example.com"

_FONT = "helv"
_FALLBACK_FONT = "svfallback"
_MIN_FONT_SIZE = 4.0
_DIAGONAL_FILL = 0.9


class WatermarkOptions(BaseModel):
    """Overlay settings for a single watermark pass."""

    text: str = Field(min_length=1)
    font_size: float = Field(default=50, gt=0)
    opacity: float = Field(default=0.3, ge=0, le=1)
    color: tuple[float, float, float] = (0.5, 0.5, 0.5)
    angle: float = 45
    position: Placement = "diagonal"
    margin: float = Field(default=20, ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _validate_color(self) -> "WatermarkOptions":
        if any(channel < 0 or channel > 1 for channel in self.color):
            raise ValueError("color channels must be within 0..1")
        return self


class LicenseInfo(BaseModel):
    theater_name: str
    licensee_email: str | None = None
    license_type: str
    license_id: str
    performance_dates: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def watermark(pdf_bytes: bytes, options: WatermarkOptions) -> bytes:
    """Draw ``options.text`` on every page and return the re-serialized PDF."""
    return _transform(pdf_bytes, lambda doc: _stamp_pages(doc, options))


def perusal_watermark(pdf_bytes: bytes, organization: str, email: str) -> bytes:
    """Stamp a perusal copy and identify the requesting organization on each page."""
    stamped = watermark(
        pdf_bytes,
        WatermarkOptions(
            text=PERUSAL_STAMP,
            position="diagonal",
            font_size=60,
            opacity=0.3,
            color=(1, 0, 0),
        ),
    )
    return watermark(
        stamped,
        WatermarkOptions(
            text=f"Licensed to: {organization} ({email})",
            position="footer",
            font_size=10,
            opacity=0.7,
            color=(0.3, 0.3, 0.3),
            margin=10,
        ),
    )


def license_watermark(pdf_bytes: bytes, info: LicenseInfo) -> bytes:
    """Header block on the first page, then a faint forensic stamp on all pages."""
    lines = [
        f"Licensed to: {info.theater_name}",
        f"License Type: {info.license_type.upper()}",
        f"License ID: {info.license_id}",
    ]
    if info.performance_dates:
        lines.append(f"Performance Dates: {', '.join(info.performance_dates)}")

    with_header = _transform(pdf_bytes, lambda doc: _draw_header_block(doc, lines))
    return watermark(
        with_header,
        WatermarkOptions(
            text=f"{info.theater_name} - {info.license_id}",
            position="diagonal",
            font_size=30,
            opacity=0.1,
            color=(0.7, 0.7, 0.7),
        ),
    )


def _transform(pdf_bytes: bytes, draw: Callable[[fitz.Document], None]) -> bytes:
    with open_pdf(pdf_bytes) as doc:
        if doc.page_count == 0:
            return pdf_bytes
        try:
            draw(doc)
        except (RuntimeError, ValueError) as exc:
            raise MalformedDocumentError(f"Unable to draw on PDF: {exc}") from exc
        logger.debug("Watermarked %d pages", doc.page_count)
        return serialize(doc)


def _stamp_pages(doc: fitz.Document, options: WatermarkOptions) -> None:
    for page in doc:
        _stamp_page(page, options)


def _stamp_page(page: fitz.Page, options: WatermarkOptions) -> None:
    rect = page.rect
    text = options.text
    margin = options.margin

    if options.position == "diagonal":
        size = _fit_font_size(text, options.font_size, _diagonal_span(rect, options.angle))
        width = _text_length(text, size)
        pivot = fitz.Point(rect.x0 + rect.width / 2, rect.y0 + rect.height / 2)
        origin = fitz.Point(pivot.x - width / 2, pivot.y + size * 0.35)
        _draw(
            page,
            origin,
            text,
            size,
            color=options.color,
            opacity=options.opacity,
            morph=(pivot, fitz.Matrix(options.angle)),
        )
        return

    size = _fit_font_size(text, options.font_size, max(rect.width - 2 * margin, 1))
    width = _text_length(text, size)
    x = rect.x0 + (rect.width - width) / 2
    if options.position == "header":
        y = rect.y0 + margin + size
    elif options.position == "footer":
        y = rect.y1 - margin
    else:
        y = rect.y0 + rect.height / 2 + size * 0.35
    _draw(page, fitz.Point(x, y), text, size, color=options.color, opacity=options.opacity)


def _draw_header_block(doc: fitz.Document, lines: Sequence[str]) -> None:
    page = doc[0]
    rect = page.rect
    font_size = 9
    left = 30
    y = rect.y0 + 30
    for line in lines:
        size = _fit_font_size(line, font_size, max(rect.width - 2 * left, 1))
        _draw(page, fitz.Point(rect.x0 + left, y), line, size, color=(0.2, 0.2, 0.2), opacity=1)
        y += font_size + 3


def _draw(
    page: fitz.Page,
    origin: fitz.Point,
    text: str,
    size: float,
    *,
    color: tuple[float, float, float],
    opacity: float,
    morph: tuple[fitz.Point, fitz.Matrix] | None = None,
) -> None:
    offset = 0.0
    for fontname, run in _font_runs(text):
        if fontname == _FALLBACK_FONT:
            _ensure_fallback_font(page)
        page.insert_text(
            fitz.Point(origin.x + offset, origin.y),
            run,
            fontsize=size,
            fontname=fontname,
            color=color,
            fill_opacity=opacity,
            stroke_opacity=opacity,
            morph=morph,
            overlay=True,
        )
        offset += _run_length(fontname, run, size)


@lru_cache(maxsize=1)
def _fallback_font() -> fitz.Font:
    return fitz.Font("cjk")


def _ensure_fallback_font(page: fitz.Page) -> None:
    if any(font[4] == _FALLBACK_FONT for font in page.get_fonts()):
        return
    page.insert_font(fontname=_FALLBACK_FONT, fontbuffer=_fallback_font().buffer)


def _is_latin(char: str) -> bool:
    try:
        char.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def _font_runs(text: str) -> list[tuple[str, str]]:
    """Split text into (fontname, run) pairs; Helvetica covers Latin-1 only."""
    runs: list[tuple[str, str]] = []
    for char in text:
        fontname = _FONT if _is_latin(char) else _FALLBACK_FONT
        if runs and runs[-1][0] == fontname:
            runs[-1] = (fontname, runs[-1][1] + char)
        else:
            runs.append((fontname, char))
    return runs


def _run_length(fontname: str, run: str, size: float) -> float:
    if fontname == _FALLBACK_FONT:
        return _fallback_font().text_length(run, fontsize=size)
    return fitz.get_text_length(run, fontname=fontname, fontsize=size)


def _text_length(text: str, size: float) -> float:
    return sum(_run_length(fontname, run, size) for fontname, run in _font_runs(text))


def _fit_font_size(text: str, requested: float, max_width: float) -> float:
    width = _text_length(text, requested)
    if width <= max_width or width <= 0:
        return requested
    return max(requested * max_width / width, _MIN_FONT_SIZE)


def _diagonal_span(rect: fitz.Rect, angle: float) -> float:
    """Longest centred baseline at ``angle`` that stays inside the page."""
    radians = math.radians(angle)
    cos = abs(math.cos(radians))
    sin = abs(math.sin(radians))
    limits = []
    if cos > 1e-9:
        limits.append(rect.width / cos)
    if sin > 1e-9:
        limits.append(rect.height / sin)
    return min(limits) * _DIAGONAL_FILL


__all__ = [
    "LicenseInfo",
    "PERUSAL_STAMP",
    "UNKNOWN_EMAIL",
    "UNKNOWN_THEATER",
    "WatermarkOptions",
    "license_watermark",
    "perusal_watermark",
    "watermark",
]
