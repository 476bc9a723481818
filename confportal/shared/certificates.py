from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Mapping

from PIL import Image, ImageDraw, ImageFont
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .certificate_fonts import (
    DEFAULT_FONT_TIMEOUT,
    FontChoice,
    FontLoadError,
    pillow_measure,
    resolve_font,
)
from .text_fit import FitRequest, FitResult, TextPlacement, describe, fit, place

logger = logging.getLogger("confportal.certificates")

DEFAULT_FILENAME_PREFIX = "BioMedix2025_Certificate"
GENERIC_FIRST_NAME = "Conference"
GENERIC_LAST_NAME = "Participant"
PLACEHOLDER_NAMES = {"loading...", "not provided"}

PDF_PAGE_SIZE = (850, 650)
JPEG_QUALITY = 95
NAME_FILL = "#333333"

# TextPlacement.align -> Pillow anchor, vertically centred on the anchor y
ALIGN_ANCHORS = {"center": "mm", "left": "lm", "right": "rm"}

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


class CertificateError(RuntimeError):
    pass


class TemplateLoadError(CertificateError):
    pass


class CertificateFontError(CertificateError):
    pass


@dataclass(frozen=True)
class CertificateResult:
    pdf_bytes: bytes
    preview_jpeg: bytes
    filename: str
    display_name: str
    font: FontChoice
    fit: FitResult


def _clean_name(value: str | None) -> str:
    cleaned = " ".join((value or "").split())
    if cleaned.lower() in PLACEHOLDER_NAMES:
        return ""
    return cleaned


def resolve_participant_name(
    first_name: str | None, last_name: str | None
) -> tuple[str, str]:
    """Return usable (first, last) names, or the generic participant."""
    first = _clean_name(first_name)
    last = _clean_name(last_name)
    if not first and not last:
        return GENERIC_FIRST_NAME, GENERIC_LAST_NAME
    return first, last


def participant_display_name(first_name: str | None, last_name: str | None) -> str:
    first, last = resolve_participant_name(first_name, last_name)
    return " ".join(part for part in (first, last) if part)


def certificate_filename(
    first_name: str | None,
    last_name: str | None,
    prefix: str = DEFAULT_FILENAME_PREFIX,
) -> str:
    first, last = resolve_participant_name(first_name, last_name)
    parts = [prefix] + [
        _UNSAFE_FILENAME.sub("-", part).strip("-") for part in (last, first) if part
    ]
    return "_".join(p for p in parts if p) + ".pdf"


def load_template(path: str) -> Image.Image:
    try:
        with Image.open(path) as img:
            return img.convert("RGB")
    except (OSError, ValueError) as exc:
        raise TemplateLoadError(f"Failed to load certificate image: {path}") from exc


def _draw_line(
    image: Image.Image,
    text: str,
    font: ImageFont.FreeTypeFont,
    x: float,
    y: float,
    fill: str,
    max_width: float | None,
    anchor: str = "mm",
) -> None:
    width = font.getlength(text)
    if not max_width or width <= max_width:
        ImageDraw.Draw(image).text((x, y), text, font=font, fill=fill, anchor=anchor)
        return
    # Condense horizontally into max_width, like a canvas fillText maxWidth.
    left, top, right, bottom = font.getbbox(text, anchor=anchor)
    layer = Image.new("RGBA", (max(1, right - left), max(1, bottom - top)), (0, 0, 0, 0))
    ImageDraw.Draw(layer).text((-left, -top), text, font=font, fill=fill, anchor=anchor)
    scale = max_width / width
    target_width = max(1, int(round(layer.width * scale)))
    layer = layer.resize((target_width, layer.height), Image.Resampling.LANCZOS)
    image.paste(layer, (int(round(x + left * scale)), int(round(y + top))), layer)


def render_name(
    image: Image.Image,
    placement: TextPlacement,
    font_path: str,
    fill: str = NAME_FILL,
    condense: bool = True,
) -> Image.Image:
    """Paint the placed lines onto ``image``.

    The face comes from ``font_path``; ``placement.font_family`` is only the
    label used in logs.
    """
    anchor = ALIGN_ANCHORS.get(placement.align)
    if anchor is None:
        raise ValueError(f"Unsupported text alignment: {placement.align}")
    try:
        font = ImageFont.truetype(font_path, max(1, int(placement.font_size)))
    except OSError as exc:
        raise CertificateFontError(f"Unable to load font {font_path}") from exc
    max_width = placement.max_width if condense else None
    for line, y in zip(placement.lines, placement.anchor_ys):
        _draw_line(image, line, font, placement.anchor_x, y, fill, max_width, anchor)
    return image


def to_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def build_pdf(
    jpeg_bytes: bytes,
    page_size: tuple[float, float] = PDF_PAGE_SIZE,
    title: str = "Certificate of Attendance",
    author: str = "",
) -> bytes:
    """Embed a composited certificate bitmap into a one-page PDF."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=page_size)
    width, height = page_size
    c.drawImage(ImageReader(BytesIO(jpeg_bytes)), 0, 0, width=width, height=height)
    c.showPage()
    c.save()
    buffer.seek(0)

    writer = PdfWriter()
    for page in PdfReader(buffer).pages:
        writer.add_page(page)
    writer.add_metadata(
        {
            "/Title": title,
            "/Author": author,
            "/Subject": "Certificate of Attendance",
        }
    )
    out_buffer = BytesIO()
    writer.write(out_buffer)
    return out_buffer.getvalue()


def compose_certificate(
    template: Image.Image, display_name: str, font: FontChoice
) -> tuple[Image.Image, FitRequest, FitResult]:
    if not display_name.strip():
        raise ValueError("certificate name must not be empty")
    request = FitRequest(
        text=display_name,
        canvas_width=template.width,
        canvas_height=template.height,
        font_family=font.family,
        preferred_font_size=font.preferred_font_size,
        min_font_size=font.min_font_size,
    )
    try:
        result = fit(request, pillow_measure(font.path))
    except FontLoadError as exc:
        raise CertificateFontError(str(exc)) from exc
    logger.info(
        "[CERT] name=%r canvas=%sx%s font=%s %s",
        display_name,
        template.width,
        template.height,
        font.family,
        describe(request, result),
    )
    image = render_name(template.copy(), place(request, result), font.path)
    return image, request, result


def generate_certificate(
    first_name: str | None,
    last_name: str | None,
    *,
    template_path: str,
    decorative_font_path: str | None = None,
    fallback_font_path: str | None = None,
    font_timeout: float = DEFAULT_FONT_TIMEOUT,
    filename_prefix: str = DEFAULT_FILENAME_PREFIX,
) -> CertificateResult:
    """Composite the participant name onto the template and export a PDF."""
    display_name = participant_display_name(first_name, last_name)
    font = resolve_font(decorative_font_path, fallback_font_path, font_timeout)
    template = load_template(template_path)
    image, _, result = compose_certificate(template, display_name, font)
    jpeg_bytes = to_jpeg(image)
    pdf_bytes = build_pdf(jpeg_bytes, author=display_name)
    return CertificateResult(
        pdf_bytes=pdf_bytes,
        preview_jpeg=jpeg_bytes,
        filename=certificate_filename(first_name, last_name, filename_prefix),
        display_name=display_name,
        font=font,
        fit=result,
    )


def generate_for_config(
    first_name: str | None, last_name: str | None, config: Mapping
) -> CertificateResult:
    return generate_certificate(
        first_name,
        last_name,
        template_path=config["CERT_TEMPLATE_PATH"],
        decorative_font_path=config.get("CERT_DECORATIVE_FONT_PATH"),
        fallback_font_path=config.get("CERT_FALLBACK_FONT_PATH"),
        font_timeout=float(config.get("CERT_FONT_TIMEOUT", DEFAULT_FONT_TIMEOUT)),
        filename_prefix=config.get("CERT_FILENAME_PREFIX", DEFAULT_FILENAME_PREFIX),
    )
