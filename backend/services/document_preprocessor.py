"""Normalize an uploaded certificate into something Gemini can consume.

Images are downscaled and re-encoded as inline JPEG payloads; PDFs are
reduced to their plain text. Nothing is written to disk.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Literal

import pdfplumber
from PIL import Image, UnidentifiedImageError

from config import settings
from services.errors import InvalidInputError, PreprocessError

logger = logging.getLogger(__name__)

DocumentKind = Literal["image", "pdf"]
DOCUMENT_KINDS: tuple[str, ...] = ("image", "pdf")

# Upload types accepted at the edge (matches the certificate upload filter)
_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "image",
    "image/jpg": "image",
    "image/png": "image",
    "application/pdf": "pdf",
}
_EXTENSIONS: dict[str, str] = {
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".pdf": "pdf",
}

CANONICAL_IMAGE_FORMAT = "JPEG"
CANONICAL_IMAGE_MIME = "image/jpeg"


@dataclass(frozen=True)
class InlineMedia:
    """Base64-encoded bytes plus MIME type, sent alongside prompt text."""
    data: str
    mime_type: str


@dataclass(frozen=True)
class PreparedContent:
    """Exactly one of `text` (PDF) or `media` (image) is set."""
    kind: DocumentKind
    text: str | None = None
    media: InlineMedia | None = None


def detect_kind(filename: str | None, content_type: str | None) -> DocumentKind:
    """Map an upload's MIME type (or, failing that, its extension) to a kind."""
    if content_type and content_type.lower() in _CONTENT_TYPES:
        return _CONTENT_TYPES[content_type.lower()]
    if filename:
        name = filename.lower()
        for ext, kind in _EXTENSIONS.items():
            if name.endswith(ext):
                return kind
    raise InvalidInputError("Invalid file type. Only JPG, PNG and PDF files are allowed")


def prepare_image(image_bytes: bytes, max_dimension: int | None = None) -> InlineMedia:
    """Fit the image inside max_dimension x max_dimension and re-encode as JPEG."""
    max_dimension = max_dimension or settings.image_max_dimension
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            img = img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise PreprocessError(f"Failed to process image: {e}") from e

    # thumbnail() keeps aspect ratio and never upscales
    img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    out = io.BytesIO()
    img.save(out, format=CANONICAL_IMAGE_FORMAT, quality=85)
    logger.info("Image processed: %dx%d, %d bytes", img.width, img.height, out.tell())
    return InlineMedia(
        data=base64.b64encode(out.getvalue()).decode("ascii"),
        mime_type=CANONICAL_IMAGE_MIME,
    )


def extract_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF file."""
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise PreprocessError(f"Failed to extract text from PDF: {e}") from e

    text = "\n".join(pages).strip()
    if not text:
        raise PreprocessError("No text could be extracted from PDF")
    logger.info("PDF text extracted, length: %d", len(text))
    return text


def prepare(buffer: bytes, kind: str) -> PreparedContent:
    """Turn a raw upload into a text or inline-media payload."""
    if not buffer:
        raise InvalidInputError("No file buffer provided")
    if kind == "image":
        return PreparedContent(kind="image", media=prepare_image(buffer))
    if kind == "pdf":
        return PreparedContent(kind="pdf", text=extract_text(buffer))
    raise InvalidInputError(f"Invalid file type: {kind}")
