"""
File Loading
============

Reads a file from disk into an `UploadedFile`: images are base64-encoded
and get a small Pillow thumbnail as their preview, text files are decoded.
Anything else is rejected before it can reach the model.
"""

from __future__ import annotations

import base64
import mimetypes
import os
import tempfile
from io import BytesIO
from pathlib import Path

import structlog
from PIL import Image, UnidentifiedImageError

from categorizer.errors import UnsupportedMediaTypeError
from categorizer.models import ImagePreview, UploadedFile, is_image_type, is_text_type

log = structlog.get_logger(__name__)

INVALID_FILE_MESSAGE = "Please upload a valid image or text file."

# mimetypes does not know these on every platform.
EXTRA_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".webp": "image/webp",
}


def guess_media_type(path: str | Path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in EXTRA_TYPES:
        return EXTRA_TYPES[suffix]
    media_type, _ = mimetypes.guess_type(str(path))
    return media_type or "application/octet-stream"


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.2f} KB"


def create_preview(raw: bytes, max_side: int) -> ImagePreview | None:
    """
    Write a PNG thumbnail of `raw` to a temporary file.

    Returns None when Pillow cannot read the image; the file can still be
    categorized, it just has nothing to show.
    """
    try:
        with Image.open(BytesIO(raw)) as image:
            image.thumbnail((max_side, max_side))
            thumbnail = image.convert("RGBA") if image.mode == "CMYK" else image.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        log.warning("Could not read image for preview", error=str(e))
        return None

    fd, path = tempfile.mkstemp(prefix="kb-sorter-preview-", suffix=".png")
    saved = False
    try:
        with os.fdopen(fd, "wb") as handle:
            thumbnail.save(handle, format="PNG")
        saved = True
    except OSError as e:
        log.warning("Could not write image preview", error=str(e))
        return None
    finally:
        if not saved:
            os.unlink(path)
    return ImagePreview(path)


def load_uploaded_file(
    path: str | Path,
    media_type: str | None = None,
    preview_max_side: int = 512,
) -> UploadedFile:
    """
    Load `path` as an `UploadedFile`.

    Raises `UnsupportedMediaTypeError` for files that are neither images nor
    text, and `OSError` if the file cannot be read.
    """
    path = Path(path)
    media_type = media_type or guess_media_type(path)
    if not (is_image_type(media_type) or is_text_type(media_type)):
        raise UnsupportedMediaTypeError(media_type, INVALID_FILE_MESSAGE)

    raw = path.read_bytes()
    if is_image_type(media_type):
        content = base64.b64encode(raw).decode("ascii")
        preview = create_preview(raw, preview_max_side)
    else:
        content = raw.decode("utf-8", errors="replace")
        preview = None

    uploaded = UploadedFile(
        name=path.name,
        media_type=media_type,
        size_bytes=len(raw),
        content=content,
        preview=preview,
    )
    log.debug(
        "Loaded file",
        file_name=uploaded.name,
        media_type=media_type,
        size=format_size(uploaded.size_bytes),
    )
    return uploaded
