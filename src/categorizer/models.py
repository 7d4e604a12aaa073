"""
Data types shared by the categorizer and the sorter session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


def is_image_type(media_type: str) -> bool:
    return media_type.startswith("image/")


def is_text_type(media_type: str) -> bool:
    return media_type.startswith("text/")


class ImagePreview:
    """
    A temporary preview file for an uploaded image.

    The file is deleted by `release()`; calling it again does nothing.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        log.debug("Released image preview", path=str(self.path))

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"ImagePreview({str(self.path)!r}, {state})"


@dataclass
class UploadedFile:
    name: str
    media_type: str
    size_bytes: int
    # base64 for images, decoded text for text files
    content: str
    preview: ImagePreview | None = field(default=None, repr=False)

    @property
    def preview_reference(self) -> str | None:
        if self.preview is None or not is_image_type(self.media_type):
            return None
        return str(self.preview.path)

    def release(self) -> None:
        """Release any resources held for displaying this file."""
        if self.preview is not None:
            self.preview.release()


@dataclass(frozen=True)
class CategorizationResult:
    project: str
    tags: list[str]

    def to_dict(self) -> dict:
        return {"project": self.project, "tags": list(self.tags)}
