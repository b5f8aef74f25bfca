"""Local-disk storage for uploaded story cover images."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from story_desk.domain.errors import StoryDeskError

DEFAULT_MAX_BYTES = 5 * 1024 * 1024

# Accepted upload content types and the extension the stored file gets.
ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def _size_label(size_bytes: int) -> str:
    if size_bytes % (1024 * 1024) == 0:
        return f"{size_bytes // (1024 * 1024)}MB"
    return f"{math.ceil(size_bytes / 1024)}KB"


class CoverRejectedError(StoryDeskError):
    """Raised when an uploaded cover fails its type or size checks."""


@dataclass(frozen=True)
class StoredCover:
    """A cover image written to the upload directory."""

    file_name: str
    path: Path
    size_bytes: int


class LocalCoverStorage:
    """Write cover images under one directory with collision-free names."""

    def __init__(self, root: Path, *, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self._root = root
        self._max_bytes = max_bytes
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def save(self, *, content_type: str | None, payload: bytes) -> StoredCover:
        """Validate and persist one image payload."""
        normalized_type = (content_type or "").split(";", maxsplit=1)[0].strip().lower()
        extension = ALLOWED_CONTENT_TYPES.get(normalized_type)
        if extension is None:
            raise CoverRejectedError("Only JPEG, PNG, and WEBP images are allowed")
        if not payload:
            raise CoverRejectedError("Uploaded file is empty")
        if len(payload) > self._max_bytes:
            limit = _size_label(self._max_bytes)
            raise CoverRejectedError(f"File too large; maximum size is {limit}")
        file_name = f"cover-{uuid4().hex}{extension}"
        path = self._root / file_name
        path.write_bytes(payload)
        return StoredCover(file_name=file_name, path=path, size_bytes=len(payload))
