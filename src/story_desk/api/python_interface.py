"""Python-first client for the story_desk HTTP API."""

from __future__ import annotations

from pathlib import Path

import httpx

from story_desk.api.contracts import (
    ChapterDetailResponse,
    ChapterRequest,
    CoverUploadResponse,
    DashboardStatsResponse,
    Envelope,
    PaginatedEnvelope,
    StoryCreateRequest,
    StoryResponse,
    StoryUpdateRequest,
)
from story_desk.domain.models import Category, Status

_COVER_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


class StoryApiClient:
    """Tiny typed API client mirroring the dashboard's data-access calls."""

    def __init__(
        self, api_base_url: str = "http://127.0.0.1:5000/api", timeout: float = 30.0
    ) -> None:
        """Initialize client with an API base URL (including the ``/api`` prefix)."""
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    @property
    def api_base_url(self) -> str:
        """Return normalized API base URL."""
        return self._api_base_url

    def list_stories(
        self,
        *,
        search: str | None = None,
        category: Category | None = None,
        status: Status | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedEnvelope:
        """Fetch one filtered page of stories with pagination metadata."""
        params: dict[str, str | int] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if category is not None:
            params["category"] = category.value
        if status is not None:
            params["status"] = status.value
        response = httpx.get(
            f"{self._api_base_url}/stories", params=params, timeout=self._timeout
        )
        response.raise_for_status()
        return PaginatedEnvelope.model_validate(response.json())

    def get_story(self, story_id: str) -> StoryResponse:
        response = httpx.get(f"{self._api_base_url}/stories/{story_id}", timeout=self._timeout)
        response.raise_for_status()
        return Envelope[StoryResponse].model_validate(response.json()).data

    def dashboard_stats(self) -> DashboardStatsResponse:
        response = httpx.get(
            f"{self._api_base_url}/stories/stats/dashboard", timeout=self._timeout
        )
        response.raise_for_status()
        return Envelope[DashboardStatsResponse].model_validate(response.json()).data

    def create_story(self, request: StoryCreateRequest) -> StoryResponse:
        """Create a story, including any inline chapters on the request."""
        response = httpx.post(
            f"{self._api_base_url}/stories",
            json=request.model_dump(mode="json", by_alias=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return Envelope[StoryResponse].model_validate(response.json()).data

    def update_story(self, story_id: str, request: StoryUpdateRequest) -> StoryResponse:
        """Send only the fields set on ``request``."""
        response = httpx.put(
            f"{self._api_base_url}/stories/{story_id}",
            json=request.model_dump(mode="json", by_alias=True, exclude_unset=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return Envelope[StoryResponse].model_validate(response.json()).data

    def delete_story(self, story_id: str) -> None:
        response = httpx.delete(f"{self._api_base_url}/stories/{story_id}", timeout=self._timeout)
        response.raise_for_status()

    def get_chapter(self, story_id: str, chapter_id: str) -> ChapterDetailResponse:
        response = httpx.get(
            f"{self._api_base_url}/stories/{story_id}/chapters/{chapter_id}",
            timeout=self._timeout,
        )
        response.raise_for_status()
        return Envelope[ChapterDetailResponse].model_validate(response.json()).data

    def create_chapter(self, story_id: str, request: ChapterRequest) -> ChapterDetailResponse:
        response = httpx.post(
            f"{self._api_base_url}/stories/{story_id}/chapters",
            json=request.model_dump(mode="json", by_alias=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return Envelope[ChapterDetailResponse].model_validate(response.json()).data

    def update_chapter(
        self, story_id: str, chapter_id: str, request: ChapterRequest
    ) -> ChapterDetailResponse:
        response = httpx.put(
            f"{self._api_base_url}/stories/{story_id}/chapters/{chapter_id}",
            json=request.model_dump(mode="json", by_alias=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return Envelope[ChapterDetailResponse].model_validate(response.json()).data

    def delete_chapter(self, chapter_id: str) -> None:
        response = httpx.delete(
            f"{self._api_base_url}/chapters/{chapter_id}", timeout=self._timeout
        )
        response.raise_for_status()

    def upload_cover(self, path: Path) -> str:
        """Upload a local image file and return the URL it is served from."""
        content_type = _COVER_CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
        response = httpx.post(
            f"{self._api_base_url}/upload/cover",
            files={"cover": (path.name, path.read_bytes(), content_type)},
            timeout=60.0,
        )
        response.raise_for_status()
        return Envelope[CoverUploadResponse].model_validate(response.json()).data.url


__all__ = ["StoryApiClient"]
