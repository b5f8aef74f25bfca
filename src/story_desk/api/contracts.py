"""Typed contracts shared by API handlers and the Python client."""

from __future__ import annotations

import re
from typing import Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from story_desk.domain.models import Category, NewChapter, NewStory, Status

COVER_URL_PATTERN = re.compile(
    r"^(https?://)?(localhost|127\.0\.0\.1|[\w-]+(\.[\w-]+)+)(:\d+)?(/.*)?$"
)

DataT = TypeVar("DataT")


class ContractModel(BaseModel):
    """Base model config used by all API contracts: camelCase on the wire."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RequestModel(ContractModel):
    """Request bodies ignore unknown fields, so clients may echo back whole records."""

    model_config = ConfigDict(extra="ignore")


def _require_text(value: str, message: str) -> str:
    if not value.strip():
        raise ValueError(message)
    return value.strip()


def _normalize_cover_url(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if not COVER_URL_PATTERN.match(normalized):
        raise ValueError("Cover URL must be a valid URL")
    return normalized


def _normalize_tags(values: list[str]) -> list[str]:
    normalized = [value.strip() for value in values]
    if any(not value for value in normalized):
        raise ValueError("Each tag must not be empty")
    return normalized


class ChapterRequest(RequestModel):
    """Chapter body used for create and update; both fields are required."""

    title: str
    content: str

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        return _require_text(value, "Chapter title is required")

    @field_validator("content")
    @classmethod
    def _validate_content(cls, value: str) -> str:
        return _require_text(value, "Chapter content is required")

    def to_new_chapter(self) -> NewChapter:
        return NewChapter(title=self.title, content=self.content)

    def changes(self) -> dict[str, object]:
        return {"title": self.title, "content": self.content}


class StoryCreateRequest(RequestModel):
    """Create one story, optionally with its first chapters."""

    title: str
    author: str
    synopsis: str
    category: Category
    status: Status
    cover_url: str | None = None
    tags: list[str]
    chapters: list[ChapterRequest] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        return _require_text(value, "Title is required")

    @field_validator("author")
    @classmethod
    def _validate_author(cls, value: str) -> str:
        return _require_text(value, "Author is required")

    @field_validator("synopsis")
    @classmethod
    def _validate_synopsis(cls, value: str) -> str:
        return _require_text(value, "Synopsis is required")

    @field_validator("cover_url")
    @classmethod
    def _validate_cover_url(cls, value: str | None) -> str | None:
        return _normalize_cover_url(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, values: list[str]) -> list[str]:
        return _normalize_tags(values)

    def to_new_story(self) -> NewStory:
        return NewStory(
            title=self.title,
            author=self.author,
            synopsis=self.synopsis,
            category=self.category,
            status=self.status,
            cover_url=self.cover_url,
            tags=tuple(self.tags),
            chapters=tuple(chapter.to_new_chapter() for chapter in self.chapters),
        )


class StoryUpdateRequest(RequestModel):
    """Partial story update; only the fields present in the body are changed."""

    title: str | None = None
    author: str | None = None
    synopsis: str | None = None
    category: Category | None = None
    status: Status | None = None
    cover_url: str | None = None
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value, "Title cannot be empty")

    @field_validator("author")
    @classmethod
    def _validate_author(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value, "Author cannot be empty")

    @field_validator("synopsis")
    @classmethod
    def _validate_synopsis(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value, "Synopsis cannot be empty")

    @field_validator("cover_url")
    @classmethod
    def _validate_cover_url(cls, value: str | None) -> str | None:
        return _normalize_cover_url(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, values: list[str] | None) -> list[str] | None:
        return None if values is None else _normalize_tags(values)

    @model_validator(mode="after")
    def _reject_null_required_fields(self) -> StoryUpdateRequest:
        nulled = sorted(
            name
            for name in self.model_fields_set
            if name != "cover_url" and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class ChapterResponse(ContractModel):
    """Chapter payload returned by the API."""

    id: str
    title: str
    content: str
    story_id: str
    created_at: str
    updated_at: str


class StoryBaseResponse(ContractModel):
    """Story fields without chapter information."""

    id: str
    title: str
    author: str
    synopsis: str
    category: Category
    status: Status
    cover_url: str | None
    tags: list[str]
    created_at: str
    updated_at: str


class ChapterCountResponse(ContractModel):
    chapters: int


class StorySummaryResponse(StoryBaseResponse):
    """List item: the story annotated with its chapter count."""

    chapter_count: ChapterCountResponse = Field(alias="_count")


class StoryResponse(StoryBaseResponse):
    """Story detail with chapters in reading order."""

    chapters: list[ChapterResponse]


class ChapterDetailResponse(ChapterResponse):
    """Chapter with its parent story embedded."""

    story: StoryBaseResponse


class PaginationResponse(ContractModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DashboardStatsResponse(ContractModel):
    total: int
    published: int
    draft: int
    total_chapters: int


class CoverUploadResponse(ContractModel):
    url: str


class FieldErrorResponse(ContractModel):
    """One field-level validation message."""

    field: str
    message: str


class Envelope(ContractModel, Generic[DataT]):
    """Response wrapper used by every successful endpoint that returns data."""

    success: bool = True
    message: str | None = None
    data: DataT


class PaginatedEnvelope(ContractModel):
    success: bool = True
    message: str | None = None
    data: list[StorySummaryResponse]
    pagination: PaginationResponse


class MessageEnvelope(ContractModel):
    success: bool = True
    message: str | None = None


class ErrorEnvelope(ContractModel):
    success: bool = False
    message: str
    errors: list[FieldErrorResponse] | None = None
