"""Core story and chapter domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum


class Category(StrEnum):
    FINANCIAL = "FINANCIAL"
    TECHNOLOGY = "TECHNOLOGY"
    HEALTH = "HEALTH"


class Status(StrEnum):
    DRAFT = "DRAFT"
    PUBLISH = "PUBLISH"


@dataclass(frozen=True)
class StoredChapter:
    """Stored chapter row."""

    chapter_id: str
    story_id: str
    title: str
    content: str
    created_at_utc: str
    updated_at_utc: str


@dataclass(frozen=True)
class StoredStory:
    """Stored story row with either its chapters or only their count loaded."""

    story_id: str
    title: str
    author: str
    synopsis: str
    category: Category
    status: Status
    cover_url: str | None
    tags: tuple[str, ...]
    created_at_utc: str
    updated_at_utc: str
    chapters: tuple[StoredChapter, ...] | None = None
    chapter_count: int | None = None


@dataclass(frozen=True)
class ChapterWithStory:
    """A chapter together with its parent story (without the story's chapters)."""

    chapter: StoredChapter
    story: StoredStory


@dataclass(frozen=True)
class NewChapter:
    """Chapter fields supplied at creation time."""

    title: str
    content: str


@dataclass(frozen=True)
class NewStory:
    """Story fields supplied at creation time, with optional inline chapters."""

    title: str
    author: str
    synopsis: str
    category: Category
    status: Status
    cover_url: str | None = None
    tags: tuple[str, ...] = ()
    chapters: tuple[NewChapter, ...] = ()


@dataclass(frozen=True)
class StoryFilters:
    """List filters; None means no constraint."""

    search: str | None = None
    category: Category | None = None
    status: Status | None = None
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


@dataclass(frozen=True)
class StoryPage:
    """One page of stories plus the total count of the filtered set."""

    stories: list[StoredStory]
    pagination: Pagination


@dataclass(frozen=True)
class DashboardStats:
    total: int
    published: int
    draft: int
    total_chapters: int
