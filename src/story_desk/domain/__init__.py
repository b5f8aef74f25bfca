"""Domain models, errors, and ports for story management."""

from story_desk.domain.errors import NotFoundError, StoreFailure, StoreQueryError, StoryDeskError
from story_desk.domain.models import (
    Category,
    ChapterWithStory,
    DashboardStats,
    NewChapter,
    NewStory,
    Pagination,
    Status,
    StoredChapter,
    StoredStory,
    StoryFilters,
    StoryPage,
)
from story_desk.domain.ports import StoryStore

__all__ = [
    "Category",
    "ChapterWithStory",
    "DashboardStats",
    "NewChapter",
    "NewStory",
    "NotFoundError",
    "Pagination",
    "Status",
    "StoreFailure",
    "StoreQueryError",
    "StoredChapter",
    "StoredStory",
    "StoryDeskError",
    "StoryFilters",
    "StoryPage",
    "StoryStore",
]
