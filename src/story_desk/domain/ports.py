"""Persistence port the story and chapter services depend on."""

from __future__ import annotations

from typing import Protocol

from story_desk.domain.models import (
    ChapterWithStory,
    DashboardStats,
    NewChapter,
    NewStory,
    StoredStory,
    StoryFilters,
    StoryPage,
)


class StoryStore(Protocol):
    """Reads and writes stories and chapters."""

    def create_story(self, *, story: NewStory) -> StoredStory: ...

    def list_stories(self, *, filters: StoryFilters) -> StoryPage: ...

    def get_story(self, *, story_id: str) -> StoredStory | None: ...

    def story_exists(self, *, story_id: str) -> bool: ...

    def update_story(self, *, story_id: str, changes: dict[str, object]) -> StoredStory | None: ...

    def delete_story(self, *, story_id: str) -> bool: ...

    def dashboard_stats(self) -> DashboardStats: ...

    def create_chapter(self, *, story_id: str, chapter: NewChapter) -> ChapterWithStory: ...

    def get_chapter(self, *, chapter_id: str) -> ChapterWithStory | None: ...

    def update_chapter(
        self, *, chapter_id: str, changes: dict[str, object]
    ) -> ChapterWithStory | None: ...

    def delete_chapter(self, *, chapter_id: str) -> bool: ...
