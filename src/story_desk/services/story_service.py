"""Story use cases: creation, filtered listing, partial updates, and dashboard counts."""

from __future__ import annotations

import logging

from story_desk.domain.errors import NotFoundError
from story_desk.domain.models import (
    DashboardStats,
    NewStory,
    StoredStory,
    StoryFilters,
    StoryPage,
)
from story_desk.domain.ports import StoryStore

logger = logging.getLogger(__name__)


class StoryService:
    """Enforces story existence rules on top of a story store."""

    def __init__(self, store: StoryStore) -> None:
        self._store = store

    def create(self, story: NewStory) -> StoredStory:
        created = self._store.create_story(story=story)
        logger.info(
            "story.created id=%s chapters=%s", created.story_id, len(created.chapters or ())
        )
        return created

    def get_all(self, filters: StoryFilters) -> StoryPage:
        return self._store.list_stories(filters=filters)

    def get_by_id(self, story_id: str) -> StoredStory:
        story = self._store.get_story(story_id=story_id)
        if story is None:
            raise NotFoundError("Story")
        return story

    def update(self, story_id: str, changes: dict[str, object]) -> StoredStory:
        """Merge ``changes`` into the story; fields not named are left untouched."""
        self.get_by_id(story_id)
        updated = self._store.update_story(story_id=story_id, changes=changes)
        if updated is None:
            raise NotFoundError("Story")
        logger.info("story.updated id=%s fields=%s", story_id, ",".join(sorted(changes)))
        return updated

    def delete(self, story_id: str) -> None:
        self.get_by_id(story_id)
        if not self._store.delete_story(story_id=story_id):
            raise NotFoundError("Story")
        logger.info("story.deleted id=%s", story_id)

    def dashboard_stats(self) -> DashboardStats:
        return self._store.dashboard_stats()
