"""Chapter use cases scoped to an existing parent story."""

from __future__ import annotations

import logging

from story_desk.domain.errors import NotFoundError
from story_desk.domain.models import ChapterWithStory, NewChapter
from story_desk.domain.ports import StoryStore

logger = logging.getLogger(__name__)


class ChapterService:
    """Chapter CRUD under an existing parent story.

    The existence check and the following write are separate store calls. A
    story deleted before a chapter insert surfaces as a store failure; a chapter
    deleted before its update or delete lands makes the store report no row,
    which is raised as NotFoundError("Chapter").
    """

    def __init__(self, store: StoryStore) -> None:
        self._store = store

    def create(self, story_id: str, chapter: NewChapter) -> ChapterWithStory:
        if not self._store.story_exists(story_id=story_id):
            raise NotFoundError("Story")
        created = self._store.create_chapter(story_id=story_id, chapter=chapter)
        logger.info("chapter.created id=%s story_id=%s", created.chapter.chapter_id, story_id)
        return created

    def get_by_id(self, chapter_id: str) -> ChapterWithStory:
        chapter = self._store.get_chapter(chapter_id=chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter")
        return chapter

    def update(self, chapter_id: str, changes: dict[str, object]) -> ChapterWithStory:
        self.get_by_id(chapter_id)
        updated = self._store.update_chapter(chapter_id=chapter_id, changes=changes)
        if updated is None:
            raise NotFoundError("Chapter")
        logger.info("chapter.updated id=%s", chapter_id)
        return updated

    def delete(self, chapter_id: str) -> None:
        self.get_by_id(chapter_id)
        if not self._store.delete_chapter(chapter_id=chapter_id):
            raise NotFoundError("Chapter")
        logger.info("chapter.deleted id=%s", chapter_id)
