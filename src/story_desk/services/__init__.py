"""Application services wiring domain rules to a story store."""

from story_desk.services.chapter_service import ChapterService
from story_desk.services.story_service import StoryService

__all__ = ["ChapterService", "StoryService"]
