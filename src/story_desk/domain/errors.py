"""Domain errors raised by services and stores."""

from __future__ import annotations


class StoryDeskError(RuntimeError):
    """Base error for story_desk failures."""


class NotFoundError(StoryDeskError):
    """Raised when a referenced story or chapter does not exist."""

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class StoreFailure(StoryDeskError):
    """Raised when the underlying data store errors."""


class StoreQueryError(StoreFailure):
    """Raised when a list/count read fails, so callers can tell it apart from no matches."""
