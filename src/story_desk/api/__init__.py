"""Public API surface for HTTP serving and the Python client."""

from story_desk.api.app import create_app
from story_desk.api.contracts import (
    ChapterRequest,
    StoryCreateRequest,
    StoryUpdateRequest,
)
from story_desk.api.python_interface import StoryApiClient

__all__ = [
    "ChapterRequest",
    "StoryApiClient",
    "StoryCreateRequest",
    "StoryUpdateRequest",
    "create_app",
]
