"""FastAPI application for story and chapter management."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from story_desk.adapters.cover_storage import CoverRejectedError, LocalCoverStorage
from story_desk.adapters.sqlite_story_store import SQLiteStoryStore
from story_desk.api.contracts import (
    ChapterCountResponse,
    ChapterDetailResponse,
    ChapterRequest,
    ChapterResponse,
    CoverUploadResponse,
    DashboardStatsResponse,
    Envelope,
    ErrorEnvelope,
    FieldErrorResponse,
    MessageEnvelope,
    PaginatedEnvelope,
    PaginationResponse,
    StoryBaseResponse,
    StoryCreateRequest,
    StoryResponse,
    StorySummaryResponse,
    StoryUpdateRequest,
)
from story_desk.domain.errors import NotFoundError, StoreFailure
from story_desk.domain.models import (
    Category,
    ChapterWithStory,
    Status,
    StoredChapter,
    StoredStory,
    StoryFilters,
)
from story_desk.services.chapter_service import ChapterService
from story_desk.services.story_service import StoryService
from story_desk.settings import load_settings

API_VERSION = "1.0.0"
API_PREFIX = "/api"

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "story_desk"


class ApiRootResponse(BaseModel):
    success: bool = True
    message: str = "API is running"
    version: str = API_VERSION


def _chapter_response(chapter: StoredChapter) -> ChapterResponse:
    return ChapterResponse(
        id=chapter.chapter_id,
        title=chapter.title,
        content=chapter.content,
        story_id=chapter.story_id,
        created_at=chapter.created_at_utc,
        updated_at=chapter.updated_at_utc,
    )


def _story_fields(story: StoredStory) -> dict[str, object]:
    return {
        "id": story.story_id,
        "title": story.title,
        "author": story.author,
        "synopsis": story.synopsis,
        "category": story.category,
        "status": story.status,
        "cover_url": story.cover_url,
        "tags": list(story.tags),
        "created_at": story.created_at_utc,
        "updated_at": story.updated_at_utc,
    }


def _story_response(story: StoredStory) -> StoryResponse:
    return StoryResponse.model_validate(
        {
            **_story_fields(story),
            "chapters": [_chapter_response(chapter) for chapter in story.chapters or ()],
        }
    )


def _story_summary_response(story: StoredStory) -> StorySummaryResponse:
    return StorySummaryResponse.model_validate(
        {
            **_story_fields(story),
            "chapter_count": ChapterCountResponse(chapters=story.chapter_count or 0),
        }
    )


def _chapter_detail_response(item: ChapterWithStory) -> ChapterDetailResponse:
    base = _chapter_response(item.chapter)
    return ChapterDetailResponse(
        **base.model_dump(),
        story=StoryBaseResponse.model_validate(_story_fields(item.story)),
    )


def _error_response(
    status_code: int,
    message: str,
    errors: list[FieldErrorResponse] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(message=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _field_errors(exc: RequestValidationError) -> list[FieldErrorResponse]:
    """Flatten pydantic errors into ``field``/``message`` pairs."""
    field_errors: list[FieldErrorResponse] = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in {"body", "query", "path"}:
            source = location[0]
            location = location[1:] or [source]
        context = error.get("ctx") or {}
        message = str(context["error"]) if "error" in context else str(error.get("msg", ""))
        field_errors.append(FieldErrorResponse(field=".".join(location), message=message))
    return field_errors


def create_app(db_path: Path | None = None, upload_dir: Path | None = None) -> FastAPI:
    """Create the API application with its store and services wired in."""
    settings = load_settings(db_path=db_path, upload_dir=upload_dir)
    store = SQLiteStoryStore(db_path=settings.db_path)
    story_service = StoryService(store)
    chapter_service = ChapterService(store)
    cover_storage = LocalCoverStorage(settings.upload_dir, max_bytes=settings.upload_max_bytes)

    app = FastAPI(
        title="story_desk API",
        version=API_VERSION,
        description="Story and chapter management API backed by SQLite.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "stories", "description": "Story CRUD, filtering, and dashboard counts."},
            {"name": "chapters", "description": "Chapter CRUD scoped to a parent story."},
            {"name": "uploads", "description": "Cover image uploads."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.mount(
        "/uploads",
        StaticFiles(directory=str(cover_storage.root), check_dir=False),
        name="uploads",
    )

    logger.info(
        "api.start db_path=%s upload_dir=%s",
        settings.db_path,
        settings.upload_dir,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_failed(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Validation failed", _field_errors(exc))

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, str(exc))

    @app.exception_handler(CoverRejectedError)
    async def cover_rejected(_: Request, exc: CoverRejectedError) -> JSONResponse:
        return _error_response(400, str(exc))

    @app.exception_handler(StoreFailure)
    async def store_failed(request: Request, exc: StoreFailure) -> JSONResponse:
        logger.error(
            "store.failure method=%s path=%s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _error_response(500, "Internal server error")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "api.unhandled method=%s path=%s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _error_response(500, "Internal server error")

    @app.get("/", response_model=ApiRootResponse, tags=["system"])
    def api_root() -> ApiRootResponse:
        return ApiRootResponse()

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get(
        f"{API_PREFIX}/stories/stats/dashboard",
        response_model=Envelope[DashboardStatsResponse],
        tags=["stories"],
    )
    def dashboard_stats() -> Envelope[DashboardStatsResponse]:
        stats = story_service.dashboard_stats()
        return Envelope[DashboardStatsResponse](
            message="Dashboard stats retrieved successfully",
            data=DashboardStatsResponse(
                total=stats.total,
                published=stats.published,
                draft=stats.draft,
                total_chapters=stats.total_chapters,
            ),
        )

    @app.get(f"{API_PREFIX}/stories", response_model=PaginatedEnvelope, tags=["stories"])
    def list_stories(
        search: str | None = Query(default=None),
        category: Category | None = Query(default=None),
        status: Status | None = Query(default=None),
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=10, ge=1),
    ) -> PaginatedEnvelope:
        filters = StoryFilters(
            search=(search or "").strip() or None,
            category=category,
            status=status,
            page=page,
            limit=limit,
        )
        result = story_service.get_all(filters)
        return PaginatedEnvelope(
            message="Stories retrieved successfully",
            data=[_story_summary_response(story) for story in result.stories],
            pagination=PaginationResponse(
                page=result.pagination.page,
                limit=result.pagination.limit,
                total=result.pagination.total,
                total_pages=result.pagination.total_pages,
            ),
        )

    @app.post(
        f"{API_PREFIX}/stories",
        response_model=Envelope[StoryResponse],
        tags=["stories"],
        status_code=201,
    )
    def create_story(payload: StoryCreateRequest) -> Envelope[StoryResponse]:
        story = story_service.create(payload.to_new_story())
        return Envelope[StoryResponse](
            message="Story created successfully", data=_story_response(story)
        )

    @app.get(
        f"{API_PREFIX}/stories/{{story_id}}",
        response_model=Envelope[StoryResponse],
        tags=["stories"],
    )
    def get_story(story_id: str) -> Envelope[StoryResponse]:
        story = story_service.get_by_id(story_id)
        return Envelope[StoryResponse](
            message="Story retrieved successfully", data=_story_response(story)
        )

    @app.put(
        f"{API_PREFIX}/stories/{{story_id}}",
        response_model=Envelope[StoryResponse],
        tags=["stories"],
    )
    def update_story(story_id: str, payload: StoryUpdateRequest) -> Envelope[StoryResponse]:
        story = story_service.update(story_id, payload.changes())
        return Envelope[StoryResponse](
            message="Story updated successfully", data=_story_response(story)
        )

    @app.delete(
        f"{API_PREFIX}/stories/{{story_id}}", response_model=MessageEnvelope, tags=["stories"]
    )
    def delete_story(story_id: str) -> MessageEnvelope:
        story_service.delete(story_id)
        return MessageEnvelope(message="Story deleted successfully")

    def chapter_in_story(*, story_id: str, chapter_id: str) -> ChapterWithStory:
        item = chapter_service.get_by_id(chapter_id)
        if item.chapter.story_id != story_id:
            raise NotFoundError("Chapter")
        return item

    @app.post(
        f"{API_PREFIX}/stories/{{story_id}}/chapters",
        response_model=Envelope[ChapterDetailResponse],
        tags=["chapters"],
        status_code=201,
    )
    def create_chapter(story_id: str, payload: ChapterRequest) -> Envelope[ChapterDetailResponse]:
        created = chapter_service.create(story_id, payload.to_new_chapter())
        return Envelope[ChapterDetailResponse](
            message="Chapter created successfully", data=_chapter_detail_response(created)
        )

    @app.get(
        f"{API_PREFIX}/stories/{{story_id}}/chapters/{{chapter_id}}",
        response_model=Envelope[ChapterDetailResponse],
        tags=["chapters"],
    )
    def get_chapter(story_id: str, chapter_id: str) -> Envelope[ChapterDetailResponse]:
        item = chapter_in_story(story_id=story_id, chapter_id=chapter_id)
        return Envelope[ChapterDetailResponse](
            message="Chapter retrieved successfully", data=_chapter_detail_response(item)
        )

    @app.put(
        f"{API_PREFIX}/stories/{{story_id}}/chapters/{{chapter_id}}",
        response_model=Envelope[ChapterDetailResponse],
        tags=["chapters"],
    )
    def update_story_chapter(
        story_id: str, chapter_id: str, payload: ChapterRequest
    ) -> Envelope[ChapterDetailResponse]:
        chapter_in_story(story_id=story_id, chapter_id=chapter_id)
        updated = chapter_service.update(chapter_id, payload.changes())
        return Envelope[ChapterDetailResponse](
            message="Chapter updated successfully", data=_chapter_detail_response(updated)
        )

    @app.put(
        f"{API_PREFIX}/chapters/{{chapter_id}}",
        response_model=Envelope[ChapterDetailResponse],
        tags=["chapters"],
    )
    def update_chapter(chapter_id: str, payload: ChapterRequest) -> Envelope[ChapterDetailResponse]:
        updated = chapter_service.update(chapter_id, payload.changes())
        return Envelope[ChapterDetailResponse](
            message="Chapter updated successfully", data=_chapter_detail_response(updated)
        )

    @app.delete(
        f"{API_PREFIX}/chapters/{{chapter_id}}", response_model=MessageEnvelope, tags=["chapters"]
    )
    def delete_chapter(chapter_id: str) -> MessageEnvelope:
        chapter_service.delete(chapter_id)
        return MessageEnvelope(message="Chapter deleted successfully")

    @app.post(
        f"{API_PREFIX}/upload/cover",
        response_model=Envelope[CoverUploadResponse],
        tags=["uploads"],
    )
    async def upload_cover(
        request: Request,
        cover: UploadFile = File(...),
    ) -> Envelope[CoverUploadResponse]:
        try:
            payload = await cover.read(cover_storage.max_bytes + 1)
        finally:
            await cover.close()
        stored = await run_in_threadpool(
            cover_storage.save, content_type=cover.content_type, payload=payload
        )
        logger.info("cover.uploaded file=%s bytes=%s", stored.file_name, stored.size_bytes)
        return Envelope[CoverUploadResponse](
            message="Cover uploaded successfully",
            data=CoverUploadResponse(url=str(request.url_for("uploads", path=stored.file_name))),
        )

    return app
