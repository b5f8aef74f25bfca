"""SQLite-backed persistence for stories and their chapters."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import cast
from uuid import uuid4

from story_desk.domain.errors import StoreFailure, StoreQueryError
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

_STORY_COLUMNS = (
    "s.story_id, s.title, s.author, s.synopsis, s.category, s.status, s.cover_url, s.tags_json, "
    "s.created_at_utc, s.updated_at_utc"
)
_CHAPTER_COLUMNS = (
    "c.chapter_id, c.story_id, c.title, c.content, c.created_at_utc, c.updated_at_utc"
)

# Partial-update field name -> column name.
_STORY_UPDATE_COLUMNS = {
    "title": "title",
    "author": "author",
    "synopsis": "synopsis",
    "category": "category",
    "status": "status",
    "cover_url": "cover_url",
    "tags": "tags_json",
}
_CHAPTER_UPDATE_COLUMNS = {"title": "title", "content": "content"}


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds")


def _contains_casefold(haystack: str | None, needle: str | None) -> int:
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


class SQLiteStoryStore:
    """Persist and query stories and chapters from one SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._db_path), timeout=10.0)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        connection.create_function("contains_casefold", 2, _contains_casefold, deterministic=True)
        return connection

    @contextmanager
    def _session(
        self,
        *,
        snapshot: bool = False,
        failure: type[StoreFailure] = StoreFailure,
    ) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside one transaction, then close it.

        With ``snapshot`` the transaction is opened eagerly so that every read
        inside it sees the same database state.
        """
        connection: sqlite3.Connection | None = None
        try:
            connection = self._connect()
            with connection:
                if snapshot:
                    connection.execute("BEGIN")
                yield connection
        except sqlite3.Error as exc:
            raise failure(f"Database query failed: {exc}") from exc
        finally:
            if connection is not None:
                connection.close()

    def _initialize_schema(self) -> None:
        with self._session() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS stories (
                    story_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    author TEXT NOT NULL,
                    synopsis TEXT NOT NULL,
                    category TEXT NOT NULL
                        CHECK (category IN ('FINANCIAL', 'TECHNOLOGY', 'HEALTH')),
                    status TEXT NOT NULL CHECK (status IN ('DRAFT', 'PUBLISH')),
                    cover_url TEXT,
                    tags_json TEXT NOT NULL DEFAULT '[]',
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS chapters (
                    chapter_id TEXT PRIMARY KEY,
                    story_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL,
                    FOREIGN KEY (story_id) REFERENCES stories(story_id) ON DELETE CASCADE
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_stories_updated
                ON stories(updated_at_utc DESC)
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_chapters_story_created
                ON chapters(story_id, created_at_utc)
                """
            )

    def create_story(self, *, story: NewStory) -> StoredStory:
        """Insert a story and its inline chapters in one transaction."""
        now = _utc_now()
        story_id = uuid4().hex
        with self._session() as connection:
            connection.execute(
                """
                INSERT INTO stories (
                    story_id, title, author, synopsis, category, status,
                    cover_url, tags_json, created_at_utc, updated_at_utc
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    story_id,
                    story.title,
                    story.author,
                    story.synopsis,
                    story.category.value,
                    story.status.value,
                    story.cover_url,
                    json.dumps(list(story.tags)),
                    now,
                    now,
                ),
            )
            for chapter in story.chapters:
                self._insert_chapter(connection, story_id=story_id, chapter=chapter, now=now)
            created = self._load_story(connection, story_id=story_id, with_chapters=True)
        if created is None:
            raise StoreFailure("Created story could not be loaded.")
        return created

    def list_stories(self, *, filters: StoryFilters) -> StoryPage:
        """Return one page of matching stories and the total match count.

        Both reads run in a single transaction so ``total`` always describes the
        same filtered set the page was sliced from.
        """
        clauses: list[str] = []
        params: list[object] = []
        if filters.search:
            clauses.append(
                "(contains_casefold(s.title, ?) = 1 OR contains_casefold(s.author, ?) = 1)"
            )
            params.extend([filters.search, filters.search])
        if filters.category is not None:
            clauses.append("s.category = ?")
            params.append(filters.category.value)
        if filters.status is not None:
            clauses.append("s.status = ?")
            params.append(filters.status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._session(snapshot=True, failure=StoreQueryError) as connection:
            rows = connection.execute(
                f"""
                SELECT {_STORY_COLUMNS},
                    (SELECT COUNT(*) FROM chapters c WHERE c.story_id = s.story_id) AS chapter_count
                FROM stories s
                {where}
                ORDER BY s.updated_at_utc DESC, s.rowid ASC
                LIMIT ? OFFSET ?
                """,
                (*params, filters.limit, filters.skip),
            ).fetchall()
            total_row = connection.execute(
                f"SELECT COUNT(*) AS total FROM stories s {where}",
                params,
            ).fetchone()

        stories = [
            self._story_from_row(row, chapter_count=int(row["chapter_count"])) for row in rows
        ]
        return StoryPage(
            stories=stories,
            pagination=Pagination(
                page=filters.page, limit=filters.limit, total=int(total_row["total"])
            ),
        )

    def get_story(self, *, story_id: str) -> StoredStory | None:
        """Load one story with its chapters in reading order."""
        with self._session() as connection:
            return self._load_story(connection, story_id=story_id, with_chapters=True)

    def story_exists(self, *, story_id: str) -> bool:
        with self._session() as connection:
            row = connection.execute(
                "SELECT 1 FROM stories WHERE story_id = ?", (story_id,)
            ).fetchone()
        return row is not None

    def update_story(self, *, story_id: str, changes: dict[str, object]) -> StoredStory | None:
        """Apply a partial update and return the story with its chapters."""
        assignments: list[str] = []
        params: list[object] = []
        for name, value in changes.items():
            column = _STORY_UPDATE_COLUMNS.get(name)
            if column is None:
                raise ValueError(f"Unknown story field: {name}")
            if name == "tags":
                value = json.dumps([str(tag) for tag in cast("list[str]", value)])
            elif name in {"category", "status"} and value is not None:
                value = str(value)
            assignments.append(f"{column} = ?")
            params.append(value)
        assignments.append("updated_at_utc = ?")
        params.append(_utc_now())

        with self._session() as connection:
            cursor = connection.execute(
                f"UPDATE stories SET {', '.join(assignments)} WHERE story_id = ?",
                (*params, story_id),
            )
            if cursor.rowcount == 0:
                return None
            return self._load_story(connection, story_id=story_id, with_chapters=True)

    def delete_story(self, *, story_id: str) -> bool:
        """Delete a story; its chapters go with it through the foreign-key cascade."""
        with self._session() as connection:
            cursor = connection.execute("DELETE FROM stories WHERE story_id = ?", (story_id,))
            deleted_rows = cursor.rowcount
        return deleted_rows > 0

    def dashboard_stats(self) -> DashboardStats:
        """Count stories by status and all chapters against one snapshot."""
        with self._session(snapshot=True, failure=StoreQueryError) as connection:
            story_row = connection.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(CASE WHEN status = 'PUBLISH' THEN 1 ELSE 0 END), 0) AS published,
                    COALESCE(SUM(CASE WHEN status = 'DRAFT' THEN 1 ELSE 0 END), 0) AS draft
                FROM stories
                """
            ).fetchone()
            chapter_row = connection.execute(
                "SELECT COUNT(*) AS total_chapters FROM chapters"
            ).fetchone()
        return DashboardStats(
            total=int(story_row["total"]),
            published=int(story_row["published"]),
            draft=int(story_row["draft"]),
            total_chapters=int(chapter_row["total_chapters"]),
        )

    def create_chapter(self, *, story_id: str, chapter: NewChapter) -> ChapterWithStory:
        """Insert one chapter under an existing story."""
        with self._session() as connection:
            chapter_id = self._insert_chapter(
                connection, story_id=story_id, chapter=chapter, now=_utc_now()
            )
            created = self._load_chapter(connection, chapter_id=chapter_id)
        if created is None:
            raise StoreFailure("Created chapter could not be loaded.")
        return created

    def get_chapter(self, *, chapter_id: str) -> ChapterWithStory | None:
        with self._session() as connection:
            return self._load_chapter(connection, chapter_id=chapter_id)

    def update_chapter(
        self, *, chapter_id: str, changes: dict[str, object]
    ) -> ChapterWithStory | None:
        """Apply a partial title/content update."""
        assignments: list[str] = []
        params: list[object] = []
        for name, value in changes.items():
            column = _CHAPTER_UPDATE_COLUMNS.get(name)
            if column is None:
                raise ValueError(f"Unknown chapter field: {name}")
            assignments.append(f"{column} = ?")
            params.append(value)
        assignments.append("updated_at_utc = ?")
        params.append(_utc_now())

        with self._session() as connection:
            cursor = connection.execute(
                f"UPDATE chapters SET {', '.join(assignments)} WHERE chapter_id = ?",
                (*params, chapter_id),
            )
            if cursor.rowcount == 0:
                return None
            return self._load_chapter(connection, chapter_id=chapter_id)

    def delete_chapter(self, *, chapter_id: str) -> bool:
        with self._session() as connection:
            cursor = connection.execute(
                "DELETE FROM chapters WHERE chapter_id = ?", (chapter_id,)
            )
            deleted_rows = cursor.rowcount
        return deleted_rows > 0

    @staticmethod
    def _insert_chapter(
        connection: sqlite3.Connection, *, story_id: str, chapter: NewChapter, now: str
    ) -> str:
        chapter_id = uuid4().hex
        connection.execute(
            """
            INSERT INTO chapters (
                chapter_id, story_id, title, content, created_at_utc, updated_at_utc
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (chapter_id, story_id, chapter.title, chapter.content, now, now),
        )
        return chapter_id

    def _load_story(
        self, connection: sqlite3.Connection, *, story_id: str, with_chapters: bool
    ) -> StoredStory | None:
        row = connection.execute(
            f"SELECT {_STORY_COLUMNS} FROM stories s WHERE s.story_id = ?",
            (story_id,),
        ).fetchone()
        if row is None:
            return None
        if not with_chapters:
            return self._story_from_row(row)
        chapter_rows = connection.execute(
            f"""
            SELECT {_CHAPTER_COLUMNS}
            FROM chapters c
            WHERE c.story_id = ?
            ORDER BY c.created_at_utc ASC, c.rowid ASC
            """,
            (story_id,),
        ).fetchall()
        return self._story_from_row(
            row, chapters=tuple(self._chapter_from_row(chapter) for chapter in chapter_rows)
        )

    def _load_chapter(
        self, connection: sqlite3.Connection, *, chapter_id: str
    ) -> ChapterWithStory | None:
        row = connection.execute(
            f"SELECT {_CHAPTER_COLUMNS} FROM chapters c WHERE c.chapter_id = ?",
            (chapter_id,),
        ).fetchone()
        if row is None:
            return None
        chapter = self._chapter_from_row(row)
        story = self._load_story(connection, story_id=chapter.story_id, with_chapters=False)
        if story is None:
            return None
        return ChapterWithStory(chapter=chapter, story=story)

    @staticmethod
    def _story_from_row(
        row: sqlite3.Row,
        *,
        chapters: tuple[StoredChapter, ...] | None = None,
        chapter_count: int | None = None,
    ) -> StoredStory:
        cover_url = row["cover_url"]
        return StoredStory(
            story_id=str(row["story_id"]),
            title=str(row["title"]),
            author=str(row["author"]),
            synopsis=str(row["synopsis"]),
            category=Category(str(row["category"])),
            status=Status(str(row["status"])),
            cover_url=None if cover_url is None else str(cover_url),
            tags=tuple(str(tag) for tag in json.loads(str(row["tags_json"]))),
            created_at_utc=str(row["created_at_utc"]),
            updated_at_utc=str(row["updated_at_utc"]),
            chapters=chapters,
            chapter_count=chapter_count,
        )

    @staticmethod
    def _chapter_from_row(row: sqlite3.Row) -> StoredChapter:
        return StoredChapter(
            chapter_id=str(row["chapter_id"]),
            story_id=str(row["story_id"]),
            title=str(row["title"]),
            content=str(row["content"]),
            created_at_utc=str(row["created_at_utc"]),
            updated_at_utc=str(row["updated_at_utc"]),
        )
