from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from story_desk.adapters.sqlite_story_store import SQLiteStoryStore
from story_desk.domain.errors import StoreFailure, StoreQueryError
from story_desk.domain.models import Category, NewChapter, NewStory, Status, StoryFilters


def _new_story(
    title: str = "Hello",
    *,
    author: str = "Alice",
    category: Category = Category.FINANCIAL,
    status: Status = Status.DRAFT,
    chapters: tuple[NewChapter, ...] = (),
) -> NewStory:
    return NewStory(
        title=title,
        author=author,
        synopsis="Synopsis",
        category=category,
        status=status,
        cover_url=None,
        tags=("money", "tips", "money"),
        chapters=chapters,
    )


def test_story_lifecycle_with_inline_chapters(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    created = store.create_story(
        story=_new_story(
            chapters=(
                NewChapter(title="One", content="<p>first</p>"),
                NewChapter(title="Two", content="<p>second</p>"),
            )
        )
    )
    loaded = store.get_story(story_id=created.story_id)

    assert loaded is not None
    assert loaded.title == "Hello"
    assert loaded.tags == ("money", "tips", "money")
    assert loaded.cover_url is None
    assert loaded.created_at_utc == loaded.updated_at_utc
    assert loaded.chapters is not None
    assert [chapter.title for chapter in loaded.chapters] == ["One", "Two"]
    assert all(chapter.story_id == created.story_id for chapter in loaded.chapters)


def test_missing_story_paths_return_none_or_false(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")

    assert store.get_story(story_id="missing") is None
    assert store.story_exists(story_id="missing") is False
    assert store.update_story(story_id="missing", changes={"title": "Never"}) is None
    assert store.delete_story(story_id="missing") is False
    assert store.get_chapter(chapter_id="missing") is None
    assert store.update_chapter(chapter_id="missing", changes={"title": "Never"}) is None
    assert store.delete_chapter(chapter_id="missing") is False


def test_partial_update_keeps_unspecified_fields(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    created = store.create_story(story=_new_story(title="A"))

    updated = store.update_story(
        story_id=created.story_id, changes={"status": Status.PUBLISH, "tags": ["x"]}
    )

    assert updated is not None
    assert updated.title == "A"
    assert updated.status is Status.PUBLISH
    assert updated.tags == ("x",)
    assert updated.updated_at_utc > created.updated_at_utc
    assert updated.created_at_utc == created.created_at_utc


def test_update_rejects_unknown_fields(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    created = store.create_story(story=_new_story())

    with pytest.raises(ValueError, match="Unknown story field"):
        store.update_story(story_id=created.story_id, changes={"story_id": "other"})


def test_delete_story_cascades_to_chapters(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    created = store.create_story(
        story=_new_story(chapters=(NewChapter(title="One", content="c"),))
    )
    extra = store.create_chapter(
        story_id=created.story_id, chapter=NewChapter(title="Two", content="c")
    )
    assert created.chapters is not None
    chapter_ids = [created.chapters[0].chapter_id, extra.chapter.chapter_id]

    assert store.delete_story(story_id=created.story_id) is True

    assert all(store.get_chapter(chapter_id=chapter_id) is None for chapter_id in chapter_ids)
    assert store.dashboard_stats().total_chapters == 0


def test_chapter_requires_existing_story_at_store_level(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")

    with pytest.raises(StoreFailure):
        store.create_chapter(story_id="missing", chapter=NewChapter(title="T", content="C"))
    assert store.dashboard_stats().total_chapters == 0


def test_chapter_update_returns_parent_story(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(story=_new_story())
    created = store.create_chapter(
        story_id=story.story_id, chapter=NewChapter(title="Draft", content="c")
    )

    updated = store.update_chapter(
        chapter_id=created.chapter.chapter_id, changes={"title": "Final"}
    )

    assert updated is not None
    assert updated.chapter.title == "Final"
    assert updated.chapter.content == "c"
    assert updated.story.story_id == story.story_id
    assert updated.story.chapters is None


def test_list_orders_by_most_recent_update(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    first = store.create_story(story=_new_story("First"))
    store.create_story(story=_new_story("Second"))
    store.create_story(story=_new_story("Third"))
    store.update_story(story_id=first.story_id, changes={"synopsis": "Touched"})

    page = store.list_stories(filters=StoryFilters())

    assert [story.title for story in page.stories] == ["First", "Third", "Second"]


def test_list_annotates_chapter_counts_without_loading_chapters(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(
        story=_new_story(
            chapters=(NewChapter(title="1", content="c"), NewChapter(title="2", content="c"))
        )
    )

    page = store.list_stories(filters=StoryFilters())

    assert page.stories[0].chapter_count == 2
    assert page.stories[0].chapters is None


def test_search_matches_title_or_author_case_insensitively(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(story=_new_story("Market Crash", author="Bob"))
    store.create_story(story=_new_story("Garden Notes", author="Marta Klein"))
    store.create_story(story=_new_story("Ünïcode Saga", author="Zed"))
    store.create_story(story=_new_story("Unrelated", author="Nobody"))

    mar = store.list_stories(filters=StoryFilters(search="MAR"))
    unicode_match = store.list_stories(filters=StoryFilters(search="üNï"))

    assert sorted(story.title for story in mar.stories) == ["Garden Notes", "Market Crash"]
    assert mar.pagination.total == 2
    assert [story.title for story in unicode_match.stories] == ["Ünïcode Saga"]


def test_search_treats_like_wildcards_literally(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(story=_new_story("100% Growth"))
    store.create_story(story=_new_story("Plain Title"))

    percent = store.list_stories(filters=StoryFilters(search="%"))
    underscore = store.list_stories(filters=StoryFilters(search="_"))

    assert [story.title for story in percent.stories] == ["100% Growth"]
    assert underscore.pagination.total == 0


def test_filters_combine_with_and(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(story=_new_story("Alpha", category=Category.HEALTH, status=Status.PUBLISH))
    store.create_story(story=_new_story("Alpine", category=Category.HEALTH, status=Status.DRAFT))
    store.create_story(
        story=_new_story("Alpaca", category=Category.TECHNOLOGY, status=Status.PUBLISH)
    )

    page = store.list_stories(
        filters=StoryFilters(search="alp", category=Category.HEALTH, status=Status.PUBLISH)
    )

    assert [story.title for story in page.stories] == ["Alpha"]
    assert page.pagination.total == 1


def test_pagination_total_is_independent_of_page(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    for index in range(7):
        store.create_story(story=_new_story(f"Story {index}"))

    pages = [store.list_stories(filters=StoryFilters(page=page, limit=3)) for page in (1, 2, 3, 4)]

    assert [len(page.stories) for page in pages] == [3, 3, 1, 0]
    assert {page.pagination.total for page in pages} == {7}
    assert {page.pagination.total_pages for page in pages} == {3}
    seen = [story.story_id for page in pages for story in page.stories]
    assert len(seen) == len(set(seen)) == 7


def test_dashboard_stats_counts_by_status(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(
        story=_new_story(status=Status.PUBLISH, chapters=(NewChapter(title="1", content="c"),))
    )
    store.create_story(story=_new_story(status=Status.DRAFT))
    store.create_story(
        story=_new_story(
            status=Status.DRAFT,
            chapters=(NewChapter(title="1", content="c"), NewChapter(title="2", content="c")),
        )
    )

    stats = store.dashboard_stats()

    assert (stats.total, stats.published, stats.draft, stats.total_chapters) == (3, 1, 2, 3)


def test_dashboard_stats_on_empty_store(tmp_path: Path) -> None:
    stats = SQLiteStoryStore(db_path=tmp_path / "stories.db").dashboard_stats()
    assert (stats.total, stats.published, stats.draft, stats.total_chapters) == (0, 0, 0, 0)


def test_broken_store_surfaces_query_error_instead_of_empty_page(tmp_path: Path) -> None:
    db_path = tmp_path / "stories.db"
    store = SQLiteStoryStore(db_path=db_path)
    connection = sqlite3.connect(str(db_path))
    connection.execute("DROP TABLE chapters")
    connection.execute("DROP TABLE stories")
    connection.commit()
    connection.close()

    with pytest.raises(StoreQueryError, match="Database query failed"):
        store.list_stories(filters=StoryFilters())
    with pytest.raises(StoreQueryError):
        store.dashboard_stats()
    with pytest.raises(StoreFailure):
        store.get_story(story_id="any")


def test_schema_initialization_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "stories.db"
    first = SQLiteStoryStore(db_path=db_path)
    created = first.create_story(story=_new_story())
    second = SQLiteStoryStore(db_path=db_path)

    assert second.get_story(story_id=created.story_id) is not None


def test_chapter_writes_leave_story_timestamp_alone(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ticks = iter(f"2026-01-01T00:00:{second:02d}.000000+00:00" for second in range(60))
    monkeypatch.setattr(
        "story_desk.adapters.sqlite_story_store._utc_now", lambda: next(ticks)
    )
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    story = store.create_story(story=_new_story())
    story_updated_at = story.updated_at_utc

    created = store.create_chapter(
        story_id=story.story_id, chapter=NewChapter(title="Draft", content="c")
    )
    updated = store.update_chapter(
        chapter_id=created.chapter.chapter_id, changes={"content": "revised"}
    )
    assert updated is not None
    assert updated.chapter.updated_at_utc > created.chapter.updated_at_utc
    assert updated.chapter.created_at_utc == created.chapter.created_at_utc
    assert store.delete_chapter(chapter_id=created.chapter.chapter_id) is True

    reloaded = store.get_story(story_id=story.story_id)
    assert reloaded is not None
    assert reloaded.updated_at_utc == story_updated_at
    assert created.story.updated_at_utc == story_updated_at
    assert updated.story.updated_at_utc == story_updated_at


def test_listing_does_not_change_stored_rows(tmp_path: Path) -> None:
    store = SQLiteStoryStore(db_path=tmp_path / "stories.db")
    store.create_story(
        story=_new_story("One", chapters=(NewChapter(title="c", content="c"),))
    )
    store.create_story(story=_new_story("Two"))
    filters = StoryFilters(search="o", page=1, limit=10)

    first = store.list_stories(filters=filters)
    second = store.list_stories(filters=filters)

    assert first == second
    assert [story.updated_at_utc for story in first.stories] == [
        story.updated_at_utc for story in second.stories
    ]
