"""SqlSyncAdapter against a throwaway SQLite database."""

import asyncio
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from conftest import USER_ID, utc
from taskmaster import repositories
from taskmaster.db import normalize_database_url
from taskmaster.db_init import init_db
from taskmaster.errors import NetworkOrBackendError
from taskmaster.models import AnalyticsHistoryEntry, Category, Task
from taskmaster.sync_adapter import SqlSyncAdapter


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture
def sql(sqlite_env):
    _run(init_db())
    return SqlSyncAdapter()


def _category(title, order_index, category_id=None, user_id=USER_ID):
    return Category(
        id=category_id or f"cat-{title.lower()}",
        user_id=user_id,
        title=title,
        order_index=order_index,
        created_at=utc(2026, 1, 1),
    )


def _task(task_id, category, created_hour, **kwargs):
    return Task(
        id=task_id,
        user_id=category.user_id,
        category_id=category.id,
        title=task_id,
        created_at=utc(2026, 1, 1, created_hour),
        **kwargs,
    )


class TestNormalizeDatabaseUrl:
    def test_postgres_schemes_use_asyncpg(self):
        assert normalize_database_url("postgres://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"
        assert normalize_database_url("postgresql://u:p@db/app").startswith("postgresql+asyncpg://")

    def test_sslmode_becomes_ssl_flag(self):
        url = normalize_database_url("postgresql://u:p@db/app?sslmode=require&channel_binding=prefer")
        assert url == "postgresql+asyncpg://u:p@db/app?ssl=true"

    def test_sqlite_uses_aiosqlite(self):
        assert normalize_database_url("sqlite:///tmp/x.db") == "sqlite+aiosqlite:///tmp/x.db"
        assert normalize_database_url("") == ""


class TestCategoriesAndTasks:
    def test_load_orders_and_round_trips(self, sql):
        second = _category("Second", 1)
        first = _category("First", 0)
        _run(sql.insert_category(second))
        _run(sql.insert_category(first))
        _run(sql.insert_category(_category("Other", 0, "cat-other", user_id="someone-else")))
        late = _task("late", first, 15, is_daily=True, is_completed=True, last_completed_date=utc(2026, 10, 18, 9))
        early = _task("early", second, 8)
        _run(sql.insert_task(late))
        _run(sql.insert_task(early))

        categories = _run(sql.load_categories(USER_ID))
        tasks = _run(sql.load_tasks(USER_ID))

        assert [c.title for c in categories] == ["First", "Second"]
        assert [t.id for t in tasks] == ["early", "late"]
        assert tasks[1].is_daily is True
        assert tasks[1].is_completed is True
        assert tasks[1].last_completed_date == utc(2026, 10, 18, 9)

    def test_update_and_reorder(self, sql):
        c1, c2, c3 = _category("A", 5), _category("B", 9), _category("C", 1)
        for category in (c1, c2, c3):
            _run(sql.insert_category(category))
        _run(sql.reorder_categories(USER_ID, [c2.id, c1.id, c3.id]))
        _run(sql.update_category(USER_ID, c3.id, {"title": "C2"}))
        loaded = _run(sql.load_categories(USER_ID))
        assert [(c.id, c.order_index) for c in loaded] == [(c2.id, 0), (c1.id, 1), (c3.id, 2)]
        assert loaded[2].title == "C2"

        t1, t2 = _task("t1", c1, 1), _task("t2", c1, 2)
        _run(sql.insert_task(t1))
        _run(sql.insert_task(t2))
        _run(sql.reorder_tasks(USER_ID, c1.id, ["t2", "t1"]))
        _run(sql.update_task(USER_ID, "t1", {"is_completed": True, "last_completed_date": utc(2026, 10, 19, 4)}))
        tasks = {t.id: t for t in _run(sql.load_tasks(USER_ID))}
        assert (tasks["t2"].order_index, tasks["t1"].order_index) == (0, 1)
        assert tasks["t1"].is_completed
        assert tasks["t1"].last_completed_date == utc(2026, 10, 19, 4)

    def test_delete_category_cascades(self, sql):
        keep, drop = _category("Keep", 0), _category("Drop", 1)
        _run(sql.insert_category(keep))
        _run(sql.insert_category(drop))
        _run(sql.insert_task(_task("k", keep, 1)))
        _run(sql.insert_task(_task("d", drop, 2)))
        _run(sql.delete_category(USER_ID, drop.id))
        _run(sql.delete_task(USER_ID, "k"))
        assert [c.id for c in _run(sql.load_categories(USER_ID))] == [keep.id]
        assert _run(sql.load_tasks(USER_ID)) == []


class TestDailyReset:
    def test_filter_is_idempotent_and_scoped(self, sql):
        category = _category("Habits", 0)
        _run(sql.insert_category(category))
        cutoff = utc(2026, 10, 19, 3)
        _run(sql.insert_task(_task("stale", category, 1, is_daily=True, is_completed=True,
                                   last_completed_date=utc(2026, 10, 18, 20))))
        _run(sql.insert_task(_task("fresh", category, 2, is_daily=True, is_completed=True,
                                   last_completed_date=utc(2026, 10, 19, 4))))
        _run(sql.insert_task(_task("undated", category, 3, is_daily=True, is_completed=True)))
        _run(sql.insert_task(_task("plain", category, 4, is_daily=False, is_completed=True,
                                   last_completed_date=utc(2026, 9, 1))))

        assert _run(sql.reset_daily_tasks(USER_ID, cutoff)) == 2
        assert _run(sql.reset_daily_tasks(USER_ID, cutoff)) == 0

        tasks = {t.id: t for t in _run(sql.load_tasks(USER_ID))}
        assert not tasks["stale"].is_completed
        assert not tasks["undated"].is_completed
        assert tasks["fresh"].is_completed
        assert tasks["plain"].is_completed
        assert tasks["stale"].last_completed_date == utc(2026, 10, 18, 20)


class TestHistory:
    def test_upsert_keeps_one_row_per_day(self, sql):
        day = date(2026, 10, 19)
        first = AnalyticsHistoryEntry(USER_ID, day, 3, 1, 33, [{"category_id": "a", "percentage": 33}])
        second = AnalyticsHistoryEntry(USER_ID, day, 3, 2, 67, [{"category_id": "a", "percentage": 67}])
        _run(sql.upsert_history(first))
        _run(sql.upsert_history(second))
        _run(sql.upsert_history(AnalyticsHistoryEntry(USER_ID, date(2026, 10, 18), 1, 1, 100)))

        rows = _run(sql.list_history(USER_ID))
        assert [row.date for row in rows] == [day, date(2026, 10, 18)]
        assert (rows[0].completed_tasks, rows[0].completion_percentage) == (2, 67)
        assert rows[0].category_stats == [{"category_id": "a", "percentage": 67}]
        assert len(_run(sql.list_history(USER_ID, limit=1))) == 1


class TestNotes:
    def test_note_crud(self, sql):
        note = _run(sql.insert_note(USER_ID, "first"))
        assert _run(sql.update_note(USER_ID, note.id, "edited"))
        assert not _run(sql.update_note("intruder", note.id, "hijack"))
        (loaded,) = _run(sql.list_notes(USER_ID))
        assert loaded.content == "edited"
        assert _run(sql.delete_note(USER_ID, note.id))
        assert not _run(sql.delete_note(USER_ID, note.id))


class TestBackendErrors:
    def test_driver_errors_become_network_or_backend_errors(self, sql, monkeypatch):
        async def broken(user_id):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(repositories, "list_tasks", broken)
        with pytest.raises(NetworkOrBackendError) as excinfo:
            _run(sql.load_tasks(USER_ID))
        assert excinfo.value.operation == "load_tasks"
