import asyncio
import dataclasses
from datetime import date, datetime, timezone

import pytest

from taskmaster.errors import NetworkOrBackendError
from taskmaster.models import AnalyticsHistoryEntry, Category, Note, Task, new_id
from taskmaster.session import UserSession

USER_ID = "user-1"
TZ_NAME = "America/Sao_Paulo"


def utc(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class FakeAdapter:
    """In-memory stand-in for the remote backend with per-operation failure switches."""

    def __init__(self):
        self.categories: dict[str, Category] = {}
        self.tasks: dict[str, Task] = {}
        self.history: dict[tuple[str, date], AnalyticsHistoryEntry] = {}
        self.notes: dict[str, Note] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise NetworkOrBackendError(name, "simulated outage")

    def count(self, name):
        return self.calls.count(name)

    def seed_category(self, title, order_index=0, user_id=USER_ID, category_id=None):
        category = Category(
            id=category_id or new_id(),
            user_id=user_id,
            title=title,
            order_index=order_index,
            created_at=utc(2026, 1, 1),
        )
        self.categories[category.id] = category
        return category

    def seed_task(self, category, title, is_completed=False, is_daily=False, last_completed_date=None, created_at=None):
        task = Task(
            id=new_id(),
            user_id=category.user_id,
            category_id=category.id,
            title=title,
            is_completed=is_completed,
            is_daily=is_daily,
            last_completed_date=last_completed_date,
            created_at=created_at or utc(2026, 1, 1, 12, len(self.tasks)),
        )
        self.tasks[task.id] = task
        return task

    async def load_categories(self, user_id):
        self._call("load_categories")
        rows = [c for c in self.categories.values() if c.user_id == user_id]
        return [dataclasses.replace(c) for c in sorted(rows, key=lambda c: c.order_index)]

    async def load_tasks(self, user_id):
        self._call("load_tasks")
        rows = [t for t in self.tasks.values() if t.user_id == user_id]
        return [dataclasses.replace(t) for t in sorted(rows, key=lambda t: t.created_at)]

    async def insert_category(self, category):
        self._call("insert_category")
        self.categories[category.id] = dataclasses.replace(category)
        return category

    async def update_category(self, user_id, category_id, patch):
        self._call("update_category")
        category = self.categories[category_id]
        for key, value in patch.items():
            setattr(category, key, value)

    async def reorder_categories(self, user_id, category_ids):
        self._call("reorder_categories")
        for index, category_id in enumerate(category_ids):
            self.categories[category_id].order_index = index

    async def delete_category(self, user_id, category_id):
        self._call("delete_category")
        self.categories.pop(category_id, None)
        self.tasks = {k: t for k, t in self.tasks.items() if t.category_id != category_id}

    async def insert_task(self, task):
        self._call("insert_task")
        self.tasks[task.id] = dataclasses.replace(task)
        return task

    async def update_task(self, user_id, task_id, patch):
        self._call("update_task")
        task = self.tasks[task_id]
        for key, value in patch.items():
            setattr(task, key, value)

    async def reorder_tasks(self, user_id, category_id, task_ids):
        self._call("reorder_tasks")
        for index, task_id in enumerate(task_ids):
            self.tasks[task_id].order_index = index

    async def delete_task(self, user_id, task_id):
        self._call("delete_task")
        self.tasks.pop(task_id, None)

    async def reset_daily_tasks(self, user_id, cutoff):
        self._call("reset_daily_tasks")
        count = 0
        for task in self.tasks.values():
            if task.user_id != user_id or not task.is_daily or not task.is_completed:
                continue
            if task.last_completed_date is None or task.last_completed_date < cutoff:
                task.is_completed = False
                count += 1
        return count

    async def upsert_history(self, entry):
        self._call("upsert_history")
        self.history[(entry.user_id, entry.date)] = dataclasses.replace(entry)

    async def list_history(self, user_id, limit=None):
        self._call("list_history")
        rows = sorted(
            (e for (uid, _), e in self.history.items() if uid == user_id),
            key=lambda e: e.date,
            reverse=True,
        )
        return rows[:limit] if limit is not None else rows

    async def list_notes(self, user_id):
        self._call("list_notes")
        rows = [n for n in self.notes.values() if n.user_id == user_id]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)

    async def insert_note(self, user_id, content):
        self._call("insert_note")
        now = datetime.now(timezone.utc)
        note = Note(id=new_id(), user_id=user_id, content=content, created_at=now, updated_at=now)
        self.notes[note.id] = note
        return note

    async def update_note(self, user_id, note_id, content):
        self._call("update_note")
        note = self.notes.get(note_id)
        if note is None or note.user_id != user_id:
            return False
        note.content = content
        return True

    async def delete_note(self, user_id, note_id):
        self._call("delete_note")
        note = self.notes.get(note_id)
        if note is None or note.user_id != user_id:
            return False
        del self.notes[note_id]
        return True


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def session():
    return UserSession(USER_ID, TZ_NAME)


@pytest.fixture
def clock():
    # 2026-10-19 09:00 in Sao Paulo.
    return Clock(utc(2026, 10, 19, 12))


@pytest.fixture
def sqlite_env(tmp_path, monkeypatch):
    from taskmaster import db, settings

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'taskmaster.db'}")
    monkeypatch.setenv("BACKEND_SESSION_SECRET", "test-secret")
    monkeypatch.setenv("DEFAULT_TIMEZONE", TZ_NAME)
    monkeypatch.delenv("ALLOWED_USER_IDS", raising=False)
    settings.reset_settings()
    asyncio.run(db.dispose_engine())
    yield tmp_path
    asyncio.run(db.dispose_engine())
    settings.reset_settings()
