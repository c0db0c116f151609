"""Per-session task operations exposed to the UI layer.

Every operation holds the session lock for its whole duration, so mutations
issued in quick succession are applied one at a time. Remote writes are
confirmed before the in-memory store changes, and a rollover check runs
before any figures are derived so stats and history reflect today's state.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable

from taskmaster.errors import NetworkOrBackendError, NotFoundError, StaleSessionError, ValidationError
from taskmaster.history import HistoryRecorder
from taskmaster.models import AnalyticsHistoryEntry, Category, CategoryStats, DailyStats, Task, UserStats, new_id
from taskmaster.rollover import RolloverEngine, RolloverResult
from taskmaster.session import UserSession
from taskmaster.stats import compute_category_stats, compute_daily_stats
from taskmaster.store import TaskStore
from taskmaster.sync_adapter import RemoteSyncAdapter

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


def _clean_title(title: str | None, label: str) -> str:
    clean = " ".join(str(title or "").split()).strip()
    if not clean:
        raise ValidationError(f"{label} title cannot be empty")
    if len(clean) > MAX_TITLE_LENGTH:
        raise ValidationError(f"{label} title is longer than {MAX_TITLE_LENGTH} characters")
    return clean


def _as_ids(items: Iterable) -> list[str]:
    return [str(getattr(item, "id", item)) for item in items]


class TaskManager:
    def __init__(
        self,
        session: UserSession,
        adapter: RemoteSyncAdapter,
        recorder: HistoryRecorder | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.adapter = adapter
        self.store = TaskStore(session.user_id)
        self.rollover = RolloverEngine(session, self.store, adapter)
        self.history = recorder or HistoryRecorder(adapter)
        self.clock = clock or session.now
        self.loaded = False
        self._lock = asyncio.Lock()

    @property
    def user_id(self) -> str:
        return self.session.user_id

    @property
    def categories(self) -> list[Category]:
        return self.store.categories

    @property
    def tasks(self) -> list[Task]:
        return self.store.tasks

    def get_daily_stats(self) -> DailyStats:
        return compute_daily_stats(self.store.tasks)

    def get_category_stats(self) -> list[CategoryStats]:
        return compute_category_stats(self.store.categories, self.store.tasks)

    async def load(self) -> RolloverResult | None:
        """Replace the store from the backend, then run the rollover check."""
        async with self._lock:
            await self._reload()
            self.loaded = True
            return await self._rollover_quietly()

    async def sync(self) -> RolloverResult | None:
        return await self.load()

    async def activate(self, now: datetime | None = None) -> RolloverResult | None:
        """Rollover check for an app activation. Failures are retried on the next one."""
        async with self._lock:
            if not self.loaded:
                await self._reload()
                self.loaded = True
            return await self._rollover_quietly(now)

    async def toggle_task(self, task_id: str) -> Task:
        async with self._lock:
            now = self.clock()
            await self._rollover_quietly(now)
            task = self._require_task(task_id)
            completed = not task.is_completed
            last_completed = now if completed else task.last_completed_date
            await self.adapter.update_task(
                self.user_id,
                task.id,
                {"is_completed": completed, "last_completed_date": last_completed},
            )
            self.session.ensure_active()
            task.is_completed = completed
            task.last_completed_date = last_completed
            await self._record_history(now)
            return task

    async def add_task(self, category_id: str | None, title: str, is_daily: bool = False) -> Task:
        clean_title = _clean_title(title, "Task")
        if not category_id:
            raise ValidationError("Select a category before adding a task")
        async with self._lock:
            now = self.clock()
            self._require_category(category_id)
            await self._rollover_quietly(now)
            siblings = self.store.tasks_in(category_id)
            task = Task(
                id=new_id(),
                user_id=self.user_id,
                category_id=category_id,
                title=clean_title,
                is_completed=False,
                is_daily=bool(is_daily),
                last_completed_date=None,
                created_at=now,
                order_index=max(t.order_index for t in siblings) + 1 if siblings else 0,
            )
            await self.adapter.insert_task(task)
            self.session.ensure_active()
            self.store.upsert_task(task)
            await self._record_history(now)
            return task

    async def update_task(self, task_id: str, title: str) -> Task:
        clean_title = _clean_title(title, "Task")
        async with self._lock:
            task = self._require_task(task_id)
            await self.adapter.update_task(self.user_id, task.id, {"title": clean_title})
            self.session.ensure_active()
            task.title = clean_title
            return task

    async def delete_task(self, task_id: str) -> None:
        async with self._lock:
            now = self.clock()
            task = self._require_task(task_id)
            await self.adapter.delete_task(self.user_id, task.id)
            self.session.ensure_active()
            self.store.remove_task(task.id)
            await self._rollover_quietly(now)
            await self._record_history(now)

    async def add_category(self, title: str) -> Category:
        clean_title = _clean_title(title, "Category")
        async with self._lock:
            existing = self.store.categories
            order_index = existing[-1].order_index + 1 if existing else 0
            category = Category(
                id=new_id(),
                user_id=self.user_id,
                title=clean_title,
                order_index=order_index,
                created_at=self.clock(),
            )
            await self.adapter.insert_category(category)
            self.session.ensure_active()
            self.store.upsert_category(category)
            return category

    async def rename_category(self, category_id: str, title: str) -> Category:
        clean_title = _clean_title(title, "Category")
        async with self._lock:
            category = self._require_category(category_id)
            await self.adapter.update_category(self.user_id, category.id, {"title": clean_title})
            self.session.ensure_active()
            category.title = clean_title
            return category

    async def delete_category(self, category_id: str) -> None:
        async with self._lock:
            now = self.clock()
            category = self._require_category(category_id)
            await self.adapter.delete_category(self.user_id, category.id)
            self.session.ensure_active()
            self.store.remove_category(category.id)
            await self._rollover_quietly(now)
            await self._record_history(now)

    async def reorder_categories(self, categories: Iterable) -> list[Category]:
        """Persist the given order as indices 0..n-1; the list must name every category once."""
        ordered_ids = _as_ids(categories)
        async with self._lock:
            known = {category.id for category in self.store.categories}
            if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != known:
                raise ValidationError("Reorder must list each category exactly once")
            await self.adapter.reorder_categories(self.user_id, ordered_ids)
            self.session.ensure_active()
            for index, category_id in enumerate(ordered_ids):
                self.store.get_category(category_id).order_index = index
            return self.store.categories

    async def reorder_tasks(self, category_id: str, tasks: Iterable) -> list[Task]:
        ordered_ids = _as_ids(tasks)
        async with self._lock:
            self._require_category(category_id)
            known = {task.id for task in self.store.tasks_in(category_id)}
            if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != known:
                raise ValidationError("Reorder must list each task of the category exactly once")
            await self.adapter.reorder_tasks(self.user_id, category_id, ordered_ids)
            self.session.ensure_active()
            for index, task_id in enumerate(ordered_ids):
                self.store.get_task(task_id).order_index = index
            return self.store.tasks_in(category_id)

    async def analytics_history(self, limit: int = 7) -> list[AnalyticsHistoryEntry]:
        return await self.history.recent(self.user_id, limit)

    async def user_stats(self) -> UserStats:
        return await self.history.user_stats(self.user_id, self.session.today(self.clock()))

    def close(self) -> None:
        self.session.close()
        self.store.clear()
        self.loaded = False

    async def _reload(self) -> None:
        categories = await self.adapter.load_categories(self.user_id)
        tasks = await self.adapter.load_tasks(self.user_id)
        self.session.ensure_active()
        self.store.replace(categories, tasks)

    async def _rollover_quietly(self, now: datetime | None = None) -> RolloverResult | None:
        now = now or self.clock()
        try:
            result = await self.rollover.check_rollover(now)
        except NetworkOrBackendError as exc:
            logger.warning("Daily reset for %s deferred to next activation: %s", self.user_id, exc)
            return None
        except StaleSessionError:
            logger.debug("Discarding rollover result for ended session %s", self.user_id)
            return None
        if result.performed:
            await self._record_history(now)
        return result

    async def _record_history(self, now: datetime) -> bool:
        if not self.session.is_active:
            return False
        return await self.history.record(
            self.user_id,
            self.session.today(now),
            self.get_daily_stats(),
            self.get_category_stats(),
        )

    def _require_task(self, task_id: str) -> Task:
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def _require_category(self, category_id: str) -> Category:
        category = self.store.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category
