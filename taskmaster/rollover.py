"""Daily rollover: completed daily tasks from a prior local day revert to incomplete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from taskmaster.errors import NetworkOrBackendError
from taskmaster.models import Task
from taskmaster.session import UserSession
from taskmaster.store import TaskStore
from taskmaster.sync_adapter import RemoteSyncAdapter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RolloverResult:
    today: date
    stale_task_ids: list[str] = field(default_factory=list)
    remote_reset_count: int = 0
    reloaded: bool = False

    @property
    def performed(self) -> bool:
        return bool(self.stale_task_ids)


def is_stale(task: Task, cutoff: datetime) -> bool:
    """A completed daily task whose last completion precedes ``cutoff``.

    A completed daily task without a completion timestamp is treated as stale.
    """
    if not (task.is_daily and task.is_completed):
        return False
    if task.last_completed_date is None:
        return True
    return task.last_completed_date < cutoff


class RolloverEngine:
    def __init__(self, session: UserSession, store: TaskStore, adapter: RemoteSyncAdapter):
        self.session = session
        self.store = store
        self.adapter = adapter

    def find_stale(self, cutoff: datetime) -> list[Task]:
        return [task for task in self.store.tasks if is_stale(task, cutoff)]

    async def check_rollover(self, now: datetime | None = None) -> RolloverResult:
        """Reset stale daily tasks for the session's current local day.

        Running it again on the same local day finds nothing stale and issues
        no remote call. The remote reset carries the same cutoff filter, so a
        concurrent reset from another device is harmless. Local state changes
        only after the remote write is confirmed.
        """
        self.session.ensure_active()
        today = self.session.today(now)
        cutoff = self.session.start_of_day(today)
        stale = self.find_stale(cutoff)
        result = RolloverResult(today=today)
        if not stale:
            return result

        user_id = self.session.user_id
        logger.info("Resetting %s stale daily task(s) for %s (%s)", len(stale), user_id, today.isoformat())
        result.remote_reset_count = await self.adapter.reset_daily_tasks(user_id, cutoff)
        self.session.ensure_active()

        for task in stale:
            task.is_completed = False
        result.stale_task_ids = [task.id for task in stale]

        try:
            categories = await self.adapter.load_categories(user_id)
            tasks = await self.adapter.load_tasks(user_id)
        except NetworkOrBackendError as exc:
            logger.warning("Reload after daily reset failed for %s: %s", user_id, exc)
            return result
        self.session.ensure_active()
        self.store.replace(categories, tasks)
        result.reloaded = True
        return result
