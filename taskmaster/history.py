from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from taskmaster.models import AnalyticsHistoryEntry, CategoryStats, DailyStats, UserStats
from taskmaster.sync_adapter import RemoteSyncAdapter

logger = logging.getLogger(__name__)


def _is_perfect(entry: AnalyticsHistoryEntry) -> bool:
    return entry.total_tasks > 0 and entry.completed_tasks >= entry.total_tasks


def _streak_ending(by_date: dict[date, AnalyticsHistoryEntry], last_day: date) -> int:
    count = 0
    current = last_day
    while True:
        entry = by_date.get(current)
        if entry is None or not _is_perfect(entry):
            break
        count += 1
        current -= timedelta(days=1)
    return count


def summarize_history(entries: Iterable[AnalyticsHistoryEntry], today: date) -> UserStats:
    by_date = {entry.date: entry for entry in entries}
    days_active = sum(1 for entry in by_date.values() if entry.completed_tasks > 0)
    total_completed = sum(entry.completed_tasks for entry in by_date.values())

    # Today is still in progress, so an unfinished today does not break the streak.
    today_entry = by_date.get(today)
    include_today = today_entry is not None and _is_perfect(today_entry)
    current = _streak_ending(by_date, today if include_today else today - timedelta(days=1))

    best = 0
    run = 0
    previous: date | None = None
    for day in sorted(by_date):
        if _is_perfect(by_date[day]):
            if run and previous is not None and day - previous == timedelta(days=1):
                run += 1
            else:
                run = 1
            best = max(best, run)
        else:
            run = 0
        previous = day
    return UserStats(
        days_active=days_active,
        total_tasks_completed=total_completed,
        current_streak=current,
        best_streak=max(best, current),
    )


class HistoryRecorder:
    """Writes one analytics row per user and local day."""

    def __init__(self, adapter: RemoteSyncAdapter):
        self.adapter = adapter

    async def record(
        self,
        user_id: str,
        day: date,
        stats: DailyStats,
        category_stats: Iterable[CategoryStats],
    ) -> bool:
        """Upsert the snapshot for ``(user_id, day)``.

        Failures are logged and reported through the return value only; the
        task change that triggered the snapshot has already been committed.
        """
        entry = AnalyticsHistoryEntry(
            user_id=user_id,
            date=day,
            total_tasks=stats.total,
            completed_tasks=stats.completed,
            completion_percentage=stats.percentage,
            category_stats=[item.as_dict() for item in category_stats],
        )
        try:
            await self.adapter.upsert_history(entry)
        except Exception:
            logger.exception("Failed to record analytics history for %s on %s", user_id, day.isoformat())
            return False
        return True

    async def recent(self, user_id: str, limit: int = 7) -> list[AnalyticsHistoryEntry]:
        return await self.adapter.list_history(user_id, limit)

    async def user_stats(self, user_id: str, today: date) -> UserStats:
        entries = await self.adapter.list_history(user_id)
        return summarize_history(entries, today)
