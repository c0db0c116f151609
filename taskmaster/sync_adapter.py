"""Remote Sync Adapter: the engine's only route to persisted rows.

``RemoteSyncAdapter`` is the interface the store, rollover engine and history
recorder are written against. ``SqlSyncAdapter`` implements it on top of the
SQL repositories; any driver or database failure is re-raised as
``NetworkOrBackendError`` so callers only deal with one failure type.
"""

from __future__ import annotations

import functools
import logging
from datetime import date as dt_date, datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from taskmaster import repositories
from taskmaster.errors import NetworkOrBackendError
from taskmaster.models import AnalyticsHistoryEntry, Category, Note, Task, parse_timestamp, to_utc_iso, utcnow

logger = logging.getLogger(__name__)


class RemoteSyncAdapter(Protocol):
    async def load_categories(self, user_id: str) -> list[Category]: ...

    async def load_tasks(self, user_id: str) -> list[Task]: ...

    async def insert_category(self, category: Category) -> Category: ...

    async def update_category(self, user_id: str, category_id: str, patch: dict) -> None: ...

    async def reorder_categories(self, user_id: str, category_ids: list[str]) -> None: ...

    async def delete_category(self, user_id: str, category_id: str) -> None: ...

    async def insert_task(self, task: Task) -> Task: ...

    async def update_task(self, user_id: str, task_id: str, patch: dict) -> None: ...

    async def reorder_tasks(self, user_id: str, category_id: str, task_ids: list[str]) -> None: ...

    async def delete_task(self, user_id: str, task_id: str) -> None: ...

    async def reset_daily_tasks(self, user_id: str, cutoff: datetime) -> int: ...

    async def upsert_history(self, entry: AnalyticsHistoryEntry) -> None: ...

    async def list_history(self, user_id: str, limit: int | None = None) -> list[AnalyticsHistoryEntry]: ...

    async def list_notes(self, user_id: str) -> list[Note]: ...

    async def insert_note(self, user_id: str, content: str) -> Note: ...

    async def update_note(self, user_id: str, note_id: str, content: str) -> bool: ...

    async def delete_note(self, user_id: str, note_id: str) -> bool: ...


def _backend_call(operation: str):
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (SQLAlchemyError, OSError) as exc:
                logger.warning("Backend call %s failed: %s", operation, exc)
                raise NetworkOrBackendError(operation, str(exc)) from exc

        return wrapper

    return decorator


def _history_from_row(row: dict) -> AnalyticsHistoryEntry:
    return AnalyticsHistoryEntry(
        user_id=str(row["user_id"]),
        date=dt_date.fromisoformat(str(row["date"])),
        total_tasks=int(row.get("total_tasks") or 0),
        completed_tasks=int(row.get("completed_tasks") or 0),
        completion_percentage=int(row.get("completion_percentage") or 0),
        category_stats=list(row.get("category_stats") or []),
        created_at=parse_timestamp(row.get("created_at")) or utcnow(),
    )


class SqlSyncAdapter:
    @_backend_call("load_categories")
    async def load_categories(self, user_id: str) -> list[Category]:
        rows = await repositories.list_categories(user_id)
        return [Category.from_row(row) for row in rows]

    @_backend_call("load_tasks")
    async def load_tasks(self, user_id: str) -> list[Task]:
        rows = await repositories.list_tasks(user_id)
        return [Task.from_row(row) for row in rows]

    @_backend_call("insert_category")
    async def insert_category(self, category: Category) -> Category:
        await repositories.create_category(category.to_row())
        return category

    @_backend_call("update_category")
    async def update_category(self, user_id: str, category_id: str, patch: dict) -> None:
        await repositories.update_category(user_id, category_id, patch)

    @_backend_call("reorder_categories")
    async def reorder_categories(self, user_id: str, category_ids: list[str]) -> None:
        await repositories.set_category_order(user_id, category_ids)

    @_backend_call("delete_category")
    async def delete_category(self, user_id: str, category_id: str) -> None:
        await repositories.delete_category(user_id, category_id)

    @_backend_call("insert_task")
    async def insert_task(self, task: Task) -> Task:
        await repositories.create_task(task.to_row())
        return task

    @_backend_call("update_task")
    async def update_task(self, user_id: str, task_id: str, patch: dict) -> None:
        clean = dict(patch)
        if "last_completed_date" in clean and isinstance(clean["last_completed_date"], datetime):
            clean["last_completed_date"] = to_utc_iso(clean["last_completed_date"])
        await repositories.update_task(user_id, task_id, clean)

    @_backend_call("reorder_tasks")
    async def reorder_tasks(self, user_id: str, category_id: str, task_ids: list[str]) -> None:
        await repositories.set_task_order(user_id, category_id, task_ids)

    @_backend_call("delete_task")
    async def delete_task(self, user_id: str, task_id: str) -> None:
        await repositories.delete_task(user_id, task_id)

    @_backend_call("reset_daily_tasks")
    async def reset_daily_tasks(self, user_id: str, cutoff: datetime) -> int:
        return await repositories.reset_daily_tasks(user_id, to_utc_iso(cutoff))

    @_backend_call("upsert_history")
    async def upsert_history(self, entry: AnalyticsHistoryEntry) -> None:
        await repositories.upsert_history(entry.as_dict())

    @_backend_call("list_history")
    async def list_history(self, user_id: str, limit: int | None = None) -> list[AnalyticsHistoryEntry]:
        rows = await repositories.list_history(user_id, limit)
        return [_history_from_row(row) for row in rows]

    @_backend_call("list_notes")
    async def list_notes(self, user_id: str) -> list[Note]:
        rows = await repositories.list_notes(user_id)
        return [Note.from_row(row) for row in rows]

    @_backend_call("insert_note")
    async def insert_note(self, user_id: str, content: str) -> Note:
        row = await repositories.create_note(user_id, content)
        return Note.from_row(row)

    @_backend_call("update_note")
    async def update_note(self, user_id: str, note_id: str, content: str) -> bool:
        return await repositories.update_note(user_id, note_id, content) > 0

    @_backend_call("delete_note")
    async def delete_note(self, user_id: str, note_id: str) -> bool:
        return await repositories.delete_note(user_id, note_id) > 0
