from __future__ import annotations

import json
from sqlalchemy import text as sql_text

from taskmaster.db import get_sessionmaker
from taskmaster.db_init import CATEGORIES_TABLE, TASKS_TABLE, NOTES_TABLE, HISTORY_TABLE
from taskmaster.models import new_id, to_utc_iso, utcnow

CATEGORY_COLUMNS = ["id", "user_id", "title", "order_index", "created_at"]

TASK_COLUMNS = [
    "id",
    "user_id",
    "category_id",
    "title",
    "is_completed",
    "is_daily",
    "last_completed_date",
    "order_index",
    "created_at",
]

NOTE_COLUMNS = ["id", "user_id", "content", "created_at", "updated_at"]

HISTORY_COLUMNS = [
    "user_id",
    "date",
    "total_tasks",
    "completed_tasks",
    "completion_percentage",
    "category_stats",
    "created_at",
]


def _now_iso() -> str:
    return to_utc_iso(utcnow())


def _normalize_history_row(row) -> dict:
    payload = dict(row)
    raw = payload.get("category_stats")
    try:
        decoded = json.loads(raw) if raw else []
    except (TypeError, ValueError):
        decoded = []
    payload["category_stats"] = decoded if isinstance(decoded, list) else []
    return payload


async def list_categories(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(CATEGORY_COLUMNS)}
                FROM {CATEGORIES_TABLE}
                WHERE user_id = :user_id
                ORDER BY order_index ASC, created_at ASC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [dict(row) for row in rows]


async def create_category(row: dict) -> dict:
    record = {key: row.get(key) for key in CATEGORY_COLUMNS}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {CATEGORIES_TABLE} ({', '.join(CATEGORY_COLUMNS)})
                VALUES ({', '.join(f':{col}' for col in CATEGORY_COLUMNS)})
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_category(user_id: str, category_id: str, patch: dict) -> int:
    allowed = {"title", "order_index"}
    updates = []
    params = {"id": category_id, "user_id": user_id}
    for key, value in patch.items():
        if key not in allowed:
            continue
        updates.append(f"{key} = :{key}")
        params[key] = int(value) if key == "order_index" else value
    if not updates:
        return 0
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"UPDATE {CATEGORIES_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return int(result.rowcount or 0)


async def set_category_order(user_id: str, category_ids: list[str]) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        for index, category_id in enumerate(category_ids):
            await session.execute(
                sql_text(
                    f"UPDATE {CATEGORIES_TABLE} SET order_index = :order_index "
                    "WHERE id = :id AND user_id = :user_id"
                ),
                {"order_index": index, "id": category_id, "user_id": user_id},
            )
        await session.commit()


async def delete_category(user_id: str, category_id: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {TASKS_TABLE} WHERE user_id = :user_id AND category_id = :category_id"),
            {"user_id": user_id, "category_id": category_id},
        )
        await session.execute(
            sql_text(f"DELETE FROM {CATEGORIES_TABLE} WHERE user_id = :user_id AND id = :category_id"),
            {"user_id": user_id, "category_id": category_id},
        )
        await session.commit()


async def list_tasks(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(TASK_COLUMNS)}
                FROM {TASKS_TABLE}
                WHERE user_id = :user_id
                ORDER BY created_at ASC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [dict(row) for row in rows]


async def create_task(row: dict) -> dict:
    record = {key: row.get(key) for key in TASK_COLUMNS}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TASKS_TABLE} ({', '.join(TASK_COLUMNS)})
                VALUES ({', '.join(f':{col}' for col in TASK_COLUMNS)})
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_task(user_id: str, task_id: str, patch: dict) -> int:
    allowed = {"title", "is_completed", "is_daily", "last_completed_date", "order_index", "category_id"}
    updates = []
    params = {"id": task_id, "user_id": user_id}
    for key, value in patch.items():
        if key not in allowed:
            continue
        updates.append(f"{key} = :{key}")
        if key in {"is_completed", "is_daily"}:
            params[key] = int(bool(value))
        elif key == "order_index":
            params[key] = int(value)
        else:
            params[key] = value
    if not updates:
        return 0
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"UPDATE {TASKS_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return int(result.rowcount or 0)


async def set_task_order(user_id: str, category_id: str, task_ids: list[str]) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        for index, task_id in enumerate(task_ids):
            await session.execute(
                sql_text(
                    f"UPDATE {TASKS_TABLE} SET order_index = :order_index "
                    "WHERE id = :id AND user_id = :user_id AND category_id = :category_id"
                ),
                {"order_index": index, "id": task_id, "user_id": user_id, "category_id": category_id},
            )
        await session.commit()


async def delete_task(user_id: str, task_id: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {TASKS_TABLE} WHERE user_id = :user_id AND id = :task_id"),
            {"user_id": user_id, "task_id": task_id},
        )
        await session.commit()


async def reset_daily_tasks(user_id: str, cutoff_iso: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"""
                UPDATE {TASKS_TABLE}
                SET is_completed = 0
                WHERE user_id = :user_id
                  AND is_daily = 1
                  AND is_completed = 1
                  AND (last_completed_date IS NULL OR last_completed_date < :cutoff)
                """
            ),
            {"user_id": user_id, "cutoff": cutoff_iso},
        )
        await session.commit()
    return int(result.rowcount or 0)


async def upsert_history(entry: dict) -> None:
    payload = {key: entry.get(key) for key in HISTORY_COLUMNS}
    payload["category_stats"] = json.dumps(entry.get("category_stats") or [], ensure_ascii=False)
    payload["created_at"] = payload.get("created_at") or _now_iso()
    payload["updated_at"] = _now_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {HISTORY_TABLE}
                    (user_id, date, total_tasks, completed_tasks, completion_percentage,
                     category_stats, created_at, updated_at)
                VALUES
                    (:user_id, :date, :total_tasks, :completed_tasks, :completion_percentage,
                     :category_stats, :created_at, :updated_at)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    total_tasks = EXCLUDED.total_tasks,
                    completed_tasks = EXCLUDED.completed_tasks,
                    completion_percentage = EXCLUDED.completion_percentage,
                    category_stats = EXCLUDED.category_stats,
                    updated_at = EXCLUDED.updated_at
                """
            ),
            payload,
        )
        await session.commit()


async def list_history(user_id: str, limit: int | None = None) -> list[dict]:
    session_factory = get_sessionmaker()
    query = f"""
        SELECT {', '.join(HISTORY_COLUMNS)}
        FROM {HISTORY_TABLE}
        WHERE user_id = :user_id
        ORDER BY date DESC
    """
    params: dict = {"user_id": user_id}
    if limit is not None:
        query += " LIMIT :limit"
        params["limit"] = int(limit)
    async with session_factory() as session:
        rows = (await session.execute(sql_text(query), params)).mappings().all()
    return [_normalize_history_row(row) for row in rows]


async def list_notes(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {', '.join(NOTE_COLUMNS)}
                FROM {NOTES_TABLE}
                WHERE user_id = :user_id
                ORDER BY created_at DESC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [dict(row) for row in rows]


async def create_note(user_id: str, content: str) -> dict:
    now = _now_iso()
    record = {
        "id": new_id(),
        "user_id": user_id,
        "content": content,
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {NOTES_TABLE} ({', '.join(NOTE_COLUMNS)})
                VALUES (:id, :user_id, :content, :created_at, :updated_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_note(user_id: str, note_id: str, content: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"""
                UPDATE {NOTES_TABLE}
                SET content = :content, updated_at = :updated_at
                WHERE id = :id AND user_id = :user_id
                """
            ),
            {"content": content, "updated_at": _now_iso(), "id": note_id, "user_id": user_id},
        )
        await session.commit()
    return int(result.rowcount or 0)


async def delete_note(user_id: str, note_id: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {NOTES_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": note_id, "user_id": user_id},
        )
        await session.commit()
    return int(result.rowcount or 0)

