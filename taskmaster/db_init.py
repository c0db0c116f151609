from __future__ import annotations

from sqlalchemy import text as sql_text

from taskmaster.db import get_engine


CATEGORIES_TABLE = "categories"
TASKS_TABLE = "tasks"
NOTES_TABLE = "notes"
HISTORY_TABLE = "analytics_history"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {CATEGORIES_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {TASKS_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    category_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    is_daily INTEGER NOT NULL DEFAULT 0,
                    last_completed_date TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {NOTES_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {HISTORY_TABLE} (
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    total_tasks INTEGER DEFAULT 0,
                    completed_tasks INTEGER DEFAULT 0,
                    completion_percentage INTEGER DEFAULT 0,
                    category_stats TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT,
                    PRIMARY KEY (user_id, date)
                )
                """
            )
        )

    async def ensure_column(table_name: str, column_name: str, column_ddl: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(
                    sql_text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_ddl}")
                )
        except Exception:
            return

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except Exception:
            return

    await ensure_column(TASKS_TABLE, "order_index", "INTEGER NOT NULL DEFAULT 0")

    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{CATEGORIES_TABLE}_user_order "
        f"ON {CATEGORIES_TABLE} (user_id, order_index)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{TASKS_TABLE}_user_created "
        f"ON {TASKS_TABLE} (user_id, created_at)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{TASKS_TABLE}_daily_reset "
        f"ON {TASKS_TABLE} (user_id, is_daily, is_completed, last_completed_date)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{NOTES_TABLE}_user_created "
        f"ON {NOTES_TABLE} (user_id, created_at)"
    )
