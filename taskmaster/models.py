from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any
from uuid import uuid4


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime | None) -> str | None:
    """Serialize a timestamp in the fixed UTC form used for every stored column.

    Stored timestamps are compared as strings by the daily reset filter, so
    they must all share one offset and precision.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class Category:
    id: str
    user_id: str
    title: str
    order_index: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "Category":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("title") or "",
            order_index=int(row.get("order_index") or 0),
            created_at=parse_timestamp(row.get("created_at")) or utcnow(),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "order_index": self.order_index,
            "created_at": to_utc_iso(self.created_at),
        }


@dataclass(slots=True)
class Task:
    id: str
    user_id: str
    category_id: str
    title: str
    is_completed: bool = False
    is_daily: bool = False
    last_completed_date: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    order_index: int = 0

    @classmethod
    def from_row(cls, row: dict) -> "Task":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            category_id=str(row["category_id"]),
            title=row.get("title") or "",
            is_completed=bool(int(row.get("is_completed") or 0)),
            is_daily=bool(int(row.get("is_daily") or 0)),
            last_completed_date=parse_timestamp(row.get("last_completed_date")),
            created_at=parse_timestamp(row.get("created_at")) or utcnow(),
            order_index=int(row.get("order_index") or 0),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "category_id": self.category_id,
            "title": self.title,
            "is_completed": int(self.is_completed),
            "is_daily": int(self.is_daily),
            "last_completed_date": to_utc_iso(self.last_completed_date),
            "order_index": self.order_index,
            "created_at": to_utc_iso(self.created_at),
        }


@dataclass(slots=True)
class Note:
    id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "Note":
        created_at = parse_timestamp(row.get("created_at")) or utcnow()
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            content=row.get("content") or "",
            created_at=created_at,
            updated_at=parse_timestamp(row.get("updated_at")) or created_at,
        )


@dataclass(frozen=True, slots=True)
class DailyStats:
    total: int
    completed: int
    missed: int
    percentage: int

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CategoryStats:
    category_id: str
    category_title: str
    total: int
    completed: int
    percentage: int

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class AnalyticsHistoryEntry:
    user_id: str
    date: date
    total_tasks: int
    completed_tasks: int
    completion_percentage: int
    category_stats: list[dict] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "completion_percentage": self.completion_percentage,
            "category_stats": list(self.category_stats),
            "created_at": to_utc_iso(self.created_at),
        }


@dataclass(frozen=True, slots=True)
class UserStats:
    days_active: int
    total_tasks_completed: int
    current_streak: int
    best_streak: int

    def as_dict(self) -> dict:
        return asdict(self)
