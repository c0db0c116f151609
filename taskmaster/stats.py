from __future__ import annotations

from typing import Iterable

from taskmaster.models import Category, CategoryStats, DailyStats, Task


def completion_percentage(completed: int, total: int) -> int:
    # Integer round-half-up: 2/3 -> 67, 1/8 -> 13.
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_daily_stats(tasks: Iterable[Task]) -> DailyStats:
    items = list(tasks)
    total = len(items)
    completed = sum(1 for task in items if task.is_completed)
    return DailyStats(
        total=total,
        completed=completed,
        missed=total - completed,
        percentage=completion_percentage(completed, total),
    )


def compute_category_stats(categories: Iterable[Category], tasks: Iterable[Task]) -> list[CategoryStats]:
    totals: dict[str, int] = {}
    done: dict[str, int] = {}
    for task in tasks:
        totals[task.category_id] = totals.get(task.category_id, 0) + 1
        if task.is_completed:
            done[task.category_id] = done.get(task.category_id, 0) + 1

    payload = []
    for category in categories:
        total = totals.get(category.id, 0)
        completed = done.get(category.id, 0)
        payload.append(
            CategoryStats(
                category_id=category.id,
                category_title=category.title,
                total=total,
                completed=completed,
                percentage=completion_percentage(completed, total),
            )
        )
    return payload
