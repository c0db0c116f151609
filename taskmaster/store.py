"""In-memory mirror of one signed-in user's categories and tasks."""

from __future__ import annotations

import logging
from typing import Iterable

from taskmaster.errors import ReconciliationWarning
from taskmaster.models import Category, Task

logger = logging.getLogger(__name__)


class TaskStore:
    """Categories and tasks keyed by id. Performs no I/O."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        self._categories: dict[str, Category] = {}
        self._tasks: dict[str, Task] = {}
        self.warnings: list[ReconciliationWarning] = []

    def replace(self, categories: Iterable[Category], tasks: Iterable[Task]) -> None:
        """Swap in a freshly loaded snapshot.

        Tasks whose category is not part of the snapshot are dropped and
        reported as ``ReconciliationWarning`` instead of failing the load.
        """
        self._categories = {category.id: category for category in categories}
        self._tasks = {}
        self.warnings = []
        for task in tasks:
            if task.category_id not in self._categories:
                warning = ReconciliationWarning(
                    f"task {task.id} references missing category {task.category_id}"
                )
                self.warnings.append(warning)
                logger.warning("Dropping orphan task %s (category %s)", task.id, task.category_id)
                continue
            self._tasks[task.id] = task

    def clear(self) -> None:
        self._categories = {}
        self._tasks = {}
        self.warnings = []

    def upsert_task(self, task: Task) -> None:
        self._tasks[task.id] = task

    def remove_task(self, task_id: str) -> Task | None:
        return self._tasks.pop(task_id, None)

    def upsert_category(self, category: Category) -> None:
        self._categories[category.id] = category

    def remove_category(self, category_id: str) -> Category | None:
        removed = self._categories.pop(category_id, None)
        self._tasks = {
            task_id: task for task_id, task in self._tasks.items() if task.category_id != category_id
        }
        return removed

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def get_category(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    @property
    def categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda item: (item.order_index, item.created_at))

    @property
    def tasks(self) -> list[Task]:
        order = {category.id: position for position, category in enumerate(self.categories)}
        return sorted(
            self._tasks.values(),
            key=lambda item: (order.get(item.category_id, len(order)), item.order_index, item.created_at),
        )

    def tasks_in(self, category_id: str) -> list[Task]:
        return [task for task in self.tasks if task.category_id == category_id]

    def __len__(self) -> int:
        return len(self._tasks)
