"""Tests for completion figures derived from the task list."""

from conftest import FakeAdapter, utc
from taskmaster.stats import completion_percentage, compute_category_stats, compute_daily_stats


def _seeded():
    adapter = FakeAdapter()
    work = adapter.seed_category("Work", order_index=0)
    home = adapter.seed_category("Home", order_index=1)
    empty = adapter.seed_category("Someday", order_index=2)
    adapter.seed_task(work, "Report", is_completed=True, last_completed_date=utc(2026, 10, 19))
    adapter.seed_task(work, "Email")
    adapter.seed_task(work, "Standup", is_completed=True, is_daily=True, last_completed_date=utc(2026, 10, 19))
    adapter.seed_task(home, "Dishes")
    return adapter, [work, home, empty]


class TestCompletionPercentage:
    def test_zero_total_is_zero(self):
        assert completion_percentage(0, 0) == 0

    def test_rounds_half_up(self):
        assert completion_percentage(1, 8) == 13
        assert completion_percentage(1, 200) == 1
        assert completion_percentage(199, 200) == 100

    def test_two_thirds(self):
        assert completion_percentage(2, 3) == 67
        assert completion_percentage(1, 3) == 33

    def test_all_and_none(self):
        assert completion_percentage(5, 5) == 100
        assert completion_percentage(0, 5) == 0


class TestDailyStats:
    def test_empty_task_list(self):
        stats = compute_daily_stats([])
        assert stats.total == 0
        assert stats.completed == 0
        assert stats.missed == 0
        assert stats.percentage == 0

    def test_completed_plus_missed_equals_total(self):
        adapter, _ = _seeded()
        stats = compute_daily_stats(adapter.tasks.values())
        assert stats.total == 4
        assert stats.completed == 2
        assert stats.completed + stats.missed == stats.total
        assert stats.percentage == 50


class TestCategoryStats:
    def test_one_entry_per_category_in_order(self):
        adapter, categories = _seeded()
        stats = compute_category_stats(categories, adapter.tasks.values())
        assert [item.category_title for item in stats] == ["Work", "Home", "Someday"]
        assert [(item.total, item.completed, item.percentage) for item in stats] == [
            (3, 2, 67),
            (1, 0, 0),
            (0, 0, 0),
        ]

    def test_category_without_tasks_has_zero_percentage(self):
        adapter = FakeAdapter()
        empty = adapter.seed_category("Empty")
        (stats,) = compute_category_stats([empty], [])
        assert stats.category_id == empty.id
        assert stats.percentage == 0
        assert stats.as_dict()["total"] == 0
