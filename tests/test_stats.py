"""週次統計のテスト"""

from datetime import date, timedelta
from unittest.mock import patch

from src.growth_tracker.stats import (
    WeeklyStats,
    average_goal_progress,
    calculate_weekly_stats,
    goal_progress,
    journal_streak,
    round_half_up,
)
from src.storage import Goal, JournalEntry, Task, TaskPriority

TODAY = date(2025, 11, 14)


def make_goal(goal_id=1, target=None, current=0):
    return Goal(
        id=goal_id,
        user_id=1,
        title=f"Goal {goal_id}",
        description=None,
        target_value=target,
        current_value=current,
        unit=None,
        duration=None,
        completed=False,
        created_at="2025-11-01T00:00:00+00:00",
    )


def make_journal(days_ago, journal_id=None):
    entry_date = (TODAY - timedelta(days=days_ago)).isoformat()
    return JournalEntry(
        id=journal_id or days_ago + 1,
        user_id=1,
        date=entry_date,
        title=None,
        content="entry",
        mood=None,
        created_at="2025-11-01T00:00:00+00:00",
    )


def make_task(days_ago, completed=False, task_id=1):
    return Task(
        id=task_id,
        user_id=1,
        date=(TODAY - timedelta(days=days_ago)).isoformat(),
        title="task",
        description="",
        category="Learning",
        time_estimate=10,
        priority=TaskPriority.MEDIUM,
        completed=completed,
        related_goal_id=None,
        generated_at="2025-11-01T00:00:00+00:00",
    )


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert round_half_up(0) == 0


def test_goal_progress_without_target_is_zero():
    assert goal_progress(make_goal(target=None, current=5)) == 0
    assert goal_progress(make_goal(target=0, current=5)) == 0


def test_goal_progress_is_rounded_and_clamped():
    assert goal_progress(make_goal(target=3, current=1)) == 33
    assert goal_progress(make_goal(target=8, current=1)) == 13
    assert goal_progress(make_goal(target=10, current=25)) == 100
    assert goal_progress(make_goal(target=10, current=0)) == 0


def test_average_goal_progress_ignores_goals_without_values():
    goals = [
        make_goal(1, target=10, current=5),
        make_goal(2, target=4, current=1),
        make_goal(3, target=None, current=3),
        make_goal(4, target=10, current=0),
    ]
    # (0.5 + 0.25) / 2 = 37.5%
    assert average_goal_progress(goals) == 38
    assert average_goal_progress([]) == 0


def test_streak_consecutive_days():
    journals = [make_journal(0), make_journal(1), make_journal(2)]
    assert journal_streak(journals, TODAY) == 3


def test_streak_broken_by_gap():
    journals = [make_journal(0), make_journal(2)]
    assert journal_streak(journals, TODAY) == 1


def test_streak_is_zero_without_entry_today():
    assert journal_streak([make_journal(1)], TODAY) == 0


def test_streak_ignores_duplicate_dates_and_future_entries():
    journals = [
        make_journal(0, journal_id=10),
        make_journal(0, journal_id=11),
        make_journal(1),
        make_journal(-1),
    ]
    assert journal_streak(journals, TODAY) == 2


def test_streak_does_not_depend_on_input_order():
    journals = [make_journal(2), make_journal(0), make_journal(1)]
    assert journal_streak(journals, TODAY) == 3


def test_completion_rate_over_empty_window_is_zero():
    stats = calculate_weekly_stats([], [], [], today=TODAY)
    assert stats == WeeklyStats.empty()
    assert stats.completion_rate == 0


def test_weekly_window_filters_tasks_and_journals():
    tasks = [
        make_task(0, completed=True, task_id=1),
        make_task(3, completed=False, task_id=2),
        make_task(7, completed=True, task_id=3),
        make_task(8, completed=True, task_id=4),  # 期間外
        make_task(-1, completed=True, task_id=5),  # 未来
    ]
    journals = [make_journal(0), make_journal(1), make_journal(10)]
    goals = [make_goal(1, target=10, current=5)]

    stats = calculate_weekly_stats(tasks, journals, goals, today=TODAY)

    assert stats.total_tasks == 3
    assert stats.tasks_completed == 2
    assert stats.completion_rate == 67
    assert stats.journal_entries == 2
    assert stats.goal_progress == 50
    assert stats.streak == 2


def test_unexpected_error_returns_zeroed_stats():
    with patch(
        "src.growth_tracker.stats.journal_streak", side_effect=RuntimeError("boom")
    ):
        stats = calculate_weekly_stats([make_task(0, completed=True)], [], [], today=TODAY)
    assert stats == WeeklyStats.empty()


def test_to_dict_uses_camel_case_keys():
    stats = WeeklyStats(
        tasks_completed=1,
        total_tasks=2,
        journal_entries=3,
        completion_rate=50,
        goal_progress=10,
        streak=4,
    )
    assert stats.to_dict() == {
        "tasksCompleted": 1,
        "totalTasks": 2,
        "journalEntries": 3,
        "completionRate": 50,
        "goalProgress": 10,
        "streak": 4,
    }
