"""
週次統計の計算

タスク・ジャーナル・目標の全履歴から、直近1週間の完了率、目標進捗の平均、
ジャーナルの連続記録日数を算出する。日付はYYYY-MM-DD文字列として比較する。
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, Optional, Sequence

from src.storage import Goal, JournalEntry, Task

logger = logging.getLogger(__name__)

WEEK_WINDOW_DAYS = 7


@dataclass(slots=True)
class WeeklyStats:
    """ダッシュボード用の週次スナップショット"""

    tasks_completed: int = 0
    total_tasks: int = 0
    journal_entries: int = 0
    completion_rate: int = 0
    goal_progress: int = 0
    streak: int = 0

    @classmethod
    def empty(cls) -> "WeeklyStats":
        return cls()

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        return {
            "tasksCompleted": data["tasks_completed"],
            "totalTasks": data["total_tasks"],
            "journalEntries": data["journal_entries"],
            "completionRate": data["completion_rate"],
            "goalProgress": data["goal_progress"],
            "streak": data["streak"],
        }


def round_half_up(value: float) -> int:
    """0.5を切り上げる四捨五入（round()の偶数丸めを避ける）"""
    return int(math.floor(value + 0.5))


def goal_progress(goal: Goal) -> int:
    """目標1件の進捗率(%)。目標値が未設定または0の場合は0。"""
    if not goal.target_value:
        return 0
    percent = round_half_up(100 * (goal.current_value or 0) / goal.target_value)
    return max(0, min(percent, 100))


def average_goal_progress(goals: Iterable[Goal]) -> int:
    """目標値と現在値がともに0でない目標の平均進捗率(%)。上限でのクリップはしない。"""
    ratios = [
        goal.current_value / goal.target_value
        for goal in goals
        if goal.target_value and goal.current_value
    ]
    if not ratios:
        return 0
    return round_half_up(sum(ratios) / len(ratios) * 100)


def journal_streak(journals: Iterable[JournalEntry], today: date) -> int:
    """
    今日から遡って途切れずにジャーナルがある日数

    同じ日付の重複は1件として扱い、未来日付のエントリは無視する。
    """
    unique_dates = set()
    for journal in journals:
        try:
            entry_date = date.fromisoformat(journal.date)
        except (TypeError, ValueError):
            logger.warning(f"Skipping journal {journal.id} with invalid date: {journal.date!r}")
            continue
        if entry_date <= today:
            unique_dates.add(entry_date)

    streak = 0
    for index, entry_date in enumerate(sorted(unique_dates, reverse=True)):
        if (today - entry_date).days == index:
            streak += 1
        else:
            break
    return streak


def calculate_weekly_stats(
    tasks: Sequence[Task],
    journals: Sequence[JournalEntry],
    goals: Sequence[Goal],
    today: Optional[date] = None,
) -> WeeklyStats:
    """
    週次統計を計算する

    Args:
        tasks: ユーザーの全タスク
        journals: ユーザーの全ジャーナル
        goals: ユーザーの全目標
        today: 基準日（Noneの場合は今日）

    Returns:
        WeeklyStats。計算中に予期しない例外が起きた場合はすべて0の統計。
    """
    try:
        today = today or date.today()
        week_start = (today - timedelta(days=WEEK_WINDOW_DAYS)).isoformat()
        today_str = today.isoformat()

        weekly_tasks = [task for task in tasks if week_start <= task.date <= today_str]
        weekly_journals = [
            journal for journal in journals if week_start <= journal.date <= today_str
        ]

        completed = sum(1 for task in weekly_tasks if task.completed)
        total = len(weekly_tasks)
        completion_rate = round_half_up(completed / total * 100) if total > 0 else 0

        return WeeklyStats(
            tasks_completed=completed,
            total_tasks=total,
            journal_entries=len(weekly_journals),
            completion_rate=completion_rate,
            goal_progress=average_goal_progress(goals),
            streak=journal_streak(journals, today),
        )
    except Exception as e:
        logger.exception(f"Error calculating stats: {e}")
        return WeeklyStats.empty()
