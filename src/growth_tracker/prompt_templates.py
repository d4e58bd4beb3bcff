"""
日次タスク生成用プロンプトテンプレートモジュール

関連クラス:
  - task_generator.TaskGenerator: このビルダーで組み立てたプロンプトを送信する
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from src.storage import Goal, JournalEntry

from .stats import goal_progress

SYSTEM_PROMPT = (
    "You are a personal development coach AI that helps users achieve continuous "
    "improvement through daily tasks, reflection, and goal-oriented activities. "
    "Always respond with valid JSON in the exact format requested."
)

TASK_CATEGORIES = ("Productivity", "Wellness", "Learning", "Planning", "Mindfulness")

OUTPUT_FORMAT = """{
  "tasks": [
    {
      "title": "Task title (concise and actionable)",
      "description": "Detailed description of what to do and why",
      "category": "Productivity",
      "timeEstimate": 15,
      "priority": "medium",
      "relatedGoalId": null
    }
  ],
  "dailyQuote": "An inspiring and relevant motivational quote",
  "focusArea": "1-2 sentences about what the user should focus on today"
}"""


@dataclass
class JournalTiers:
    """鮮度で分けたジャーナル"""

    recent: List[JournalEntry] = field(default_factory=list)
    medium: List[JournalEntry] = field(default_factory=list)


def _excerpt(text: Optional[str], limit: int) -> str:
    if not text:
        return "No content"
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


class TaskPromptBuilder:
    """ジャーナルと目標からタスク生成プロンプトを組み立てるクラス"""

    def __init__(
        self,
        recent_days: int = 7,
        medium_days: int = 30,
        recent_excerpt_chars: int = 500,
        medium_excerpt_chars: int = 100,
    ):
        """
        初期化

        Args:
            recent_days: この日数以内のジャーナルを高重みとして扱う
            medium_days: この日数を超えたジャーナルはプロンプトから除外する
            recent_excerpt_chars: 高重みジャーナル本文の最大文字数
            medium_excerpt_chars: 中重みジャーナル本文の最大文字数
        """
        self.recent_days = recent_days
        self.medium_days = medium_days
        self.recent_excerpt_chars = recent_excerpt_chars
        self.medium_excerpt_chars = medium_excerpt_chars
        self.logger = logging.getLogger(__name__)

    def partition_journals(self, journals: Sequence[JournalEntry], today: date) -> JournalTiers:
        """
        ジャーナルを鮮度で振り分ける

        recent_days以内（未来日付を含む）はrecent、medium_days以内はmedium、それより古いものは除外。
        """
        tiers = JournalTiers()
        for journal in journals:
            try:
                age = (today - date.fromisoformat(journal.date)).days
            except (TypeError, ValueError):
                self.logger.warning(f"Ignoring journal with invalid date: {journal.date!r}")
                continue
            if age <= self.recent_days:
                tiers.recent.append(journal)
            elif age <= self.medium_days:
                tiers.medium.append(journal)
        tiers.recent.sort(key=lambda j: j.date, reverse=True)
        tiers.medium.sort(key=lambda j: j.date, reverse=True)
        return tiers

    def _format_journal(self, journal: JournalEntry, limit: int) -> str:
        title = journal.title or "Untitled"
        mood = f" (mood: {journal.mood})" if journal.mood else ""
        return f"- {journal.date}: {title}{mood} - {_excerpt(journal.content, limit)}"

    @staticmethod
    def _format_goal(goal: Goal) -> str:
        duration = goal.duration.value if goal.duration else "ongoing"
        unit = goal.unit or "units"
        if goal.target_value:
            amount = f"{goal.current_value}/{goal.target_value} {unit}"
        else:
            amount = f"{goal.current_value} {unit}, no target set"
        description = goal.description or "No description"
        status = " [completed]" if goal.completed else ""
        return (
            f"- [id: {goal.id}] \"{goal.title}\"{status} ({duration}, "
            f"{goal_progress(goal)}% complete, {amount}) - {description}"
        )

    def build(
        self,
        journals: Sequence[JournalEntry],
        goals: Sequence[Goal],
        today: date,
    ) -> str:
        """
        タスク生成プロンプトを生成

        Returns:
            ユーザーメッセージとして送るプロンプト文字列
        """
        tiers = self.partition_journals(journals, today)

        if tiers.recent:
            recent_section = "\n".join(
                self._format_journal(j, self.recent_excerpt_chars) for j in tiers.recent
            )
        else:
            recent_section = "No recent journal entries available."

        if tiers.medium:
            medium_section = "\n".join(
                self._format_journal(j, self.medium_excerpt_chars) for j in tiers.medium
            )
        else:
            medium_section = "None."

        if goals:
            goals_section = "\n".join(self._format_goal(g) for g in goals)
        else:
            goals_section = "No active goals set."

        categories = ", ".join(TASK_CATEGORIES)
        prompt = f"""Today is {today.isoformat()}.
Based on the user's recent journal entries and goals, generate 5-7 personalized daily tasks that will help them grow and make progress. Also provide a motivational quote and focus area for today.

Recent Journal Entries (last {self.recent_days} days, HIGH weight):
{recent_section}

Older Journal Entries ({self.recent_days + 1}-{self.medium_days} days ago, LOW weight):
{medium_section}

Current Goals (HIGH weight):
{goals_section}

Weighting:
- Base the tasks mainly on the recent journal entries and the current goals.
- Use older journal entries only as background context; weight them far lower.

Please respond with valid JSON in this exact format:
{OUTPUT_FORMAT}

Requirements:
- Generate 5-7 tasks total
- Time estimates should be between 5-45 minutes
- Mix of different categories ({categories}, etc.)
- Tasks should be specific and actionable
- Priority must be "low", "medium", or "high"
- Only set relatedGoalId to one of the goal ids listed above, and only if the task directly advances that goal; otherwise use null
- Daily quote should be motivational and relevant to personal growth
- Focus area should be 1-2 sentences about the day's theme or priority
- Respond with the JSON object only
"""
        self.logger.debug(f"Built task prompt ({len(prompt)} chars)")
        return prompt
