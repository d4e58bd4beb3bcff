from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TaskPriority(str, Enum):
    """タスク優先度。"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalDuration(str, Enum):
    """目標の期間区分（表示とプロンプト用。進捗計算には使わない）。"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONGOING = "ongoing"


@dataclass(slots=True)
class User:
    """登録済みユーザー。"""

    id: int
    email: str
    name: str
    password_hash: str
    created_at: str
    updated_at: str


@dataclass(slots=True)
class JournalEntry:
    """1ユーザー1日1件のジャーナル。"""

    id: int
    user_id: int
    date: str  # YYYY-MM-DD
    title: Optional[str]
    content: Optional[str]
    mood: Optional[str]
    created_at: str


@dataclass(slots=True)
class Goal:
    """ユーザー定義の目標。target_valueがNoneの場合は「目標値なし」。"""

    id: int
    user_id: int
    title: str
    description: Optional[str]
    target_value: Optional[int]
    current_value: int
    unit: Optional[str]
    duration: Optional[GoalDuration]
    completed: bool
    created_at: str


@dataclass(slots=True)
class Task:
    """その日の実行タスク。1日分はまとめて生成される。"""

    id: int
    user_id: int
    date: str  # YYYY-MM-DD
    title: str
    description: str
    category: str
    time_estimate: Optional[int]  # 分
    priority: TaskPriority
    completed: bool
    related_goal_id: Optional[int]
    generated_at: str


@dataclass(slots=True)
class NewTask:
    """一括登録用のタスク入力。"""

    title: str
    description: str = ""
    category: str = "General"
    time_estimate: Optional[int] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    related_goal_id: Optional[int] = None


@dataclass(slots=True)
class DashboardContent:
    """1ユーザー1日1件の名言とフォーカスエリア。"""

    id: int
    user_id: int
    date: str  # YYYY-MM-DD
    daily_quote: Optional[str]
    focus_area: Optional[str]
    created_at: str
