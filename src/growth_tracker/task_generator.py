"""
TaskGenerator: LLMベースの日次タスク生成器

設計方針:
- 直近のジャーナルと目標からプロンプトを構築し、チャット補完APIへ送信
- 応答は信頼しない入力として扱い、例外を投げないデコーダで形を検証する
- APIキー未設定・通信失敗・不正な応答など、あらゆる失敗は固定のフォールバックに変換する

関連:
- src/growth_tracker/ai_client.py: チャット補完API呼び出し
- src/growth_tracker/prompt_templates.py: プロンプト構築
"""

import json
import math
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from src.storage import Goal, JournalEntry, TaskPriority

from .ai_client import OpenRouterClient
from .exceptions import AIServiceError
from .prompt_templates import SYSTEM_PROMPT, TaskPromptBuilder

logger = logging.getLogger(__name__)

MAX_TASKS = 7
MIN_TIME_ESTIMATE = 5
MAX_TIME_ESTIMATE = 45
DEFAULT_TIME_ESTIMATE = 15
DEFAULT_CATEGORY = "General"

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


@dataclass(slots=True)
class GeneratedTask:
    """AI（またはフォールバック）が提案した1件のタスク"""

    title: str
    description: str
    category: str
    time_estimate: int
    priority: TaskPriority = TaskPriority.MEDIUM
    related_goal_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "timeEstimate": self.time_estimate,
            "priority": self.priority.value,
        }
        if self.related_goal_id is not None:
            data["relatedGoalId"] = self.related_goal_id
        return data


@dataclass(slots=True)
class DailyPlan:
    """1日分のタスク・名言・フォーカスエリア"""

    tasks: List[GeneratedTask]
    daily_quote: str
    focus_area: str
    source: str = SOURCE_AI
    failure_reason: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "dailyQuote": self.daily_quote,
            "focusArea": self.focus_area,
        }


@dataclass(slots=True)
class DecodeResult:
    """応答デコードの結果（成功ならplan、失敗ならreason）"""

    ok: bool
    plan: Optional[DailyPlan] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, plan: DailyPlan) -> "DecodeResult":
        return cls(ok=True, plan=plan)

    @classmethod
    def failure(cls, reason: str) -> "DecodeResult":
        return cls(ok=False, reason=reason)


FALLBACK_QUOTE = "The way to get started is to quit talking and begin doing. - Walt Disney"
FALLBACK_FOCUS_AREA = (
    "Focus on taking small, consistent actions that align with your personal growth goals."
)
_FALLBACK_TASKS = (
    (
        "Write down 3 things you're grateful for",
        "Practice gratitude by reflecting on positive aspects of your day and life",
        "Mindfulness",
        5,
        TaskPriority.MEDIUM,
    ),
    (
        "Review and organize digital workspace",
        "Clean up desktop files, organize folders, and update task management tools",
        "Productivity",
        25,
        TaskPriority.MEDIUM,
    ),
    (
        "Read for 15 minutes",
        "Continue reading your current book or explore a new article on a topic of interest",
        "Learning",
        15,
        TaskPriority.MEDIUM,
    ),
    (
        "Take a 10-minute walk",
        "Get some fresh air and light exercise to boost energy and mood",
        "Wellness",
        10,
        TaskPriority.LOW,
    ),
    (
        "Plan tomorrow's priorities",
        "Review schedule and identify top 3 priorities for tomorrow",
        "Planning",
        10,
        TaskPriority.HIGH,
    ),
)


def fallback_plan(reason: Optional[str] = None) -> DailyPlan:
    """AI生成ができない場合の固定プラン（呼び出しごとに新しいインスタンスを返す）"""
    return DailyPlan(
        tasks=[
            GeneratedTask(
                title=title,
                description=description,
                category=category,
                time_estimate=minutes,
                priority=priority,
            )
            for title, description, category, minutes, priority in _FALLBACK_TASKS
        ],
        daily_quote=FALLBACK_QUOTE,
        focus_area=FALLBACK_FOCUS_AREA,
        source=SOURCE_FALLBACK,
        failure_reason=reason,
    )


_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_object(text: str) -> Optional[str]:
    """テキストから最初の'{'から最後の'}'までを取り出す（コードフェンスも許容）"""
    fenced = _CODE_FENCE.search(text)
    if fenced:
        text = fenced.group(1)
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_int(value: Any) -> Optional[int]:
    """整数として解釈できる値をintに変換する。bool・非有限数・ASCII以外の数字はNone。"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            try:
                return int(text)
            except ValueError:
                # 桁数制限(sys.int_info.default_max_str_digits)超過
                return None
    return None


def _coerce_time_estimate(value: Any) -> int:
    minutes = _parse_int(value)
    if minutes is None:
        return DEFAULT_TIME_ESTIMATE
    return max(MIN_TIME_ESTIMATE, min(minutes, MAX_TIME_ESTIMATE))


def _coerce_priority(value: Any) -> TaskPriority:
    if isinstance(value, str):
        normalized = value.strip().lower()
        for priority in TaskPriority:
            if priority.value == normalized:
                return priority
    return TaskPriority.MEDIUM


def _coerce_goal_id(value: Any) -> Optional[int]:
    if isinstance(value, float):
        return None
    return _parse_int(value)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _decode_task(item: Any) -> Optional[GeneratedTask]:
    if not isinstance(item, dict):
        return None
    title = _non_empty_str(item.get("title"))
    if title is None:
        return None
    return GeneratedTask(
        title=title,
        description=_non_empty_str(item.get("description")) or "",
        category=_non_empty_str(item.get("category")) or DEFAULT_CATEGORY,
        time_estimate=_coerce_time_estimate(item.get("timeEstimate")),
        priority=_coerce_priority(item.get("priority")),
        related_goal_id=_coerce_goal_id(item.get("relatedGoalId")),
    )


def decode_plan(text: Optional[str]) -> DecodeResult:
    """
    AI応答テキストをDailyPlanにデコードする（例外を投げない）

    Args:
        text: 補完テキスト

    Returns:
        DecodeResult。形が不正な場合はfailureと理由。
    """
    if not isinstance(text, str) or not text.strip():
        return DecodeResult.failure("empty response")

    raw = extract_json_object(text)
    if raw is None:
        return DecodeResult.failure("no JSON object in response")

    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        return DecodeResult.failure(f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return DecodeResult.failure("top-level JSON value is not an object")

    raw_tasks = data.get("tasks")
    if not isinstance(raw_tasks, list):
        return DecodeResult.failure("tasks array missing")

    tasks = [task for task in (_decode_task(item) for item in raw_tasks) if task is not None]
    if not tasks:
        return DecodeResult.failure("no usable tasks in response")
    if len(tasks) < len(raw_tasks):
        logger.warning(f"Dropped {len(raw_tasks) - len(tasks)} malformed task(s) from AI response")

    daily_quote = _non_empty_str(data.get("dailyQuote"))
    if daily_quote is None:
        return DecodeResult.failure("dailyQuote missing")
    focus_area = _non_empty_str(data.get("focusArea"))
    if focus_area is None:
        return DecodeResult.failure("focusArea missing")

    return DecodeResult.success(
        DailyPlan(
            tasks=tasks[:MAX_TASKS],
            daily_quote=daily_quote,
            focus_area=focus_area,
            source=SOURCE_AI,
        )
    )


class TaskGenerator:
    """LLMベースの日次タスク生成器"""

    def __init__(
        self,
        ai_client: OpenRouterClient,
        prompt_builder: Optional[TaskPromptBuilder] = None,
    ):
        """
        初期化

        Args:
            ai_client: チャット補完クライアント（テスト用にDI可能）
            prompt_builder: プロンプトビルダー
        """
        self.ai_client = ai_client
        self.prompt_builder = prompt_builder or TaskPromptBuilder()

    def generate_daily_tasks(
        self,
        recent_journals: Sequence[JournalEntry],
        goals: Sequence[Goal],
        today: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> DailyPlan:
        """
        日次タスクを生成する。失敗時は例外を投げずフォールバックを返す。

        Args:
            recent_journals: 直近のジャーナル
            goals: ユーザーの目標
            today: 基準日（Noneの場合は今日）
            user_id: ログ用のユーザーID

        Returns:
            DailyPlan（source="ai" または "fallback"）
        """
        today = today or date.today()

        if not self.ai_client.is_configured:
            logger.warning("AI service not configured; using fallback tasks")
            return fallback_plan("AI service not configured")

        try:
            prompt = self.prompt_builder.build(recent_journals, goals, today)
            logger.info(f"Generating tasks for user: {user_id}")
            logger.debug(f"Prompt: {prompt[:200]}...")

            messages = [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
            content = self.ai_client.chat(messages)
        except AIServiceError as e:
            logger.error(f"AI service error: {e}")
            return fallback_plan(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during task generation: {e}")
            return fallback_plan(f"unexpected error: {e}")

        result = decode_plan(content)
        if not result.ok:
            logger.warning(f"Invalid AI response format: {result.reason}")
            return fallback_plan(result.reason)

        logger.info(f"Generated {len(result.plan.tasks)} tasks for user: {user_id}")
        return result.plan
