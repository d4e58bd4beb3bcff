"""
DashboardService: 「今日ユーザーに何を見せるか」を組み立てる

- その日の初回アクセス時にだけタスクとダッシュボード内容を生成する
- 統計は毎回その場で計算する
- 手動の再生成では当日のタスクを置き換え、ダッシュボード内容を同じ行のまま更新する

関連:
- src/growth_tracker/task_generator.py: タスク生成
- src/growth_tracker/stats.py: 週次統計
- src/storage/repository.py: 永続化
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence

from src.storage import DashboardContent, Goal, GrowthRepository, NewTask, Task

from .stats import WeeklyStats, calculate_weekly_stats
from .task_generator import DailyPlan, TaskGenerator

logger = logging.getLogger(__name__)


@dataclass
class DashboardView:
    """GET /api/dashboard の内容"""

    tasks: List[Task]
    goals: List[Goal]
    dashboard_content: Optional[DashboardContent]
    stats: WeeklyStats


@dataclass
class RegenerationResult:
    """POST /api/generate-tasks の内容"""

    tasks: List[Task]
    dashboard_content: DashboardContent
    message: str


class DashboardService:
    """ストレージ・タスク生成・統計計算を組み合わせるオーケストレーター"""

    def __init__(
        self,
        repository: GrowthRepository,
        task_generator: TaskGenerator,
        journal_lookback_days: int = 30,
        clock: Callable[[], date] = date.today,
    ):
        """
        初期化

        Args:
            repository: 永続化リポジトリ
            task_generator: タスク生成器
            journal_lookback_days: 生成時に読み込むジャーナルの日数
            clock: 「今日」を返す関数（テスト用にDI可能）
        """
        self.repository = repository
        self.task_generator = task_generator
        self.journal_lookback_days = journal_lookback_days
        self.clock = clock

    @staticmethod
    def build_new_tasks(plan: DailyPlan, goals: Sequence[Goal]) -> List[NewTask]:
        """生成結果を登録用に変換する。ユーザーの目標でない関連IDは外す。"""
        owned_goal_ids = {goal.id for goal in goals}
        new_tasks: List[NewTask] = []
        for task in plan.tasks:
            related_goal_id = task.related_goal_id
            if related_goal_id is not None and related_goal_id not in owned_goal_ids:
                logger.warning(f"Dropping unknown relatedGoalId {related_goal_id} from task {task.title!r}")
                related_goal_id = None
            new_tasks.append(
                NewTask(
                    title=task.title,
                    description=task.description,
                    category=task.category,
                    time_estimate=task.time_estimate,
                    priority=task.priority,
                    related_goal_id=related_goal_id,
                )
            )
        return new_tasks

    def compute_stats(self, user_id: int, today: Optional[date] = None) -> WeeklyStats:
        """全履歴から週次統計を計算する。読み込みに失敗した場合も0の統計を返す。"""
        try:
            tasks = self.repository.get_tasks(user_id)
            journals = self.repository.get_journals(user_id)
            goals = self.repository.get_goals(user_id)
        except Exception as e:
            logger.exception(f"Error loading data for stats: {e}")
            return WeeklyStats.empty()
        return calculate_weekly_stats(tasks, journals, goals, today or self.clock())

    def _generate_plan(self, user_id: int, goals: Sequence[Goal], today: date) -> DailyPlan:
        recent_journals = self.repository.get_recent_journals(
            user_id, self.journal_lookback_days, today
        )
        return self.task_generator.generate_daily_tasks(
            recent_journals, goals, today=today, user_id=user_id
        )

    def get_dashboard(self, user_id: int) -> DashboardView:
        """
        今日のダッシュボードを返す

        当日のダッシュボード内容もタスクも無い場合のみ生成して保存する。
        生成の保存中に予期しない例外が起きた場合は、その時点で存在する内容を返す。
        """
        today = self.clock()
        today_str = today.isoformat()

        tasks = self.repository.get_tasks(user_id, today_str)
        goals = self.repository.get_goals(user_id)
        content = self.repository.get_dashboard_content(user_id, today_str)

        if content is None and not tasks:
            try:
                plan = self._generate_plan(user_id, goals, today)
                created = self.repository.create_daily_plan(
                    user_id,
                    today_str,
                    plan.daily_quote,
                    plan.focus_area,
                    self.build_new_tasks(plan, goals),
                )
                if created is None:
                    logger.info(f"Daily plan for user {user_id} on {today_str} already created")
                    content = self.repository.get_dashboard_content(user_id, today_str)
                else:
                    content = created
                tasks = self.repository.get_tasks(user_id, today_str)
            except Exception as e:
                logger.exception(f"AI task generation failed: {e}")

        return DashboardView(
            tasks=tasks,
            goals=goals,
            dashboard_content=content,
            stats=self.compute_stats(user_id, today),
        )

    def regenerate_tasks(self, user_id: int) -> RegenerationResult:
        """
        今日のタスクを作り直す

        既存タスクを削除して新しい一式を登録し、ダッシュボード内容は同じ行を更新する。
        書き込みは1トランザクションで、失敗時は以前のタスクがそのまま残る。
        """
        today = self.clock()
        today_str = today.isoformat()
        logger.info(f"Manual task generation requested for user: {user_id}")

        goals = self.repository.get_goals(user_id)
        plan = self._generate_plan(user_id, goals, today)

        created_tasks, content = self.repository.replace_daily_plan(
            user_id,
            today_str,
            plan.daily_quote,
            plan.focus_area,
            self.build_new_tasks(plan, goals),
        )

        logger.info(f"Generated {len(created_tasks)} tasks for user {user_id}")
        return RegenerationResult(
            tasks=created_tasks,
            dashboard_content=content,
            message=f"Generated {len(created_tasks)} new tasks for today",
        )
