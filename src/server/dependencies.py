"""Dependency helpers shared across FastAPI routes."""

from __future__ import annotations

import hashlib
import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from src.growth_tracker.ai_client import OpenRouterClient
from src.growth_tracker.config import Config
from src.growth_tracker.dashboard import DashboardService
from src.growth_tracker.logger import setup_logger
from src.growth_tracker.prompt_templates import TaskPromptBuilder
from src.growth_tracker.stats import WeeklyStats, goal_progress
from src.growth_tracker.task_generator import TaskGenerator
from src.storage import DashboardContent, Goal, GrowthRepository, JournalEntry, Task, User

from .schemas import (
    DashboardContentResponse,
    GoalResponse,
    JournalResponse,
    StatsResponse,
    TaskResponse,
    UserResponse,
)

config = Config.from_yaml()
setup_logger(log_level=config.log_level, log_file=config.log_file)


@lru_cache(maxsize=1)
def get_repository() -> GrowthRepository:
    """Singleton GrowthRepository."""
    return GrowthRepository(db_path=config.database_path)


@lru_cache(maxsize=1)
def get_ai_client() -> OpenRouterClient:
    """Singleton AI client; the API key is read from the environment once."""
    return OpenRouterClient.from_config(config.ai)


@lru_cache(maxsize=1)
def get_task_generator() -> TaskGenerator:
    """Singleton TaskGenerator wired to the shared AI client."""
    generation = config.generation
    builder = TaskPromptBuilder(
        recent_days=generation.recent_days,
        medium_days=generation.medium_days,
        recent_excerpt_chars=generation.recent_excerpt_chars,
        medium_excerpt_chars=generation.medium_excerpt_chars,
    )
    return TaskGenerator(get_ai_client(), builder)


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    """Singleton DashboardService."""
    return DashboardService(
        get_repository(),
        get_task_generator(),
        journal_lookback_days=config.generation.journal_lookback_days,
    )


def clear_caches() -> None:
    """Drop all singletons (used by tests after changing the environment)."""
    get_dashboard_service.cache_clear()
    get_task_generator.cache_clear()
    get_ai_client.cache_clear()
    get_repository.cache_clear()


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return ``salt$sha256(salt + password)``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.sha256(f"{salt}{password}".encode("utf-8")).hexdigest()
    return f"{salt}${digest}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, _digest = password_hash.partition("$")
    return secrets.compare_digest(hash_password(password, salt), password_hash)


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> User:
    """Resolve the caller from the ``X-User-Id`` header or fail with 401."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = get_repository().get_user(int(x_user_id.strip()))
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def serialize_user(user: User) -> UserResponse:
    """Convert domain User to API response without the credential hash."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def serialize_journal(entry: JournalEntry) -> JournalResponse:
    return JournalResponse(
        id=entry.id,
        user_id=entry.user_id,
        date=entry.date,
        title=entry.title,
        content=entry.content,
        mood=entry.mood,
        created_at=entry.created_at,
    )


def serialize_goal(goal: Goal) -> GoalResponse:
    """Convert domain Goal to API response, adding the progress percentage."""
    return GoalResponse(
        id=goal.id,
        user_id=goal.user_id,
        title=goal.title,
        description=goal.description,
        target_value=goal.target_value,
        current_value=goal.current_value,
        unit=goal.unit,
        duration=goal.duration,
        completed=goal.completed,
        progress=goal_progress(goal),
        created_at=goal.created_at,
    )


def serialize_task(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        user_id=task.user_id,
        date=task.date,
        title=task.title,
        description=task.description,
        category=task.category,
        time_estimate=task.time_estimate,
        priority=task.priority,
        completed=task.completed,
        related_goal_id=task.related_goal_id,
        generated_at=task.generated_at,
    )


def serialize_dashboard_content(
    content: Optional[DashboardContent],
) -> Optional[DashboardContentResponse]:
    if content is None:
        return None
    return DashboardContentResponse(
        id=content.id,
        user_id=content.user_id,
        date=content.date,
        daily_quote=content.daily_quote,
        focus_area=content.focus_area,
        created_at=content.created_at,
    )


def serialize_stats(stats: WeeklyStats) -> StatsResponse:
    return StatsResponse(
        tasks_completed=stats.tasks_completed,
        total_tasks=stats.total_tasks,
        journal_entries=stats.journal_entries,
        completion_rate=stats.completion_rate,
        goal_progress=stats.goal_progress,
        streak=stats.streak,
    )
