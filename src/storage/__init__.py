"""Persistence layer shared by the server and the dashboard service."""

from .models import (
    DashboardContent,
    Goal,
    GoalDuration,
    JournalEntry,
    NewTask,
    Task,
    TaskPriority,
    User,
)
from .repository import GrowthRepository, UNSET

__all__ = [
    "DashboardContent",
    "Goal",
    "GoalDuration",
    "JournalEntry",
    "NewTask",
    "Task",
    "TaskPriority",
    "User",
    "GrowthRepository",
    "UNSET",
]
