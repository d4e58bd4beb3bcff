"""Route registration helpers."""

from .dashboard import register_dashboard_routes
from .goals import register_goal_routes
from .journals import register_journal_routes
from .tasks import register_task_routes
from .users import register_user_routes

__all__ = [
    "register_dashboard_routes",
    "register_goal_routes",
    "register_journal_routes",
    "register_task_routes",
    "register_user_routes",
]
