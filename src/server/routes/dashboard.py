"""Dashboard and task generation endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, FastAPI, HTTPException

from src.storage import User

from ..dependencies import (
    get_current_user,
    get_dashboard_service,
    serialize_dashboard_content,
    serialize_goal,
    serialize_stats,
    serialize_task,
)
from ..schemas import DashboardResponse, GenerateTasksResponse, HealthResponse

logger = logging.getLogger(__name__)


def register_dashboard_routes(app: FastAPI) -> None:
    """Register dashboard/generation endpoints on the provided app."""

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health check endpoint."""
        return HealthResponse(status="ok")

    @app.get("/api/dashboard", response_model=DashboardResponse)
    async def dashboard(user: User = Depends(get_current_user)) -> DashboardResponse:
        """Return today's tasks, goals, quote/focus and weekly stats."""
        service = get_dashboard_service()
        try:
            view = await asyncio.to_thread(service.get_dashboard, user.id)
        except Exception as exc:
            logger.exception("Failed to fetch dashboard data: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch dashboard data") from exc
        return DashboardResponse(
            tasks=[serialize_task(task) for task in view.tasks],
            goals=[serialize_goal(goal) for goal in view.goals],
            dashboard_content=serialize_dashboard_content(view.dashboard_content),
            stats=serialize_stats(view.stats),
        )

    @app.post("/api/generate-tasks", response_model=GenerateTasksResponse)
    async def generate_tasks(user: User = Depends(get_current_user)) -> GenerateTasksResponse:
        """Discard today's tasks and generate a new set."""
        service = get_dashboard_service()
        try:
            result = await asyncio.to_thread(service.regenerate_tasks, user.id)
        except Exception as exc:
            logger.exception("Failed to generate tasks: %s", exc)
            raise HTTPException(
                status_code=500, detail="Failed to generate tasks. Please try again."
            ) from exc
        return GenerateTasksResponse(
            tasks=[serialize_task(task) for task in result.tasks],
            dashboard_content=serialize_dashboard_content(result.dashboard_content),
            message=result.message,
        )
