"""Goal endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import List

from fastapi import Depends, FastAPI, HTTPException

from src.storage import User

from ..dependencies import get_current_user, get_repository, serialize_goal
from ..schemas import (
    DeleteResponse,
    GoalCreateRequest,
    GoalProgressRequest,
    GoalResponse,
    GoalUpdateRequest,
)

logger = logging.getLogger(__name__)


def register_goal_routes(app: FastAPI) -> None:
    """Register goal CRUD endpoints."""

    @app.post("/api/goals", response_model=GoalResponse)
    async def create_goal(
        request: GoalCreateRequest, user: User = Depends(get_current_user)
    ) -> GoalResponse:
        """Create a new goal."""
        repo = get_repository()
        try:
            goal = await asyncio.to_thread(
                repo.create_goal,
                user.id,
                request.title,
                request.description,
                request.target_value,
                request.current_value,
                request.unit,
                request.duration,
                request.completed,
            )
            return serialize_goal(goal)
        except Exception as exc:
            logger.exception("Failed to create goal: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to create goal") from exc

    @app.get("/api/goals", response_model=List[GoalResponse])
    async def list_goals(user: User = Depends(get_current_user)) -> List[GoalResponse]:
        """List goals, newest first."""
        repo = get_repository()
        try:
            goals = await asyncio.to_thread(repo.get_goals, user.id)
            return [serialize_goal(goal) for goal in goals]
        except Exception as exc:
            logger.exception("Failed to list goals: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch goals") from exc

    @app.put("/api/goals/{goal_id}", response_model=GoalResponse)
    async def update_goal(
        goal_id: int, request: GoalUpdateRequest, user: User = Depends(get_current_user)
    ) -> GoalResponse:
        """Partially update a goal."""
        repo = get_repository()
        changes = request.model_dump(exclude_unset=True)
        for required in ("title", "current_value", "completed"):
            if required in changes and changes[required] is None:
                raise HTTPException(status_code=400, detail="Invalid request body")
        try:
            goal = await asyncio.to_thread(repo.update_goal, user.id, goal_id, changes)
        except Exception as exc:
            logger.exception("Failed to update goal: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update goal") from exc
        if goal is None:
            raise HTTPException(status_code=404, detail="Goal not found")
        return serialize_goal(goal)

    @app.post("/api/goals/{goal_id}/progress", response_model=GoalResponse)
    async def adjust_goal_progress(
        goal_id: int, request: GoalProgressRequest, user: User = Depends(get_current_user)
    ) -> GoalResponse:
        """Increment or decrement currentValue (never below zero)."""
        repo = get_repository()
        try:
            goal = await asyncio.to_thread(
                repo.adjust_goal_progress, user.id, goal_id, request.delta
            )
        except Exception as exc:
            logger.exception("Failed to update goal progress: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update goal") from exc
        if goal is None:
            raise HTTPException(status_code=404, detail="Goal not found")
        return serialize_goal(goal)

    @app.delete("/api/goals/{goal_id}", response_model=DeleteResponse)
    async def delete_goal(goal_id: int, user: User = Depends(get_current_user)) -> DeleteResponse:
        """Delete a goal and detach the tasks that referenced it."""
        repo = get_repository()
        try:
            deleted = await asyncio.to_thread(repo.delete_goal, user.id, goal_id)
        except Exception as exc:
            logger.exception("Failed to delete goal: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to delete goal") from exc
        if not deleted:
            raise HTTPException(status_code=404, detail="Goal not found")
        return DeleteResponse(success=True)
