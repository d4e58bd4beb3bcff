"""Task endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from src.storage import User

from ..dependencies import get_current_user, get_repository, serialize_task
from ..schemas import TaskResponse, TaskUpdateRequest

logger = logging.getLogger(__name__)


def register_task_routes(app: FastAPI) -> None:
    """Register task endpoints."""

    @app.get("/api/tasks", response_model=List[TaskResponse])
    async def list_tasks(
        task_date: Optional[date] = Query(default=None, alias="date"),
        user: User = Depends(get_current_user),
    ) -> List[TaskResponse]:
        """List tasks, optionally only those of one date."""
        repo = get_repository()
        try:
            tasks = await asyncio.to_thread(
                repo.get_tasks, user.id, task_date.isoformat() if task_date else None
            )
            return [serialize_task(task) for task in tasks]
        except Exception as exc:
            logger.exception("Failed to list tasks: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch tasks") from exc

    @app.put("/api/tasks/{task_id}", response_model=TaskResponse)
    async def update_task(
        task_id: int, request: TaskUpdateRequest, user: User = Depends(get_current_user)
    ) -> TaskResponse:
        """Partially update a task, e.g. ``{"completed": true}``."""
        repo = get_repository()
        changes = request.model_dump(exclude_unset=True)
        for required in ("title", "description", "category", "priority", "completed"):
            if required in changes and changes[required] is None:
                raise HTTPException(status_code=400, detail="Invalid request body")

        related_goal_id = changes.get("related_goal_id")
        try:
            if related_goal_id is not None:
                goal = await asyncio.to_thread(repo.get_goal, user.id, related_goal_id)
                if goal is None:
                    raise HTTPException(status_code=400, detail="Related goal not found")
            task = await asyncio.to_thread(repo.update_task, user.id, task_id, changes)
        except HTTPException:
            raise
        except Exception as exc:
            logger.exception("Failed to update task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update task") from exc
        if task is None:
            raise HTTPException(status_code=404, detail="Task not found")
        return serialize_task(task)
