"""Pydantic schemas for the FastAPI server.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.storage import GoalDuration, TaskPriority


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str


class UserCreateRequest(CamelModel):
    """Request body for registering a user."""

    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=200)


class UserUpdateRequest(CamelModel):
    """Request body for the authenticated user's profile change."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    password: Optional[str] = Field(default=None, min_length=8, max_length=200)


class LoginRequest(CamelModel):
    """Request body for checking credentials."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=200)


class UserResponse(CamelModel):
    """Serialized user (credential hash is never exposed)."""

    id: int
    email: str
    name: str
    created_at: str
    updated_at: str


class JournalUpsertRequest(CamelModel):
    """Request body for creating or updating the journal of a date."""

    entry_date: date = Field(..., alias="date", description="ISO date (YYYY-MM-DD)")
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = Field(default=None, max_length=20000)
    mood: Optional[str] = Field(default=None, max_length=50)


class JournalResponse(CamelModel):
    """Serialized journal entry."""

    id: int
    user_id: int
    date: str
    title: Optional[str] = None
    content: Optional[str] = None
    mood: Optional[str] = None
    created_at: str


class GoalCreateRequest(CamelModel):
    """Request body for creating a goal."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    target_value: Optional[int] = Field(default=None, ge=0)
    current_value: int = Field(default=0, ge=0)
    unit: Optional[str] = Field(default=None, max_length=50)
    duration: Optional[GoalDuration] = None
    completed: bool = False


class GoalUpdateRequest(CamelModel):
    """Request body for a partial goal update."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    target_value: Optional[int] = Field(default=None, ge=0)
    current_value: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=50)
    duration: Optional[GoalDuration] = None
    completed: Optional[bool] = None


class GoalProgressRequest(CamelModel):
    """Request body for incrementing or decrementing goal progress."""

    delta: int = Field(..., description="Amount added to currentValue (may be negative)")


class GoalResponse(CamelModel):
    """Serialized goal with computed progress percentage."""

    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    target_value: Optional[int] = None
    current_value: int
    unit: Optional[str] = None
    duration: Optional[GoalDuration] = None
    completed: bool
    progress: int
    created_at: str


class TaskUpdateRequest(CamelModel):
    """Request body for a partial task update (e.g. toggling completion)."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    time_estimate: Optional[int] = Field(default=None, ge=0)
    priority: Optional[TaskPriority] = None
    completed: Optional[bool] = None
    related_goal_id: Optional[int] = None


class TaskResponse(CamelModel):
    """Serialized task."""

    id: int
    user_id: int
    date: str
    title: str
    description: str
    category: str
    time_estimate: Optional[int] = None
    priority: TaskPriority
    completed: bool
    related_goal_id: Optional[int] = None
    generated_at: str


class DashboardContentResponse(CamelModel):
    """Serialized daily quote / focus area."""

    id: int
    user_id: int
    date: str
    daily_quote: Optional[str] = None
    focus_area: Optional[str] = None
    created_at: str


class StatsResponse(CamelModel):
    """Weekly stats snapshot."""

    tasks_completed: int
    total_tasks: int
    journal_entries: int
    completion_rate: int
    goal_progress: int
    streak: int


class DashboardResponse(CamelModel):
    """Response for the dashboard endpoint."""

    tasks: List[TaskResponse]
    goals: List[GoalResponse]
    dashboard_content: Optional[DashboardContentResponse] = None
    stats: StatsResponse


class GenerateTasksResponse(CamelModel):
    """Response for manual task regeneration."""

    tasks: List[TaskResponse]
    dashboard_content: DashboardContentResponse
    message: str


class DeleteResponse(BaseModel):
    """Response for delete endpoints."""

    success: bool
