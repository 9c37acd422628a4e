from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import Field

from taskboard.schemas.query import CamelModel

TaskStatus = Literal["TODO", "IN_PROGRESS", "DONE"]
TaskPriority = Literal["LOW", "MEDIUM", "HIGH"]


class CreateTaskIn(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    labels: Optional[dict[str, Any]] = None


class UpdateTaskIn(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    position: Optional[int] = Field(default=None, ge=0)
    labels: Optional[dict[str, Any]] = None


class AssignTaskIn(CamelModel):
    assignee_id: UUID
