"""
Pydantic schemas for tasks.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from mission_control.schemas.common import SquadName
from mission_control.models.task import TaskStatus, TaskPriority


class TaskCreate(BaseModel):
    """Schema for creating a task."""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.INBOX
    priority: TaskPriority = TaskPriority.MEDIUM
    squad: SquadName
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    """Schema for task response."""
    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    squad: str
    created_by: str
    due_date: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
