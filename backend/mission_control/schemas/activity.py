"""Schemas for the activity feed."""
from datetime import datetime
from typing import Optional, Any, List
from pydantic import BaseModel, Field

from mission_control.schemas.common import SquadName


class ActivityCreate(BaseModel):
    """Schema for appending an activity. The acting agent comes from the request identity."""
    action: str = Field(..., min_length=1, max_length=100)
    details: Any = None
    task_id: Optional[int] = None
    squad: Optional[SquadName] = None


class ActivityResponse(BaseModel):
    """Response model for activity entries"""
    id: int
    agent_id: Optional[int] = None
    agent_name: Optional[str] = None
    agent_role: Optional[str] = None
    action: str
    details: Any = None
    task_id: Optional[int] = None
    squad: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityPage(BaseModel):
    """Cursor page of activities"""
    page: List[ActivityResponse]
    cursor: Optional[str] = None
    is_done: bool


class CleanupResponse(BaseModel):
    deleted: int
    older_than_days: float
