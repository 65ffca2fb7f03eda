"""
Pydantic schemas for agents.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from mission_control.models.agent import AgentLevel, AgentStatus
from mission_control.schemas.common import SquadName


class AgentCreate(BaseModel):
    """Schema for registering an agent."""
    name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=200)
    squad: SquadName
    session_key: str = Field(..., min_length=1, max_length=200)
    level: AgentLevel = AgentLevel.SPECIALIST
    status: AgentStatus = AgentStatus.IDLE


class AgentResponse(BaseModel):
    """Schema for agent response. The session key is never echoed back."""
    id: int
    name: str
    role: str
    squad: str
    level: str
    status: str
    current_task_id: Optional[int] = None
    last_heartbeat: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
