"""Schemas for Approvals."""
from datetime import datetime
from typing import Optional, Any
from pydantic import BaseModel, Field

from mission_control.models.approval import ApprovalDecision, ApprovalStatus


class ApprovalCreate(BaseModel):
    """Schema for requesting a decision on a proposed action."""
    action_type: str = Field(..., min_length=1, max_length=200)
    payload: Any = None
    requested_by_agent_id: Optional[int] = None
    related_task_id: Optional[int] = None
    correlation_id: Optional[str] = Field(None, max_length=200)


class ApprovalDecide(BaseModel):
    decision: ApprovalDecision
    decided_by: Optional[str] = Field(None, min_length=1, max_length=200)
    decision_note: Optional[str] = None


class ApprovalExecute(BaseModel):
    execution_result: Any = None


class ApprovalCreated(BaseModel):
    id: int
    status: ApprovalStatus


class ApprovalResponse(BaseModel):
    """Schema for approval response, enriched with requester name and task title."""
    id: int
    action_type: str
    payload: Any = None
    status: str
    requested_by_agent_id: Optional[int] = None
    related_task_id: Optional[int] = None
    correlation_id: Optional[str] = None
    decided_by: Optional[str] = None
    decision_note: Optional[str] = None
    decided_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    execution_result: Any = None
    created_at: datetime
    updated_at: datetime

    requested_by_name: str = "System"
    task_title: Optional[str] = None

    class Config:
        from_attributes = True


class ApprovalStats(BaseModel):
    pending: int
    approved: int
    rejected: int
    executed: int
    total: int
