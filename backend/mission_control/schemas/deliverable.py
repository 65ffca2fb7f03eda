"""
Pydantic schemas for Deliverables.
"""
from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from mission_control.schemas.common import SquadName
from mission_control.models.deliverable import DeliverableType, DeliverableStatus, ContentFormat


class DeliverableCreate(BaseModel):
    """Schema for creating a deliverable. Status and version are assigned, never supplied."""
    title: str = Field(..., min_length=1, max_length=500)
    type: DeliverableType
    squad: SquadName
    content: Optional[str] = None
    content_format: ContentFormat = ContentFormat.MARKDOWN
    structured_data: Optional[Any] = None
    file_url: Optional[str] = Field(None, max_length=2000)
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    task_id: Optional[int] = None


class DeliverableUpdate(BaseModel):
    """Schema for a partial update. Only fields present in the request are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = None
    content_format: Optional[ContentFormat] = None
    structured_data: Optional[Any] = None
    file_url: Optional[str] = Field(None, max_length=2000)
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    status: Optional[DeliverableStatus] = None
    change_summary: Optional[str] = None


class DeliverableStatusUpdate(BaseModel):
    status: DeliverableStatus
    change_summary: Optional[str] = None


class DeliverableVersionResponse(BaseModel):
    """Schema for one immutable version row."""
    id: int
    deliverable_id: int
    version: int
    content: Optional[str] = None
    structured_data: Optional[Any] = None
    edited_by: str
    change_summary: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DeliverableResponse(BaseModel):
    """Schema for deliverable response, with the creator's display name attached."""
    id: int
    title: str
    type: str
    status: str
    squad: str
    created_by_agent_id: Optional[int] = None
    task_id: Optional[int] = None
    content: Optional[str] = None
    content_format: str
    structured_data: Optional[Any] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    version: int
    created_at: datetime
    updated_at: datetime

    created_by_name: str = "Unknown Agent"
    created_by_role: str = "Unknown"

    class Config:
        from_attributes = True


class TransitionResponse(BaseModel):
    from_status: str = Field(..., alias="from")
    to: str
    label: str

    class Config:
        populate_by_name = True


class DeliverableDetail(DeliverableResponse):
    """Single deliverable with its recent history."""
    versions: List[DeliverableVersionResponse] = []
    transitions: List[TransitionResponse] = []


class DeliverableList(BaseModel):
    items: List[DeliverableResponse]
    cursor: Optional[str] = None


class DeliverableStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
