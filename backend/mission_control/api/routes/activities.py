"""
Activity feed API routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mission_control.config import settings
from mission_control.database import get_db
from mission_control.models.agent import Agent
from mission_control.services.activity_service import ActivityService
from mission_control.utils.dependencies import get_current_agent, get_lead_agent
from mission_control.schemas.common import SQUAD_MAX_LENGTH, CreatedResponse
from mission_control.schemas.activity import (
    ActivityCreate,
    ActivityPage,
    ActivityResponse,
    CleanupResponse,
)

router = APIRouter(prefix="/activities", tags=["Activities"])


def _page(page) -> ActivityPage:
    return ActivityPage(page=page.items, cursor=page.cursor, is_done=page.is_done)


@router.get("", response_model=List[ActivityResponse])
def list_activities(
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Latest activities, newest first."""
    return ActivityService(db).list(squad=squad, limit=limit)


@router.get("/paginated", response_model=ActivityPage)
def paginated_activities(
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    cursor: Optional[str] = None,
    num_items: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Cursor-paginated feed."""
    page = ActivityService(db).paginated(
        squad=squad, cursor=cursor, num_items=num_items
    )
    return _page(page)


@router.get("/by-agent/{agent_id}", response_model=ActivityPage)
def activities_by_agent(
    agent_id: int,
    cursor: Optional[str] = None,
    num_items: Optional[int] = None,
    db: Session = Depends(get_db)
):
    return _page(ActivityService(db).by_agent(agent_id, cursor=cursor, num_items=num_items))


@router.get("/by-task/{task_id}", response_model=ActivityPage)
def activities_by_task(
    task_id: int,
    cursor: Optional[str] = None,
    num_items: Optional[int] = None,
    db: Session = Depends(get_db)
):
    return _page(ActivityService(db).by_task(task_id, cursor=cursor, num_items=num_items))


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    data: ActivityCreate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Append an activity on behalf of the acting agent."""
    activity = ActivityService(db).append(
        data.action,
        actor=current_agent,
        details=data.details,
        task_id=data.task_id,
        squad=data.squad,
    )
    db.commit()
    return CreatedResponse(id=activity.id)


@router.delete("/retention", response_model=CleanupResponse)
def cleanup_activities(
    older_than_days: float = Query(settings.ACTIVITY_RETENTION_DAYS, ge=0, le=settings.ACTIVITY_RETENTION_MAX_DAYS),
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_lead_agent)
):
    """Delete activities older than the retention window. Lead agents only."""
    deleted = ActivityService(db).cleanup(older_than_days)
    return CleanupResponse(deleted=deleted, older_than_days=older_than_days)
