"""
Deliverables API routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mission_control.database import get_db
from mission_control.models.agent import Agent
from mission_control.models.deliverable import DeliverableStatus, DeliverableType
from mission_control.services import workflow
from mission_control.services.deliverable_service import DeliverableService
from mission_control.utils.dependencies import get_current_agent
from mission_control.schemas.common import SQUAD_MAX_LENGTH, CreatedResponse, SuccessResponse, VersionedSuccessResponse
from mission_control.schemas.deliverable import (
    DeliverableCreate,
    DeliverableUpdate,
    DeliverableStatusUpdate,
    DeliverableResponse,
    DeliverableDetail,
    DeliverableList,
    DeliverableStats,
    DeliverableVersionResponse,
    TransitionResponse,
)

router = APIRouter(prefix="/deliverables", tags=["Deliverables"])


def _value(enum_member):
    return enum_member.value if enum_member is not None else None


@router.get("", response_model=DeliverableList)
def list_deliverables(
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    status_filter: Optional[DeliverableStatus] = Query(None, alias="status"),
    type_filter: Optional[DeliverableType] = Query(None, alias="type"),
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List deliverables newest first. Page size is capped at 100."""
    page = DeliverableService(db).list(
        squad=squad,
        status=_value(status_filter),
        type=_value(type_filter),
        limit=limit,
        cursor=cursor,
    )
    return DeliverableList(items=page.items, cursor=page.cursor)


# IMPORTANT: static routes MUST be defined BEFORE /{deliverable_id}
@router.get("/search", response_model=List[DeliverableResponse])
def search_deliverables(
    q: str = Query(..., min_length=1),
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Search title and content, case-insensitive."""
    return DeliverableService(db).search(q, squad=squad, limit=limit)


@router.get("/stats", response_model=DeliverableStats)
def deliverable_stats(
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    db: Session = Depends(get_db)
):
    """Counts by status and by type."""
    return DeliverableService(db).stats(squad=squad)


@router.get("/transitions", response_model=List[TransitionResponse])
def list_transitions():
    """The status workflow table with display labels."""
    return workflow.transition_table()


@router.get("/by-task/{task_id}", response_model=List[DeliverableResponse])
def deliverables_by_task(task_id: int, db: Session = Depends(get_db)):
    return DeliverableService(db).by_task(task_id)


@router.get("/by-agent/{agent_id}", response_model=List[DeliverableResponse])
def deliverables_by_agent(agent_id: int, db: Session = Depends(get_db)):
    return DeliverableService(db).by_agent(agent_id)


@router.get("/{deliverable_id}", response_model=DeliverableDetail)
def get_deliverable(deliverable_id: int, db: Session = Depends(get_db)):
    """Get deliverable with its 10 most recent versions and available transitions."""
    return DeliverableService(db).get(deliverable_id)


@router.get("/{deliverable_id}/versions", response_model=List[DeliverableVersionResponse])
def get_deliverable_versions(deliverable_id: int, db: Session = Depends(get_db)):
    """Full version history, newest first."""
    return DeliverableService(db).get_versions(deliverable_id)


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_deliverable(
    data: DeliverableCreate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Create a deliverable in draft at version 1."""
    deliverable = DeliverableService(db).create(current_agent, data)
    return CreatedResponse(id=deliverable.id)


@router.patch("/{deliverable_id}", response_model=VersionedSuccessResponse)
def update_deliverable(
    deliverable_id: int,
    data: DeliverableUpdate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Apply a partial update. Only fields sent in the body are changed."""
    changes = data.model_dump(exclude_unset=True)
    change_summary = changes.pop("change_summary", None)
    version = DeliverableService(db).update(current_agent, deliverable_id, changes, change_summary)
    return VersionedSuccessResponse(version=version)


@router.post("/{deliverable_id}/status", response_model=VersionedSuccessResponse)
def update_deliverable_status(
    deliverable_id: int,
    data: DeliverableStatusUpdate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Move a deliverable through the status workflow."""
    version = DeliverableService(db).update_status(
        current_agent, deliverable_id, data.status.value, data.change_summary
    )
    return VersionedSuccessResponse(version=version)


@router.post("/{deliverable_id}/archive", response_model=SuccessResponse)
def archive_deliverable(
    deliverable_id: int,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Soft delete."""
    DeliverableService(db).archive(current_agent, deliverable_id)
    return SuccessResponse()


@router.delete("/{deliverable_id}", response_model=SuccessResponse)
def delete_deliverable(
    deliverable_id: int,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Permanently delete a deliverable and its history. Lead agents only."""
    DeliverableService(db).remove(current_agent, deliverable_id)
    return SuccessResponse()
