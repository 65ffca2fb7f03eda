"""
Approvals API routes - the human decision gate.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from mission_control.database import get_db
from mission_control.models.agent import Agent
from mission_control.models.approval import ApprovalStatus
from mission_control.services.approval_service import ApprovalService
from mission_control.utils.dependencies import get_current_agent
from mission_control.schemas.approval import (
    ApprovalCreate,
    ApprovalCreated,
    ApprovalDecide,
    ApprovalExecute,
    ApprovalResponse,
    ApprovalStats,
)

router = APIRouter(prefix="/approvals", tags=["Approvals"])


@router.get("", response_model=List[ApprovalResponse])
def list_approvals(
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """List approvals newest first, optionally by status."""
    return ApprovalService(db).list(status=status_filter, limit=limit)


@router.get("/stats", response_model=ApprovalStats)
def approval_stats(db: Session = Depends(get_db)):
    return ApprovalService(db).stats()


@router.get("/{approval_id}", response_model=ApprovalResponse)
def get_approval(approval_id: int, db: Session = Depends(get_db)):
    return ApprovalService(db).get(approval_id)


@router.post("", response_model=ApprovalCreated, status_code=status.HTTP_201_CREATED)
def create_approval(
    data: ApprovalCreate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Request a human decision. The requester defaults to the acting agent."""
    requested_by = data.requested_by_agent_id if data.requested_by_agent_id is not None else current_agent.id
    approval = ApprovalService(db).create(
        action_type=data.action_type,
        payload=data.payload,
        requested_by_agent_id=requested_by,
        related_task_id=data.related_task_id,
        correlation_id=data.correlation_id,
    )
    return ApprovalCreated(id=approval.id, status=approval.status)


@router.post("/{approval_id}/decide", status_code=status.HTTP_204_NO_CONTENT)
def decide_approval(
    approval_id: int,
    data: ApprovalDecide,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Approve or reject a pending approval. A second decision gets 409."""
    ApprovalService(db).decide(
        approval_id,
        data.decision.value,
        data.decided_by or current_agent.name,
        data.decision_note,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{approval_id}/execute", response_model=ApprovalResponse)
def execute_approval(
    approval_id: int,
    data: Optional[ApprovalExecute] = None,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Record that an approved action was carried out."""
    service = ApprovalService(db)
    approval = service.mark_executed(
        approval_id,
        actor=current_agent,
        execution_result=data.execution_result if data else None,
    )
    return service.enrich([approval])[0]
