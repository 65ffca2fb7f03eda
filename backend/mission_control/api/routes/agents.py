"""
Agent roster API routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mission_control.database import get_db
from mission_control.errors import PermissionDeniedError
from mission_control.models.agent import Agent, AgentStatus
from mission_control.services.agent_service import AgentService
from mission_control.utils.dependencies import get_current_agent
from mission_control.schemas.agent import AgentCreate, AgentResponse
from mission_control.schemas.common import SQUAD_MAX_LENGTH

router = APIRouter(prefix="/agents", tags=["Agents"])


class HeartbeatRequest(BaseModel):
    status: Optional[AgentStatus] = None
    current_task_id: Optional[int] = None


@router.get("", response_model=List[AgentResponse])
def list_agents(squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH), db: Session = Depends(get_db)):
    return AgentService(db).list(squad=squad)


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
def register_agent(data: AgentCreate, db: Session = Depends(get_db)):
    """Register an agent and its session key."""
    return AgentService(db).create(data)


@router.get("/{agent_id}", response_model=AgentResponse)
def get_agent(agent_id: int, db: Session = Depends(get_db)):
    return AgentService(db).get_or_404(agent_id)


@router.post("/{agent_id}/heartbeat", response_model=AgentResponse)
def agent_heartbeat(
    agent_id: int,
    data: Optional[HeartbeatRequest] = None,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    """Record liveness. Agents report for themselves; leads may report for anyone."""
    if current_agent.id != agent_id and not current_agent.is_lead:
        raise PermissionDeniedError("Agents can only send their own heartbeat")
    return AgentService(db).heartbeat(
        agent_id,
        status=data.status.value if data and data.status else None,
        current_task_id=data.current_task_id if data else None,
    )
