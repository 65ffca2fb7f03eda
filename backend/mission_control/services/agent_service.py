"""
Agent Service - roster records that identities and activities resolve to.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from mission_control.errors import InvalidStateError, NotFoundError
from mission_control.models.agent import Agent
from mission_control.schemas.agent import AgentCreate
from mission_control.utils.clock import utcnow

logger = logging.getLogger(__name__)


class AgentService:
    """Service for agent roster operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, data: AgentCreate) -> Agent:
        """Register an agent. Session keys are unique."""
        existing = self.db.query(Agent).filter(Agent.session_key == data.session_key).first()
        if existing:
            raise InvalidStateError("An agent with this session key already exists")

        agent = Agent(
            name=data.name,
            role=data.role,
            squad=data.squad,
            session_key=data.session_key,
            level=data.level.value,
            status=data.status.value,
        )
        self.db.add(agent)
        self.db.commit()
        self.db.refresh(agent)
        logger.info(f"[Agents] Registered {agent.name} ({agent.level}) in {agent.squad}", extra={"agent_id": agent.id})
        return agent

    def get_or_404(self, agent_id: int) -> Agent:
        agent = self.db.get(Agent, agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)
        return agent

    def list(self, squad: Optional[str] = None) -> List[Agent]:
        query = self.db.query(Agent)
        if squad:
            query = query.filter(Agent.squad == squad)
        return query.order_by(Agent.name).all()

    def heartbeat(self, agent_id: int, status: Optional[str] = None, current_task_id: Optional[int] = None) -> Agent:
        agent = self.get_or_404(agent_id)
        agent.last_heartbeat = utcnow()
        if status:
            agent.status = status
        if current_task_id is not None:
            agent.current_task_id = current_task_id
        self.db.commit()
        self.db.refresh(agent)
        return agent
