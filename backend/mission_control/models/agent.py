"""
Agent model: the roster entry an acting identity resolves to.
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Index

from mission_control.database import Base
from mission_control.utils.clock import utcnow


class AgentLevel(str, Enum):
    """Authorization level, lowest first."""
    INTERN = "intern"
    SPECIALIST = "specialist"
    LEAD = "lead"


class AgentStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    BLOCKED = "blocked"


class Agent(Base):
    """Agent roster entry."""

    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    role = Column(String(200), nullable=False)
    squad = Column(String(20), nullable=False)  # free-form team partition, e.g. "oceans-11"
    session_key = Column(String(200), nullable=False)
    level = Column(String(20), nullable=False, default=AgentLevel.SPECIALIST.value)
    status = Column(String(20), nullable=False, default=AgentStatus.IDLE.value)
    current_task_id = Column(Integer, nullable=True)  # soft reference
    last_heartbeat = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_agents_session_key", "session_key", unique=True),
        Index("ix_agents_squad", "squad"),
    )

    @property
    def is_lead(self) -> bool:
        return self.level == AgentLevel.LEAD.value

    def __repr__(self):
        return f"<Agent {self.id} {self.name} ({self.level})>"
