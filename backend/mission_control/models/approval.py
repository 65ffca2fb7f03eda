"""
Approval model: a human decision gate in front of an agent-proposed action.
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Index

from mission_control.database import Base
from mission_control.models.types import JSONType
from mission_control.utils.clock import utcnow


class ApprovalStatus(str, Enum):
    """pending → approved | rejected; approved → executed."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXECUTED = "executed"


class ApprovalDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class Approval(Base):
    """Gate record. Agent and task references are soft: deleting them keeps the approval."""

    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True)
    action_type = Column(String(200), nullable=False)
    payload = Column(JSONType, nullable=True)
    status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value)

    requested_by_agent_id = Column(Integer, nullable=True)
    related_task_id = Column(Integer, nullable=True)
    correlation_id = Column(String(200), nullable=True)

    # Decision, immutable once set
    decided_by = Column(String(200), nullable=True)
    decision_note = Column(Text, nullable=True)
    decided_at = Column(DateTime, nullable=True)

    # Execution of the approved action
    executed_at = Column(DateTime, nullable=True)
    execution_result = Column(JSONType, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_approvals_status", "status"),
        Index("ix_approvals_task", "related_task_id"),
    )

    def __repr__(self):
        return f"<Approval {self.id} {self.action_type} {self.status}>"
