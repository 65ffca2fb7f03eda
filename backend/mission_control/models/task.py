"""
Task model: the kanban card deliverables, approvals and activities point at.
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Index

from mission_control.database import Base
from mission_control.utils.clock import utcnow


class TaskStatus(str, Enum):
    INBOX = "inbox"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(Base):
    """Task card. Other tables reference it softly (no foreign keys)."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.INBOX.value)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    squad = Column(String(20), nullable=False)
    created_by = Column(String(200), nullable=False)
    due_date = Column(DateTime, nullable=True)
    archived_at = Column(DateTime, nullable=True)
    archived_by_agent_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_squad", "squad"),
        Index("ix_tasks_squad_status", "squad", "status"),
    )

    def __repr__(self):
        return f"<Task {self.id} {self.status}>"
