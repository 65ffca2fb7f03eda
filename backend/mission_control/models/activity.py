"""
Activity model - append-only audit/event feed.
"""
from sqlalchemy import Column, Integer, String, DateTime, Index

from mission_control.database import Base
from mission_control.models.types import JSONType
from mission_control.utils.clock import utcnow


class Activity(Base):
    """
    One thing that happened.

    agent_name / agent_role are copied from the agent row at write time so the
    record keeps reading the same after the agent is renamed or removed. Rows
    are never updated; the only delete path is age-based retention cleanup.
    """

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)

    # Who
    agent_id = Column(Integer, nullable=True)
    agent_name = Column(String(200), nullable=True)
    agent_role = Column(String(200), nullable=True)

    # What
    action = Column(String(100), nullable=False)
    details = Column(JSONType, nullable=True)

    # Context
    task_id = Column(Integer, nullable=True)
    squad = Column(String(20), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activities_agent", "agent_id"),
        Index("ix_activities_task", "task_id"),
        Index("ix_activities_squad", "squad"),
        Index("ix_activities_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Activity {self.id} {self.action} by {self.agent_name or self.agent_id}>"
