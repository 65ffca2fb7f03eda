"""
Database models package.
Import all models to ensure they are registered with SQLAlchemy.
"""
from mission_control.models.agent import Agent, AgentLevel, AgentStatus
from mission_control.models.task import Task, TaskStatus, TaskPriority
from mission_control.models.deliverable import (
    Deliverable,
    DeliverableVersion,
    DeliverableType,
    DeliverableStatus,
    ContentFormat,
)
from mission_control.models.approval import Approval, ApprovalStatus, ApprovalDecision
from mission_control.models.activity import Activity

__all__ = [
    "Agent",
    "AgentLevel",
    "AgentStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Deliverable",
    "DeliverableVersion",
    "DeliverableType",
    "DeliverableStatus",
    "ContentFormat",
    "Approval",
    "ApprovalStatus",
    "ApprovalDecision",
    "Activity",
]
