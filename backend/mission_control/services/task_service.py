"""
Task Service - the task cards deliverables and approvals attach to.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from mission_control.errors import NotFoundError
from mission_control.models.agent import Agent
from mission_control.models.task import Task
from mission_control.schemas.task import TaskCreate
from mission_control.services.activity_service import ActivityService
from mission_control.services.pagination import clamp_limit, newest_first

logger = logging.getLogger(__name__)


class TaskService:
    """Service for task operations."""

    def __init__(self, db: Session):
        self.db = db
        self.activities = ActivityService(db)

    def create(self, actor: Agent, data: TaskCreate) -> Task:
        task = Task(
            title=data.title,
            description=data.description,
            status=data.status.value,
            priority=data.priority.value,
            squad=data.squad,
            created_by=actor.name,
            due_date=data.due_date,
        )
        self.db.add(task)
        self.db.flush()
        self.activities.append(
            "created_task",
            actor=actor,
            details={"title": task.title},
            task_id=task.id,
            squad=task.squad,
        )
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"[Tasks] Created task {task.id} '{task.title}'", extra={"agent_id": actor.id})
        return task

    def get_or_404(self, task_id: int) -> Task:
        task = self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def list(self, squad: Optional[str] = None, status: Optional[str] = None, limit: Optional[int] = None) -> List[Task]:
        query = self.db.query(Task)
        if squad:
            query = query.filter(Task.squad == squad)
        if status:
            query = query.filter(Task.status == status)
        return newest_first(query, Task).limit(clamp_limit(limit)).all()

    def update_status(self, actor: Agent, task_id: int, status: str) -> Task:
        task = self.get_or_404(task_id)
        previous = task.status
        task.status = status
        self.activities.append(
            "task_status_changed",
            actor=actor,
            details={"from": previous, "to": status},
            task_id=task.id,
            squad=task.squad,
        )
        self.db.commit()
        self.db.refresh(task)
        return task
