"""
Task API routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mission_control.database import get_db
from mission_control.models.agent import Agent
from mission_control.models.task import TaskStatus
from mission_control.services.task_service import TaskService
from mission_control.utils.dependencies import get_current_agent
from mission_control.schemas.common import SQUAD_MAX_LENGTH
from mission_control.schemas.task import TaskCreate, TaskResponse, TaskStatusUpdate

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    squad: Optional[str] = Query(None, min_length=1, max_length=SQUAD_MAX_LENGTH),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    return TaskService(db).list(
        squad=squad,
        status=status_filter.value if status_filter else None,
        limit=limit,
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    return TaskService(db).create(current_agent, data)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    return TaskService(db).get_or_404(task_id)


@router.post("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    data: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent)
):
    return TaskService(db).update_status(current_agent, task_id, data.status.value)
