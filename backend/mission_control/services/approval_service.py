"""
Approval Service - human decision gate for agent-proposed actions.

Lifecycle: pending → approved | rejected, then approved → executed.
Resolution is a conditional UPDATE on the expected status, so of two
concurrent decisions exactly one lands and the other gets InvalidStateError.
"""
import logging
from typing import Any, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from mission_control.errors import InvalidStateError, NotFoundError, ValidationError
from mission_control.models.agent import Agent
from mission_control.models.approval import Approval, ApprovalDecision, ApprovalStatus
from mission_control.models.task import Task
from mission_control.schemas.approval import ApprovalResponse, ApprovalStats
from mission_control.services.activity_service import SYSTEM_ACTOR_NAME, ActivityService
from mission_control.services.pagination import clamp_limit, newest_first
from mission_control.utils.clock import utcnow

logger = logging.getLogger(__name__)

DECISIONS = [d.value for d in ApprovalDecision]


class ApprovalService:
    """Service for approval operations."""

    def __init__(self, db: Session):
        self.db = db
        self.activities = ActivityService(db)

    def get_by_id(self, approval_id: int) -> Optional[Approval]:
        return self.db.get(Approval, approval_id, populate_existing=True)

    def get_or_404(self, approval_id: int) -> Approval:
        approval = self.get_by_id(approval_id)
        if approval is None:
            raise NotFoundError("Approval", approval_id)
        return approval

    # ========== Mutations ==========

    def create(
        self,
        action_type: str,
        payload: Any = None,
        requested_by_agent_id: Optional[int] = None,
        related_task_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> Approval:
        """Open a pending approval for a proposed action."""
        if requested_by_agent_id is not None and self.db.get(Agent, requested_by_agent_id) is None:
            raise NotFoundError("Agent", requested_by_agent_id)
        if related_task_id is not None and self.db.get(Task, related_task_id) is None:
            raise NotFoundError("Task", related_task_id)

        now = utcnow()
        approval = Approval(
            action_type=action_type,
            payload=payload,
            status=ApprovalStatus.PENDING.value,
            requested_by_agent_id=requested_by_agent_id,
            related_task_id=related_task_id,
            correlation_id=correlation_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(approval)
        self.db.commit()
        self.db.refresh(approval)

        logger.info(
            f"[Approvals] Approval {approval.id} requested for '{action_type}'",
            extra={"approval_id": approval.id, "agent_id": requested_by_agent_id},
        )
        return approval

    def decide(
        self,
        approval_id: int,
        decision: str,
        decided_by: str,
        decision_note: Optional[str] = None,
    ) -> None:
        """
        Resolve a pending approval.

        The decision fields are written once; a second decision, concurrent
        or not, raises InvalidStateError.
        """
        decision = getattr(decision, "value", decision)
        if decision not in DECISIONS:
            raise ValidationError(f"Invalid decision '{decision}'. Expected one of: {', '.join(DECISIONS)}")

        now = utcnow()
        result = self.db.execute(
            update(Approval)
            .where(Approval.id == approval_id, Approval.status == ApprovalStatus.PENDING.value)
            .values(
                status=decision,
                decided_by=decided_by,
                decision_note=decision_note,
                decided_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            approval = self.get_or_404(approval_id)
            logger.info(
                f"[Approvals] Rejected decision on approval {approval_id}: already {approval.status}",
                extra={"approval_id": approval_id},
            )
            raise InvalidStateError("Approval already decided")

        approval = self.get_or_404(approval_id)
        if approval.requested_by_agent_id is not None:
            self.activities.append(
                f"approval_{decision}",
                actor=approval.requested_by_agent_id,
                details={
                    "approval_id": approval.id,
                    "action_type": approval.action_type,
                    "decided_by": decided_by,
                },
                task_id=approval.related_task_id,
            )
        self.db.commit()
        logger.info(
            f"[Approvals] Approval {approval_id} {decision} by {decided_by}",
            extra={"approval_id": approval_id},
        )

    def mark_executed(self, approval_id: int, actor: Optional[Agent] = None, execution_result: Any = None) -> Approval:
        """Record that an approved action ran. Only approved → executed is allowed."""
        now = utcnow()
        result = self.db.execute(
            update(Approval)
            .where(Approval.id == approval_id, Approval.status == ApprovalStatus.APPROVED.value)
            .values(
                status=ApprovalStatus.EXECUTED.value,
                executed_at=now,
                execution_result=execution_result,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            approval = self.get_or_404(approval_id)
            raise InvalidStateError(
                f"Only approved approvals can be executed (approval {approval_id} is {approval.status})"
            )

        approval = self.get_or_404(approval_id)
        self.activities.append(
            "approval_executed",
            actor=actor if actor is not None else approval.requested_by_agent_id,
            details={"approval_id": approval.id, "action_type": approval.action_type},
            task_id=approval.related_task_id,
        )
        self.db.commit()
        logger.info(f"[Approvals] Approval {approval_id} executed", extra={"approval_id": approval_id})
        return approval

    # ========== Queries ==========

    def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[ApprovalResponse]:
        """Approvals newest first, optionally filtered by status."""
        query = self.db.query(Approval)
        if status:
            status = getattr(status, "value", status)
            query = query.filter(Approval.status == status)
        rows = newest_first(query, Approval).limit(clamp_limit(limit)).all()
        return self.enrich(rows)

    def get(self, approval_id: int) -> ApprovalResponse:
        return self.enrich([self.get_or_404(approval_id)])[0]

    def stats(self) -> ApprovalStats:
        counts = {s.value: 0 for s in ApprovalStatus}
        rows = self.db.query(Approval.status, func.count(Approval.id)).group_by(Approval.status).all()
        for status, count in rows:
            counts[status] = count
        return ApprovalStats(**counts, total=sum(counts.values()))

    def enrich(self, rows: List[Approval]) -> List[ApprovalResponse]:
        """Attach requester display names and related task titles."""
        agent_ids = {r.requested_by_agent_id for r in rows if r.requested_by_agent_id is not None}
        task_ids = {r.related_task_id for r in rows if r.related_task_id is not None}

        names = {}
        if agent_ids:
            names = dict(self.db.query(Agent.id, Agent.name).filter(Agent.id.in_(agent_ids)).all())
        titles = {}
        if task_ids:
            titles = dict(self.db.query(Task.id, Task.title).filter(Task.id.in_(task_ids)).all())

        enriched = []
        for row in rows:
            item = ApprovalResponse.model_validate(row)
            item.requested_by_name = names.get(row.requested_by_agent_id, SYSTEM_ACTOR_NAME)
            item.task_title = titles.get(row.related_task_id)
            enriched.append(item)
        return enriched
