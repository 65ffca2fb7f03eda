"""
Deliverable Service - lifecycle of versioned documents.

Every mutation (update, status change, archive) runs the same steps in one
transaction: reload the deliverable, snapshot it through the VersionManager,
patch it under compare-and-swap, append an activity, commit. A lost CAS race
is retried on fresh state up to VERSION_CONFLICT_RETRIES times.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mission_control.config import settings
from mission_control.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    VersionConflictError,
)
from mission_control.models.agent import Agent
from mission_control.models.deliverable import (
    Deliverable,
    DeliverableStatus,
    DeliverableType,
    DeliverableVersion,
)
from mission_control.models.task import Task
from mission_control.schemas.deliverable import (
    DeliverableCreate,
    DeliverableDetail,
    DeliverableResponse,
    DeliverableStats,
    DeliverableVersionResponse,
    TransitionResponse,
)
from mission_control.services import workflow
from mission_control.services.activity_service import ActivityService
from mission_control.services.pagination import Page, clamp_limit, newest_first, paginate
from mission_control.services.versioning import VersionManager
from mission_control.utils.clock import utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "title",
    "content",
    "content_format",
    "structured_data",
    "file_url",
    "file_type",
    "file_size",
    "status",
)
REQUIRED_FIELDS = ("title", "content_format", "status")

BY_TASK_LIMIT = 50
BY_AGENT_LIMIT = 50
SEARCH_DEFAULT_LIMIT = 20

# Compound indexes, most selective first; see Deliverable.__table_args__
COMPOUND_INDEXES = (
    ("ix_deliverables_squad_status", ("squad", "status")),
    ("ix_deliverables_squad_type", ("squad", "type")),
)
SINGLE_INDEXES = (
    ("ix_deliverables_squad", "squad"),
    ("ix_deliverables_status", "status"),
    ("ix_deliverables_type", "type"),
)


def plan_list_filters(filters: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """
    Pick the index a filtered list is served from.

    A compound index wins when both of its fields are supplied; otherwise the
    first single-field index with a value is used. Dimensions the index does
    not cover are returned as ``residual`` filters.
    """
    supplied = {k: v for k, v in filters.items() if v}
    for name, columns in COMPOUND_INDEXES:
        if all(c in supplied for c in columns):
            residual = {k: v for k, v in supplied.items() if k not in columns}
            return {"index": name, "indexed": {c: supplied[c] for c in columns}, "residual": residual}
    for name, column in SINGLE_INDEXES:
        if column in supplied:
            residual = {k: v for k, v in supplied.items() if k != column}
            return {"index": name, "indexed": {column: supplied[column]}, "residual": residual}
    return {"index": None, "indexed": {}, "residual": {}}


class DeliverableService:
    """Service for deliverable operations."""

    def __init__(self, db: Session):
        self.db = db
        self.versions = VersionManager(db)
        self.activities = ActivityService(db)

    # ========== Queries ==========

    def get_by_id(self, deliverable_id: int) -> Optional[Deliverable]:
        """Get deliverable by ID, always reading fresh state."""
        return self.db.get(Deliverable, deliverable_id, populate_existing=True)

    def get_or_404(self, deliverable_id: int) -> Deliverable:
        deliverable = self.get_by_id(deliverable_id)
        if deliverable is None:
            raise NotFoundError("Deliverable", deliverable_id)
        return deliverable

    def list(
        self,
        squad: Optional[str] = None,
        status: Optional[str] = None,
        type: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page:
        """List deliverables newest first with optional squad/status/type filters."""
        if status:
            status = workflow.parse_status(status)
        if type:
            type = _parse_type(type)

        plan = plan_list_filters({"squad": squad, "status": status, "type": type})
        logger.debug(f"[Deliverables] list via {plan['index'] or 'full scan'}, residual={plan['residual']}")

        query = self.db.query(Deliverable)
        for column, value in {**plan["indexed"], **plan["residual"]}.items():
            query = query.filter(getattr(Deliverable, column) == value)

        page = paginate(query, Deliverable, cursor, limit)
        page.items = [self.to_response(d) for d in page.items]
        return page

    def get(self, deliverable_id: int) -> DeliverableDetail:
        """Deliverable with creator name, recent versions and available transitions."""
        deliverable = self.get_or_404(deliverable_id)
        return DeliverableDetail(
            **self.to_response(deliverable).model_dump(),
            versions=[
                DeliverableVersionResponse.model_validate(v)
                for v in self.versions.history(deliverable.id, limit=settings.VERSION_HISTORY_LIMIT)
            ],
            transitions=[
                TransitionResponse.model_validate(t)
                for t in workflow.available_transitions(deliverable.status)
            ],
        )

    def get_versions(self, deliverable_id: int) -> List[DeliverableVersion]:
        """Full version history, newest first."""
        self.get_or_404(deliverable_id)
        return self.versions.history(deliverable_id)

    def search(
        self,
        query: str,
        squad: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[DeliverableResponse]:
        """
        Case-insensitive substring match on title or content.

        Only the newest SEARCH_SCAN_LIMIT deliverables are scanned, so older
        matches are not found.
        """
        needle = (query or "").strip().lower()
        if not needle:
            raise ValidationError("Search query must not be empty")

        candidates = self.db.query(Deliverable)
        if squad:
            candidates = candidates.filter(Deliverable.squad == squad)
        candidates = newest_first(candidates, Deliverable).limit(settings.SEARCH_SCAN_LIMIT).all()

        matches = [
            d for d in candidates
            if needle in d.title.lower() or (d.content and needle in d.content.lower())
        ]
        return [self.to_response(d) for d in matches[:clamp_limit(limit, SEARCH_DEFAULT_LIMIT)]]

    def by_task(self, task_id: int) -> List[DeliverableResponse]:
        """Get deliverables attached to a task."""
        q = self.db.query(Deliverable).filter(Deliverable.task_id == task_id)
        return [self.to_response(d) for d in newest_first(q, Deliverable).limit(BY_TASK_LIMIT).all()]

    def by_agent(self, agent_id: int) -> List[DeliverableResponse]:
        """Get deliverables created by an agent."""
        q = self.db.query(Deliverable).filter(Deliverable.created_by_agent_id == agent_id)
        return [self.to_response(d) for d in newest_first(q, Deliverable).limit(BY_AGENT_LIMIT).all()]

    def stats(self, squad: Optional[str] = None) -> DeliverableStats:
        """Counts by status and by type; every enum value is present."""
        by_status = {s.value: 0 for s in DeliverableStatus}
        by_type = {t.value: 0 for t in DeliverableType}

        base = self.db.query(Deliverable)
        if squad:
            base = base.filter(Deliverable.squad == squad)

        for value, count in base.with_entities(Deliverable.status, func.count(Deliverable.id)).group_by(Deliverable.status):
            by_status[value] = count
        for value, count in base.with_entities(Deliverable.type, func.count(Deliverable.id)).group_by(Deliverable.type):
            by_type[value] = count

        return DeliverableStats(total=sum(by_status.values()), by_status=by_status, by_type=by_type)

    # ========== Mutations ==========

    def create(self, actor: Agent, data: DeliverableCreate) -> Deliverable:
        """Create a deliverable in draft at version 1, with its first version row."""
        if data.task_id is not None and self.db.get(Task, data.task_id) is None:
            raise NotFoundError("Task", data.task_id)

        now = utcnow()
        deliverable = Deliverable(
            title=data.title,
            type=_enum_value(data.type),
            squad=_enum_value(data.squad),
            created_by_agent_id=actor.id,
            task_id=data.task_id,
            content=data.content,
            content_format=_enum_value(data.content_format),
            structured_data=data.structured_data,
            file_url=data.file_url,
            file_type=data.file_type,
            file_size=data.file_size,
            status=DeliverableStatus.DRAFT.value,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.db.add(deliverable)
        self.db.flush()

        self.db.add(DeliverableVersion(
            deliverable_id=deliverable.id,
            version=1,
            content=data.content,
            structured_data=data.structured_data,
            edited_by=actor.name,
            change_summary="Initial creation",
            created_at=now,
        ))
        self.activities.append(
            "created_deliverable",
            actor=actor,
            details={"deliverable_id": deliverable.id, "title": data.title, "type": deliverable.type},
            task_id=data.task_id,
            squad=deliverable.squad,
        )
        self.db.commit()
        self.db.refresh(deliverable)

        logger.info(
            f"[Deliverables] Created deliverable {deliverable.id} '{deliverable.title}' by {actor.name}",
            extra={"deliverable_id": deliverable.id, "agent_id": actor.id},
        )
        return deliverable

    def update(
        self,
        actor: Agent,
        deliverable_id: int,
        changes: Dict[str, Any],
        change_summary: Optional[str] = None,
    ) -> int:
        """
        Apply a partial update and return the new version.

        The version row records the content being superseded, i.e. the
        state *before* this edit. One call bumps the version by exactly one
        no matter how many fields change.
        """
        changes = self._clean_changes(changes)

        def apply(deliverable: Deliverable) -> int:
            previous_status = deliverable.status
            new_status = changes.get("status")
            if new_status and new_status != previous_status and settings.ENFORCE_STATUS_TRANSITIONS:
                workflow.ensure_transition(previous_status, new_status)

            new_version = self.versions.commit_version(
                deliverable,
                changes,
                snapshot_content=deliverable.content,
                snapshot_structured=deliverable.structured_data,
                edited_by=actor.name,
                change_summary=change_summary or "Content updated",
            )

            details = {
                "deliverable_id": deliverable.id,
                "title": changes.get("title", deliverable.title),
                "version": new_version,
            }
            if new_status and new_status != previous_status:
                details["status_change"] = {"from": previous_status, "to": new_status}
            self.activities.append(
                "updated_deliverable",
                actor=actor,
                details=details,
                task_id=deliverable.task_id,
                squad=deliverable.squad,
            )
            return new_version

        return self._mutate(deliverable_id, apply)

    def update_status(
        self,
        actor: Agent,
        deliverable_id: int,
        status: str,
        change_summary: Optional[str] = None,
    ) -> int:
        """
        Move a deliverable through the workflow and return the new version.

        Content is unchanged but a version row is still written: status
        changes belong in the history.
        """
        status = workflow.parse_status(status)

        def apply(deliverable: Deliverable) -> int:
            previous = deliverable.status
            if settings.ENFORCE_STATUS_TRANSITIONS:
                workflow.ensure_transition(previous, status)

            new_version = self.versions.commit_version(
                deliverable,
                {"status": status},
                snapshot_content=deliverable.content,
                snapshot_structured=deliverable.structured_data,
                edited_by=actor.name,
                change_summary=change_summary or f"Status changed from {previous} to {status}",
            )
            self.activities.append(
                "deliverable_status_changed",
                actor=actor,
                details={
                    "deliverable_id": deliverable.id,
                    "title": deliverable.title,
                    "version": new_version,
                    "status_change": {"from": previous, "to": status},
                },
                task_id=deliverable.task_id,
                squad=deliverable.squad,
            )
            return new_version

        return self._mutate(deliverable_id, apply)

    def archive(self, actor: Agent, deliverable_id: int) -> int:
        """
        Soft delete: move to archived from any other status.

        Archive is allowed from every live status, unlike a regular
        transition, and is recorded as a version.
        """
        def apply(deliverable: Deliverable) -> int:
            previous = deliverable.status
            if previous == DeliverableStatus.ARCHIVED.value:
                raise InvalidStateError(f"Deliverable {deliverable.id} is already archived")

            new_version = self.versions.commit_version(
                deliverable,
                {"status": DeliverableStatus.ARCHIVED.value},
                snapshot_content=deliverable.content,
                snapshot_structured=deliverable.structured_data,
                edited_by=actor.name,
                change_summary=f"Archived from status: {previous}",
            )
            self.activities.append(
                "archived_deliverable",
                actor=actor,
                details={"deliverable_id": deliverable.id, "title": deliverable.title, "from_status": previous},
                task_id=deliverable.task_id,
                squad=deliverable.squad,
            )
            return new_version

        return self._mutate(deliverable_id, apply)

    def remove(self, actor: Agent, deliverable_id: int) -> None:
        """Hard delete a deliverable and all of its versions. Leads only."""
        if not actor.is_lead:
            logger.warning(
                f"[Deliverables] {actor.name} ({actor.level}) attempted hard delete of {deliverable_id}",
                extra={"deliverable_id": deliverable_id, "agent_id": actor.id},
            )
            raise PermissionDeniedError("Only lead agents can permanently delete deliverables")

        deliverable = self.get_or_404(deliverable_id)
        removed_versions = self.db.query(DeliverableVersion).filter(
            DeliverableVersion.deliverable_id == deliverable.id
        ).delete(synchronize_session=False)

        self.activities.append(
            "deleted_deliverable",
            actor=actor,
            details={"deliverable_id": deliverable.id, "title": deliverable.title, "versions_removed": removed_versions},
            task_id=deliverable.task_id,
            squad=deliverable.squad,
        )
        self.db.delete(deliverable)
        self.db.commit()
        logger.info(
            f"[Deliverables] Deleted deliverable {deliverable_id} and {removed_versions} versions",
            extra={"deliverable_id": deliverable_id, "agent_id": actor.id},
        )

    # ========== Helpers ==========

    def to_response(self, deliverable: Deliverable) -> DeliverableResponse:
        """Attach the creator's current display name."""
        response = DeliverableResponse.model_validate(deliverable)
        agent = deliverable.created_by
        response.created_by_name = agent.name if agent else "Unknown Agent"
        response.created_by_role = agent.role if agent else "Unknown"
        return response

    def _mutate(self, deliverable_id: int, apply: Callable[[Deliverable], int]) -> int:
        attempts = max(1, settings.VERSION_CONFLICT_RETRIES)
        for attempt in range(1, attempts + 1):
            deliverable = self.get_or_404(deliverable_id)
            try:
                new_version = apply(deliverable)
            except VersionConflictError:
                if attempt == attempts:
                    raise
                logger.warning(
                    f"[Deliverables] Version conflict on {deliverable_id}, retrying ({attempt}/{attempts})",
                    extra={"deliverable_id": deliverable_id},
                )
                continue
            except Exception:
                self.db.rollback()
                raise
            self.db.commit()
            logger.info(
                f"[Deliverables] Deliverable {deliverable_id} now at version {new_version}",
                extra={"deliverable_id": deliverable_id},
            )
            return new_version

    @staticmethod
    def _clean_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        if not changes:
            raise ValidationError("No fields to update")

        cleaned = {}
        for key, value in changes.items():
            if key in REQUIRED_FIELDS and value is None:
                raise ValidationError(f"Field '{key}' cannot be null")
            cleaned[key] = _enum_value(value)
        if "status" in cleaned:
            cleaned["status"] = workflow.parse_status(cleaned["status"])
        return cleaned


def _enum_value(value):
    return getattr(value, "value", value)


def _parse_type(value: str) -> str:
    value = _enum_value(value)
    allowed = [t.value for t in DeliverableType]
    if value not in allowed:
        raise ValidationError(f"Invalid type '{value}'. Expected one of: {', '.join(allowed)}")
    return value
