"""
Activity Service - append-only audit/event feed.

Usage:
    from mission_control.services.activity_service import ActivityService

    ActivityService(db).append(
        "created_deliverable",
        actor=agent,
        details={"deliverable_id": 12, "title": "Q1 Audit"},
        task_id=4,
    )
    db.commit()

``append`` only adds the row to the session; callers commit it together with
the mutation it describes so the two land in one transaction.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from mission_control.config import settings
from mission_control.errors import ValidationError
from mission_control.models.activity import Activity
from mission_control.models.agent import Agent
from mission_control.schemas.activity import ActivityResponse
from mission_control.services.pagination import Page, clamp_limit, newest_first, paginate
from mission_control.utils.clock import days_ago

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_NAME = "System"


class ActivityService:
    """Writes and reads the activity feed."""

    def __init__(self, db: Session):
        self.db = db

    # ========== Writes ==========

    def append(
        self,
        action: str,
        actor: Union[Agent, int, None] = None,
        details: Optional[Dict[str, Any]] = None,
        task_id: Optional[int] = None,
        squad: Optional[str] = None,
    ) -> Activity:
        """
        Add one activity row to the session.

        The actor's name and role are captured now. An absent or unknown
        actor is recorded as "System".
        """
        agent = self._resolve_actor(actor)
        agent_id = agent.id if agent else (actor if isinstance(actor, int) else None)

        activity = Activity(
            agent_id=agent_id,
            agent_name=agent.name if agent else SYSTEM_ACTOR_NAME,
            agent_role=agent.role if agent else None,
            action=action,
            details=details,
            task_id=task_id,
            squad=squad or (agent.squad if agent else None),
        )
        self.db.add(activity)
        self.db.flush()
        logger.debug(f"[Activity] {action} by {activity.agent_name} (activity {activity.id})")
        return activity

    def cleanup(self, older_than_days: float) -> int:
        """
        Delete every activity older than the threshold and return the count.

        This is the only operation that removes audit rows. Irreversible.
        """
        max_days = settings.ACTIVITY_RETENTION_MAX_DAYS
        # NaN fails both comparisons
        if older_than_days is None or not (0 <= older_than_days <= max_days):
            raise ValidationError(f"older_than_days must be between 0 and {max_days}")

        try:
            cutoff = days_ago(older_than_days)
        except OverflowError:
            raise ValidationError(f"older_than_days must be between 0 and {max_days}")
        deleted = (
            self.db.query(Activity)
            .filter(Activity.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"[Activity] Retention cleanup removed {deleted} rows older than {cutoff.isoformat()}")
        return deleted

    # ========== Queries ==========

    def list(self, squad: Optional[str] = None, limit: Optional[int] = None) -> List[ActivityResponse]:
        """Latest activities, newest first, optionally for one squad."""
        query = self._scoped(squad)
        rows = newest_first(query, Activity).limit(clamp_limit(limit)).all()
        return self.enrich(rows)

    def paginated(
        self,
        squad: Optional[str] = None,
        cursor: Optional[str] = None,
        num_items: Optional[int] = None,
    ) -> Page:
        """Cursor-paginated feed for infinite scroll."""
        return self._enriched_page(paginate(self._scoped(squad), Activity, cursor, num_items))

    def by_agent(self, agent_id: int, cursor: Optional[str] = None, num_items: Optional[int] = None) -> Page:
        query = self.db.query(Activity).filter(Activity.agent_id == agent_id)
        return self._enriched_page(paginate(query, Activity, cursor, num_items))

    def by_task(self, task_id: int, cursor: Optional[str] = None, num_items: Optional[int] = None) -> Page:
        query = self.db.query(Activity).filter(Activity.task_id == task_id)
        return self._enriched_page(paginate(query, Activity, cursor, num_items))

    # ========== Projection ==========

    def enrich(self, rows: Iterable[Activity]) -> List[ActivityResponse]:
        """
        Attach display names to rows written before names were denormalized.

        Best-effort read-time repair: the live agent table fills the gap in
        the response only, the stored row is left as it was written.
        """
        rows = list(rows)
        missing_ids = {r.agent_id for r in rows if not r.agent_name and r.agent_id is not None}
        agents = {}
        if missing_ids:
            agents = {
                a.id: a for a in self.db.query(Agent).filter(Agent.id.in_(missing_ids)).all()
            }

        enriched = []
        for row in rows:
            item = ActivityResponse.model_validate(row)
            if not row.agent_name:
                agent = agents.get(row.agent_id)
                item.agent_name = agent.name if agent else SYSTEM_ACTOR_NAME
                item.agent_role = agent.role if agent else None
            enriched.append(item)
        return enriched

    def _enriched_page(self, page: Page) -> Page:
        page.items = self.enrich(page.items)
        return page

    def _scoped(self, squad: Optional[str]):
        query = self.db.query(Activity)
        if squad:
            query = query.filter(Activity.squad == squad)
        return query

    def _resolve_actor(self, actor: Union[Agent, int, None]) -> Optional[Agent]:
        if actor is None:
            return None
        if isinstance(actor, Agent):
            return actor
        return self.db.get(Agent, actor)
