"""
Version Manager - immutable history for deliverables.

Every mutating call on a deliverable goes through ``commit_version``: it
inserts the DeliverableVersion row numbered ``observed + 1`` and patches the
deliverable with a compare-and-swap on the observed version, both in the
caller's transaction. Two writers racing on the same deliverable cannot both
win: the loser either hits the unique (deliverable_id, version) constraint
or patches zero rows, and gets a VersionConflictError after a rollback.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mission_control.errors import NotFoundError, VersionConflictError
from mission_control.models.deliverable import Deliverable, DeliverableVersion
from mission_control.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class VersionReport:
    """History inconsistencies found for one deliverable."""
    deliverable_id: int
    current_version: int
    orphaned: List[int] = field(default_factory=list)  # rows above the counter
    missing: List[int] = field(default_factory=list)   # gaps in 1..current

    @property
    def is_consistent(self) -> bool:
        return not self.orphaned and not self.missing


class VersionManager:
    """Records version snapshots and bumps the deliverable counter."""

    def __init__(self, db: Session):
        self.db = db

    def record_version(
        self,
        deliverable_id: int,
        content: Optional[str],
        structured_data: Any,
        edited_by: str,
        change_summary: Optional[str],
        created_at: Optional[datetime] = None,
    ) -> DeliverableVersion:
        """
        Insert the snapshot row numbered current version + 1.

        Raises NotFoundError before writing anything if the deliverable is
        missing. The caller is responsible for bumping the counter; use
        ``commit_version`` to do both under one compare-and-swap.
        """
        deliverable = self.db.get(Deliverable, deliverable_id)
        if deliverable is None:
            raise NotFoundError("Deliverable", deliverable_id)
        return self._insert_snapshot(
            deliverable, deliverable.version + 1, content, structured_data,
            edited_by, change_summary, created_at or utcnow(),
        )

    def commit_version(
        self,
        deliverable: Deliverable,
        changes: Dict[str, Any],
        snapshot_content: Optional[str],
        snapshot_structured: Any,
        edited_by: str,
        change_summary: str,
    ) -> int:
        """
        Snapshot, then patch ``changes`` + version + updated_at with CAS.

        Does not commit. Returns the new version number.
        """
        observed = deliverable.version
        new_version = observed + 1
        now = utcnow()

        self._insert_snapshot(
            deliverable, new_version, snapshot_content, snapshot_structured,
            edited_by, change_summary, now,
        )

        result = self.db.execute(
            update(Deliverable)
            .where(Deliverable.id == deliverable.id, Deliverable.version == observed)
            .values(**changes, version=new_version, updated_at=now)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            self.db.rollback()
            logger.warning(
                f"[Versioning] CAS lost on deliverable {deliverable.id} at version {observed}"
            )
            raise VersionConflictError(deliverable.id, observed)

        return new_version

    def _insert_snapshot(
        self,
        deliverable: Deliverable,
        version: int,
        content: Optional[str],
        structured_data: Any,
        edited_by: str,
        change_summary: Optional[str],
        created_at: datetime,
    ) -> DeliverableVersion:
        snapshot = DeliverableVersion(
            deliverable_id=deliverable.id,
            version=version,
            content=content,
            structured_data=structured_data,
            edited_by=edited_by,
            change_summary=change_summary,
            created_at=created_at,
        )
        self.db.add(snapshot)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning(
                f"[Versioning] Version {version} of deliverable {deliverable.id} already exists"
            )
            raise VersionConflictError(deliverable.id, version - 1)
        return snapshot

    # ========== History ==========

    def history(self, deliverable_id: int, limit: Optional[int] = None) -> List[DeliverableVersion]:
        """Version rows newest first."""
        query = self.db.query(DeliverableVersion).filter(
            DeliverableVersion.deliverable_id == deliverable_id
        ).order_by(DeliverableVersion.version.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    # ========== Repair ==========

    def find_inconsistencies(self, deliverable_id: Optional[int] = None) -> List[VersionReport]:
        """
        Compare each deliverable's counter with its version rows.

        Orphans are rows numbered above the counter (a snapshot whose owning
        patch never landed); gaps are numbers in 1..counter with no row.
        """
        deliverables = self.db.query(Deliverable.id, Deliverable.version)
        versions = self.db.query(DeliverableVersion.deliverable_id, DeliverableVersion.version)
        if deliverable_id is not None:
            deliverables = deliverables.filter(Deliverable.id == deliverable_id)
            versions = versions.filter(DeliverableVersion.deliverable_id == deliverable_id)

        present: Dict[int, set] = {}
        for owner_id, number in versions.all():
            present.setdefault(owner_id, set()).add(number)

        reports = []
        for owner_id, current in deliverables.order_by(Deliverable.id).all():
            numbers = present.get(owner_id, set())
            report = VersionReport(
                deliverable_id=owner_id,
                current_version=current,
                orphaned=sorted(n for n in numbers if n > current),
                missing=sorted(set(range(1, current + 1)) - numbers),
            )
            if not report.is_consistent:
                reports.append(report)
        return reports

    def repair(self, dry_run: bool = False) -> List[VersionReport]:
        """
        Delete orphaned version rows. Gaps are reported, never back-filled:
        the superseded content is gone and must not be invented.
        """
        reports = self.find_inconsistencies()
        orphan_count = sum(len(r.orphaned) for r in reports)
        if dry_run or orphan_count == 0:
            logger.info(f"[Versioning] Repair scan: {len(reports)} inconsistent deliverables, {orphan_count} orphans")
            return reports

        for report in reports:
            if report.orphaned:
                self.db.query(DeliverableVersion).filter(
                    DeliverableVersion.deliverable_id == report.deliverable_id,
                    DeliverableVersion.version.in_(report.orphaned),
                ).delete(synchronize_session=False)
            if report.missing:
                logger.warning(
                    f"[Versioning] Deliverable {report.deliverable_id} is missing versions {report.missing}"
                )
        self.db.commit()
        logger.info(f"[Versioning] Repair removed {orphan_count} orphaned version rows")
        return reports
