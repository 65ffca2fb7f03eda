"""
Operational maintenance commands.

Usage:
    python -m mission_control.maintenance repair-versions --dry-run
    python -m mission_control.maintenance cleanup-activities --days 30
    python -m mission_control.maintenance stats
"""
import argparse
import json
import logging
import sys

from mission_control.config import settings
from mission_control.database import SessionLocal
from mission_control.errors import MissionControlError
from mission_control.logging_config import setup_logging
from mission_control.services.activity_service import ActivityService
from mission_control.services.approval_service import ApprovalService
from mission_control.services.deliverable_service import DeliverableService
from mission_control.services.versioning import VersionManager

logger = logging.getLogger(__name__)


def repair_versions(db, dry_run: bool = False) -> dict:
    reports = VersionManager(db).repair(dry_run=dry_run)
    return {
        "dry_run": dry_run,
        "inconsistent": len(reports),
        "orphans_removed": 0 if dry_run else sum(len(r.orphaned) for r in reports),
        "deliverables": [
            {
                "deliverable_id": r.deliverable_id,
                "current_version": r.current_version,
                "orphaned": r.orphaned,
                "missing": r.missing,
            }
            for r in reports
        ],
    }


def cleanup_activities(db, days: float) -> dict:
    return {"deleted": ActivityService(db).cleanup(days), "older_than_days": days}


def stats(db) -> dict:
    return {
        "deliverables": DeliverableService(db).stats().model_dump(),
        "approvals": ApprovalService(db).stats().model_dump(),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mission Control maintenance")
    commands = parser.add_subparsers(dest="command", required=True)

    repair = commands.add_parser("repair-versions", help="Remove orphaned version rows, report gaps")
    repair.add_argument("--dry-run", action="store_true", help="Report without deleting")

    cleanup = commands.add_parser("cleanup-activities", help="Delete activities older than N days")
    cleanup.add_argument("--days", type=float, default=settings.ACTIVITY_RETENTION_DAYS)

    commands.add_parser("stats", help="Deliverable and approval counts")
    return parser


def main(argv=None, session_factory=SessionLocal) -> int:
    args = build_parser().parse_args(argv)

    db = session_factory()
    try:
        if args.command == "repair-versions":
            result = repair_versions(db, dry_run=args.dry_run)
        elif args.command == "cleanup-activities":
            result = cleanup_activities(db, args.days)
        else:
            result = stats(db)
    except MissionControlError as e:
        logger.error(f"[Maintenance] {args.command} failed: {e.message}")
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1
    finally:
        db.close()

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(main())
