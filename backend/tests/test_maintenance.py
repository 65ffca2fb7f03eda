"""
Tests for the maintenance CLI.
"""
import json

import pytest

from mission_control.maintenance import main
from mission_control.models.activity import Activity
from mission_control.models.deliverable import DeliverableVersion
from mission_control.schemas.deliverable import DeliverableCreate
from mission_control.services.deliverable_service import DeliverableService
from mission_control.utils.clock import days_ago


def run(db, capsys, *argv):
    code = main(list(argv), session_factory=lambda: db)
    out = capsys.readouterr()
    return code, out


@pytest.fixture
def orphaned(db, agent):
    deliverable = DeliverableService(db).create(
        agent, DeliverableCreate(title="Brief", type="brief", squad="dune")
    )
    db.add(DeliverableVersion(deliverable_id=deliverable.id, version=5, edited_by="ghost"))
    db.commit()
    return deliverable


def test_repair_versions_dry_run(db, capsys, orphaned):
    code, out = run(db, capsys, "repair-versions", "--dry-run")
    assert code == 0
    result = json.loads(out.out)
    assert result["dry_run"] is True
    assert result["orphans_removed"] == 0
    assert result["deliverables"][0]["orphaned"] == [5]
    assert db.query(DeliverableVersion).count() == 2


def test_repair_versions(db, capsys, orphaned):
    code, out = run(db, capsys, "repair-versions")
    assert code == 0
    assert json.loads(out.out)["orphans_removed"] == 1
    assert db.query(DeliverableVersion).count() == 1


def test_cleanup_activities(db, capsys):
    db.add(Activity(action="old", agent_name="System", created_at=days_ago(90)))
    db.commit()

    code, out = run(db, capsys, "cleanup-activities", "--days", "30")
    assert code == 0
    assert json.loads(out.out) == {"deleted": 1, "older_than_days": 30.0}


def test_cleanup_negative_days_fails(db, capsys):
    code, out = run(db, capsys, "cleanup-activities", "--days", "-1")
    assert code == 1
    assert json.loads(out.err)["error"] == "validation_error"


def test_stats(db, capsys, orphaned):
    code, out = run(db, capsys, "stats")
    assert code == 0
    result = json.loads(out.out)
    assert result["deliverables"]["total"] == 1
    assert result["approvals"]["total"] == 0
