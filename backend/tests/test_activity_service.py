"""
Tests for ActivityService: append, read-time name backfill, retention.
"""
import pytest

from mission_control.config import settings
from mission_control.errors import ValidationError
from mission_control.models.activity import Activity
from mission_control.services.activity_service import ActivityService
from mission_control.utils.clock import days_ago


@pytest.fixture
def service(db):
    return ActivityService(db)


class TestAppend:

    def test_denormalizes_actor(self, db, service, agent):
        activity = service.append("drafted_outline", actor=agent, details={"words": 400})
        db.commit()
        assert activity.agent_name == "Linus"
        assert activity.agent_role == "Writer"
        assert activity.squad == "oceans-11"

    def test_actor_by_id(self, db, service, agent):
        activity = service.append("pinged", actor=agent.id)
        assert activity.agent_name == "Linus"

    def test_absent_actor_is_system(self, service):
        activity = service.append("nightly_sync")
        assert activity.agent_name == "System"
        assert activity.agent_id is None

    def test_unknown_actor_is_system(self, service):
        activity = service.append("pinged", actor=404)
        assert activity.agent_name == "System"
        assert activity.agent_id == 404

    def test_name_kept_after_rename(self, db, service, agent):
        service.append("drafted_outline", actor=agent)
        db.commit()
        agent.name = "Linus Caldwell"
        db.commit()
        assert service.list()[0].agent_name == "Linus"


class TestReads:

    def test_backfills_legacy_rows(self, db, service, agent):
        db.add(Activity(agent_id=agent.id, action="legacy_event"))
        db.add(Activity(agent_id=404, action="orphan_event"))
        db.commit()

        names = {a.action: a.agent_name for a in service.list()}
        assert names == {"legacy_event": "Linus", "orphan_event": "System"}

        # Read-time only, the stored row is untouched
        stored = db.query(Activity).filter(Activity.action == "legacy_event").one()
        assert stored.agent_name is None

    def test_squad_filter(self, db, service, agent):
        service.append("a", actor=agent)
        service.append("b", actor=agent, squad="dune")
        db.commit()
        assert [a.action for a in service.list(squad="dune")] == ["b"]

    def test_list_limit_capped(self, db, service):
        db.add_all([Activity(action=f"e{i}", agent_name="System") for i in range(105)])
        db.commit()
        assert len(service.list(limit=500)) == 100

    def test_by_agent_and_task(self, db, service, agent, lead, task):
        service.append("a", actor=agent, task_id=task.id)
        service.append("b", actor=lead, task_id=task.id)
        service.append("c", actor=lead)
        db.commit()

        assert [a.action for a in service.by_agent(lead.id).items] == ["c", "b"]
        assert [a.action for a in service.by_task(task.id).items] == ["b", "a"]

    def test_paginated(self, db, service):
        for i in range(3):
            service.append(f"e{i}")
        db.commit()

        first = service.paginated(num_items=2)
        assert len(first.items) == 2
        assert not first.is_done
        second = service.paginated(cursor=first.cursor, num_items=2)
        assert [a.action for a in second.items] == ["e0"]
        assert second.is_done


class TestCleanup:

    def test_removes_only_old_rows(self, db, service):
        db.add(Activity(action="ancient", agent_name="System", created_at=days_ago(40)))
        db.add(Activity(action="recent", agent_name="System", created_at=days_ago(1)))
        db.commit()

        assert service.cleanup(30) == 1
        assert [a.action for a in db.query(Activity).all()] == ["recent"]

    def test_zero_days_clears_everything_older_than_now(self, db, service):
        db.add(Activity(action="earlier", agent_name="System", created_at=days_ago(0.01)))
        db.commit()
        assert service.cleanup(0) == 1

    def test_negative_rejected(self, service):
        with pytest.raises(ValidationError):
            service.cleanup(-1)

    def test_threshold_above_maximum_rejected(self, db, service):
        db.add(Activity(action="kept", agent_name="System", created_at=days_ago(1)))
        db.commit()

        with pytest.raises(ValidationError):
            service.cleanup(1_000_000)
        with pytest.raises(ValidationError):
            service.cleanup(float("nan"))
        assert db.query(Activity).count() == 1

    def test_maximum_threshold_accepted(self, service):
        assert service.cleanup(settings.ACTIVITY_RETENTION_MAX_DAYS) == 0

    def test_cutoff_before_min_date_rejected(self, service, monkeypatch):
        monkeypatch.setattr(settings, "ACTIVITY_RETENTION_MAX_DAYS", 10 ** 8)
        with pytest.raises(ValidationError):
            service.cleanup(10 ** 7)
