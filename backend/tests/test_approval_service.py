"""
Tests for ApprovalService: the pending → decided → executed gate.
"""
import pytest

from mission_control.errors import InvalidStateError, NotFoundError, ValidationError
from mission_control.models.activity import Activity
from mission_control.models.approval import Approval
from mission_control.services.approval_service import ApprovalService


@pytest.fixture
def service(db):
    return ApprovalService(db)


@pytest.fixture
def pending(service, agent, task):
    return service.create(
        "send_email",
        payload={"to": "press@example.com"},
        requested_by_agent_id=agent.id,
        related_task_id=task.id,
    )


class TestCreate:

    def test_starts_pending(self, pending):
        assert pending.status == "pending"
        assert pending.decided_by is None
        assert pending.payload == {"to": "press@example.com"}

    def test_system_request_without_agent(self, service):
        approval = service.create("rotate_keys")
        assert approval.requested_by_agent_id is None
        assert service.get(approval.id).requested_by_name == "System"

    def test_unknown_requester(self, service):
        with pytest.raises(NotFoundError):
            service.create("send_email", requested_by_agent_id=404)

    def test_unknown_task(self, service, agent):
        with pytest.raises(NotFoundError):
            service.create("send_email", requested_by_agent_id=agent.id, related_task_id=404)


class TestDecide:

    def test_approve(self, db, service, pending):
        service.decide(pending.id, "approved", "Rusty", "Looks good")

        approval = service.get_by_id(pending.id)
        assert approval.status == "approved"
        assert approval.decided_by == "Rusty"
        assert approval.decision_note == "Looks good"
        assert approval.decided_at is not None

        activity = db.query(Activity).filter(Activity.action == "approval_approved").one()
        assert activity.details == {
            "approval_id": pending.id,
            "action_type": "send_email",
            "decided_by": "Rusty",
        }
        assert activity.agent_name == "Linus"

    def test_second_decision_rejected(self, service, pending):
        service.decide(pending.id, "approved", "Rusty")
        with pytest.raises(InvalidStateError, match="already decided"):
            service.decide(pending.id, "rejected", "Basher")

        approval = service.get_by_id(pending.id)
        assert approval.status == "approved"
        assert approval.decided_by == "Rusty"

    def test_no_activity_without_requester(self, db, service):
        approval = service.create("rotate_keys")
        service.decide(approval.id, "rejected", "Rusty")
        assert db.query(Activity).filter(Activity.action.like("approval_%")).count() == 0

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.decide(404, "approved", "Rusty")

    def test_invalid_decision(self, service, pending):
        with pytest.raises(ValidationError):
            service.decide(pending.id, "maybe", "Rusty")


class TestMarkExecuted:

    def test_after_approval(self, db, service, pending, lead):
        service.decide(pending.id, "approved", "Rusty")
        approval = service.mark_executed(pending.id, actor=lead, execution_result={"sent": True})

        assert approval.status == "executed"
        assert approval.executed_at is not None
        assert approval.execution_result == {"sent": True}
        assert approval.decided_by == "Rusty"
        assert db.query(Activity).filter(Activity.action == "approval_executed").one().agent_name == "Danny"

    @pytest.mark.parametrize("decision", [None, "rejected"])
    def test_requires_approved(self, service, pending, decision):
        if decision:
            service.decide(pending.id, decision, "Rusty")
        with pytest.raises(InvalidStateError):
            service.mark_executed(pending.id)

    def test_executed_cannot_be_decided(self, service, pending):
        service.decide(pending.id, "approved", "Rusty")
        service.mark_executed(pending.id)
        with pytest.raises(InvalidStateError):
            service.decide(pending.id, "rejected", "Basher")


class TestReads:

    def test_list_enriched(self, service, pending):
        items = service.list()
        assert len(items) == 1
        assert items[0].requested_by_name == "Linus"
        assert items[0].task_title == "Q3 launch plan"

    def test_list_by_status(self, service, pending):
        other = service.create("post_tweet")
        service.decide(other.id, "rejected", "Rusty")
        assert [a.id for a in service.list(status="pending")] == [pending.id]
        assert [a.id for a in service.list(status="rejected")] == [other.id]

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get(404)

    def test_stats(self, service, pending):
        second = service.create("post_tweet")
        third = service.create("archive_board")
        service.decide(second.id, "approved", "Rusty")
        service.decide(third.id, "rejected", "Rusty")
        service.mark_executed(second.id)

        stats = service.stats()
        assert stats.pending == 1
        assert stats.approved == 0
        assert stats.rejected == 1
        assert stats.executed == 1
        assert stats.total == 3

    def test_requester_name_survives_agent_removal(self, db, service, pending, agent):
        db.delete(agent)
        db.commit()
        assert db.get(Approval, pending.id) is not None
        assert service.get(pending.id).requested_by_name == "System"
