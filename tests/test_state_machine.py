"""
Proposal lifecycle tests
========================

Status leaves PENDING exactly once; afterwards every transition fails and
the row is left untouched.
"""

import pytest

from core.database.models import ChangeType, Contribution, ModerationLog, ProposalStatus
from core.errors import ForbiddenError, NotFoundError, PreconditionFailedError, ValidationError
from core.security.policy import Transition, can_transition
from core.security.principal import Principal, Role
from contributions.approval import ApprovalApplier
from contributions.service import ContributionService
from contributions.votes import VoteTally

from conftest import add_vehicle


PAYLOAD = {"make": "Rivian", "model": "R1T", "year": 2024, "range": 505}


@pytest.fixture
def service(db, staging):
    return ContributionService(db, staging)


@pytest.fixture
def applier(db, staging):
    return ApprovalApplier(db, staging)


def snapshot(db, contribution_id):
    db.expire_all()
    row = db.get(Contribution, contribution_id)
    return (row.status, row.vehicle_data, row.approved_at, row.rejected_at, row.cancelled_at, row.rejection_comment)


class TestCapabilityPolicy:
    """Role and ownership checks shared by both proposal kinds."""

    def test_owner_transitions(self):
        owner = Principal(user_id=1)
        other = Principal(user_id=2)
        proposal = Contribution(user_id=1)

        for transition in (Transition.EDIT, Transition.CANCEL, Transition.RESUBMIT):
            assert can_transition(owner, proposal, transition)
            assert not can_transition(other, proposal, transition)

    def test_vote_is_for_others_only(self):
        proposal = Contribution(user_id=1)
        assert not can_transition(Principal(user_id=1), proposal, Transition.VOTE)
        assert can_transition(Principal(user_id=2), proposal, Transition.VOTE)

    def test_decisions_need_moderator_role(self):
        proposal = Contribution(user_id=1)
        for transition in (Transition.APPROVE, Transition.REJECT):
            assert not can_transition(Principal(user_id=2), proposal, transition)
            assert can_transition(Principal(user_id=2, role=Role.MODERATOR), proposal, transition)
            assert can_transition(Principal(user_id=2, role=Role.ADMIN), proposal, transition)

    def test_self_moderation_switch(self, monkeypatch):
        from core.config.settings import settings

        moderator = Principal(user_id=1, role=Role.MODERATOR)
        proposal = Contribution(user_id=1)
        assert can_transition(moderator, proposal, Transition.APPROVE)

        monkeypatch.setattr(settings.moderation, "allow_self_moderation", False)
        assert not can_transition(moderator, proposal, Transition.APPROVE)
        assert not can_transition(moderator, proposal, Transition.REJECT)


class TestSubmitGuards:
    """Validation at submission time."""

    def test_new_submission_is_pending(self, service, alice):
        contribution = service.submit(alice, dict(PAYLOAD))
        assert contribution.status == ProposalStatus.PENDING
        assert contribution.change_type == ChangeType.NEW
        assert contribution.target_vehicle_id is None
        assert contribution.vehicle_data == PAYLOAD

    @pytest.mark.parametrize("missing", ["make", "model", "year"])
    def test_required_fields(self, service, alice, missing):
        payload = dict(PAYLOAD)
        del payload[missing]
        with pytest.raises(ValidationError):
            service.submit(alice, payload)

    def test_payload_is_not_coerced(self, service, alice):
        """A string year is rejected rather than silently converted."""
        with pytest.raises(ValidationError):
            service.submit(alice, {"make": "Rivian", "model": "R1T", "year": "2024"})

    def test_update_requires_existing_target(self, service, alice):
        with pytest.raises(NotFoundError):
            service.submit(alice, dict(PAYLOAD), ChangeType.UPDATE, target_vehicle_id=12345)

    def test_update_requires_target_id(self, service, alice):
        with pytest.raises(ValidationError):
            service.submit(alice, dict(PAYLOAD), ChangeType.UPDATE)

    def test_update_records_base_version(self, db, service, alice):
        vehicle = add_vehicle(db)
        contribution = service.submit(alice, dict(PAYLOAD), ChangeType.UPDATE, target_vehicle_id=vehicle.id)
        assert contribution.target_vehicle_id == vehicle.id
        assert contribution.base_vehicle_version == vehicle.version


class TestOwnerTransitions:
    """Edit, cancel and resubmit."""

    def test_edit_replaces_payload_wholesale(self, service, alice):
        contribution = service.submit(alice, {**PAYLOAD, "price": 73000})
        edited = service.edit(alice, contribution.id, {"make": "Rivian", "model": "R1T", "year": 2025})
        assert edited.vehicle_data == {"make": "Rivian", "model": "R1T", "year": 2025}
        assert edited.status == ProposalStatus.PENDING

    def test_edit_by_non_owner_forbidden(self, service, alice, bob):
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(ForbiddenError):
            service.edit(bob, contribution.id, dict(PAYLOAD))

    def test_edit_revalidates_update_target(self, db, service, alice):
        vehicle = add_vehicle(db)
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(NotFoundError):
            service.edit(alice, contribution.id, dict(PAYLOAD), ChangeType.UPDATE, target_vehicle_id=vehicle.id + 100)

        edited = service.edit(alice, contribution.id, dict(PAYLOAD), ChangeType.UPDATE, target_vehicle_id=vehicle.id)
        assert edited.change_type == ChangeType.UPDATE
        assert edited.target_vehicle_id == vehicle.id

    def test_cancel(self, service, alice, events):
        contribution = service.submit(alice, dict(PAYLOAD))
        cancelled, images = service.cancel(alice, contribution.id)
        assert cancelled.status == ProposalStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert images == 0
        assert "contribution.cancelled" in [e.name for e in events]

    def test_cancel_by_non_owner_forbidden(self, service, alice, bob):
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(ForbiddenError):
            service.cancel(bob, contribution.id)

    def test_resubmit_clones_rejected(self, db, service, applier, alice, moderator):
        contribution = service.submit(alice, dict(PAYLOAD))
        applier.reject(moderator, contribution.id, "Range figure needs a source")

        clone = service.resubmit(alice, contribution.id)
        assert clone.id != contribution.id
        assert clone.status == ProposalStatus.PENDING
        assert clone.vehicle_data == PAYLOAD

        db.expire_all()
        assert db.get(Contribution, contribution.id).status == ProposalStatus.REJECTED

    def test_resubmit_requires_rejected(self, service, alice):
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(PreconditionFailedError):
            service.resubmit(alice, contribution.id)


class TestMonotonicTerminalState:
    """Once terminal, nothing changes."""

    @pytest.fixture(params=["approved", "rejected", "cancelled"])
    def terminal(self, request, service, applier, alice, moderator):
        contribution = service.submit(alice, dict(PAYLOAD))
        if request.param == "approved":
            applier.approve(moderator, contribution.id)
        elif request.param == "rejected":
            applier.reject(moderator, contribution.id, "Duplicate of an existing listing")
        else:
            service.cancel(alice, contribution.id)
        return contribution.id

    def test_every_transition_fails(self, db, service, applier, terminal, alice, bob, moderator):
        before = snapshot(db, terminal)
        attempts = [
            lambda: service.edit(alice, terminal, {"make": "X", "model": "Y", "year": 2020}),
            lambda: service.cancel(alice, terminal),
            lambda: VoteTally(db).vote(bob, terminal),
            lambda: applier.approve(moderator, terminal),
            lambda: applier.reject(moderator, terminal, "Changing my mind now"),
        ]
        for attempt in attempts:
            with pytest.raises(PreconditionFailedError):
                attempt()
            assert snapshot(db, terminal) == before

    def test_decision_logged_once(self, db, terminal):
        """Only moderator decisions reach the moderation log."""
        status = db.get(Contribution, terminal).status
        logs = (
            db.query(ModerationLog)
            .filter(ModerationLog.target_type == "CONTRIBUTION", ModerationLog.target_id == terminal)
            .all()
        )
        assert len(logs) == (0 if status == ProposalStatus.CANCELLED else 1)


class TestRejectionComment:
    """Rejections need actionable feedback."""

    def test_short_comment_rejected(self, service, applier, alice, moderator):
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(ValidationError):
            applier.reject(moderator, contribution.id, "too short")
        assert service.get(contribution.id).status == ProposalStatus.PENDING

    def test_comment_is_sanitised(self, service, applier, alice, moderator):
        contribution = service.submit(alice, dict(PAYLOAD))
        rejected = applier.reject(moderator, contribution.id, "  <b>Wrong</b> battery size  ")
        assert rejected.rejection_comment == "&lt;b&gt;Wrong&lt;/b&gt; battery size"
        assert rejected.reviewed_by == moderator.user_id
        assert rejected.rejected_at is not None

    def test_member_cannot_reject(self, service, applier, alice, bob):
        contribution = service.submit(alice, dict(PAYLOAD))
        with pytest.raises(ForbiddenError):
            applier.reject(bob, contribution.id, "Not a real vehicle at all")
