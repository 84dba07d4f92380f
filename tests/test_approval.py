"""
Approval applier tests
======================

Approval is a single transaction guarded by a compare-and-swap on the
PENDING status: exactly one catalog write and one credit per proposal.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config.settings import settings
from core.database import Base
from core.database.models import (
    ChangeType, Contribution, ModerationLog, ProposalStatus, User, Vehicle,
)
from core.errors import ForbiddenError, NotFoundError, PreconditionFailedError
from contributions.approval import ApprovalApplier
from contributions.service import ContributionService

from conftest import add_vehicle, make_principal
from core.security.principal import Role


def balance(db, user_id):
    db.expire_all()
    return db.get(User, user_id).app_currency_balance


@pytest.fixture
def service(db, staging):
    return ContributionService(db, staging)


@pytest.fixture
def applier(db, staging):
    return ApprovalApplier(db, staging)


class TestApproveNew:
    """NEW proposals insert a catalog row."""

    def test_inserts_vehicle_and_credits(self, db, service, applier, alice, moderator, events):
        payload = {"make": "Hyundai", "model": "Ioniq 6", "year": 2023, "range": 614, "price": 45500}
        contribution = service.submit(alice, payload)

        approved = applier.approve(moderator, contribution.id)

        assert approved.status == ProposalStatus.APPROVED
        assert approved.approved_at is not None
        assert approved.reviewed_by == moderator.user_id
        vehicle = db.query(Vehicle).filter_by(make="Hyundai", model="Ioniq 6").one()
        assert vehicle.range == 614
        assert vehicle.price == 45500
        assert balance(db, alice.user_id) == settings.moderation.contribution_reward
        assert [e.name for e in events][-1] == "contribution.approved"

    def test_member_cannot_approve(self, service, applier, alice, bob):
        contribution = service.submit(alice, {"make": "Hyundai", "model": "Kona", "year": 2024})
        with pytest.raises(ForbiddenError):
            applier.approve(bob, contribution.id)

    def test_writes_moderation_log(self, db, service, applier, alice, moderator):
        contribution = service.submit(alice, {"make": "Hyundai", "model": "Kona", "year": 2024})
        applier.approve(moderator, contribution.id)
        log = db.query(ModerationLog).filter_by(target_type="CONTRIBUTION", target_id=contribution.id).one()
        assert log.action == "APPROVED"
        assert log.moderator_id == moderator.user_id


class TestApproveUpdate:
    """UPDATE proposals replace every catalog field."""

    def test_full_replace(self, db, service, applier, alice, moderator):
        vehicle = add_vehicle(db, range=500, price=40000, description="Standard Range")
        contribution = service.submit(
            alice,
            {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 520},
            ChangeType.UPDATE,
            target_vehicle_id=vehicle.id,
        )

        applier.approve(moderator, contribution.id)

        db.expire_all()
        vehicle = db.get(Vehicle, vehicle.id)
        assert vehicle.range == 520
        assert vehicle.price is None
        assert vehicle.description is None
        assert vehicle.version == 2

    def test_vanished_target_leaves_pending(self, db, service, applier, alice, moderator):
        vehicle = add_vehicle(db)
        contribution = service.submit(
            alice, {"make": "Tesla", "model": "Model 3", "year": 2023}, ChangeType.UPDATE, target_vehicle_id=vehicle.id
        )
        db.delete(vehicle)
        db.commit()

        with pytest.raises(NotFoundError):
            applier.approve(moderator, contribution.id)

        db.expire_all()
        assert db.get(Contribution, contribution.id).status == ProposalStatus.PENDING
        assert balance(db, alice.user_id) == 0

    def test_stale_update_is_logged_but_applied(self, db, service, applier, alice, bob, moderator):
        vehicle = add_vehicle(db, range=500)
        first = service.submit(
            alice, {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 510}, ChangeType.UPDATE, target_vehicle_id=vehicle.id
        )
        second = service.submit(
            bob, {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 530}, ChangeType.UPDATE, target_vehicle_id=vehicle.id
        )
        applier.approve(moderator, first.id)
        applier.approve(moderator, second.id)

        db.expire_all()
        assert db.get(Vehicle, vehicle.id).range == 530

    def test_stale_update_rejected_when_configured(self, db, service, applier, alice, bob, moderator, monkeypatch):
        monkeypatch.setattr(settings.moderation, "reject_stale_updates", True)
        vehicle = add_vehicle(db, range=500)
        first = service.submit(
            alice, {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 510}, ChangeType.UPDATE, target_vehicle_id=vehicle.id
        )
        second = service.submit(
            bob, {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 530}, ChangeType.UPDATE, target_vehicle_id=vehicle.id
        )
        applier.approve(moderator, first.id)

        with pytest.raises(PreconditionFailedError):
            applier.approve(moderator, second.id)

        db.expire_all()
        assert db.get(Contribution, second.id).status == ProposalStatus.PENDING
        assert db.get(Vehicle, vehicle.id).range == 510

        # Editing rebases the proposal on the current version.
        service.edit(bob, second.id, {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 530})
        applier.approve(moderator, second.id)
        db.expire_all()
        assert db.get(Vehicle, vehicle.id).range == 530


class TestSingleApprovalEffect:
    """Approving twice yields one catalog write and one credit."""

    def test_sequential_double_approval(self, db, service, applier, alice, moderator):
        contribution = service.submit(alice, {"make": "Nissan", "model": "Ariya", "year": 2023})
        applier.approve(moderator, contribution.id)

        with pytest.raises(PreconditionFailedError):
            applier.approve(moderator, contribution.id)

        assert db.query(Vehicle).filter_by(make="Nissan").count() == 1
        assert balance(db, alice.user_id) == settings.moderation.contribution_reward

    def test_racing_approvals(self, tmp_path, staging):
        """The loser of two interleaved approvals observes PreconditionFailed."""
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
        Base.metadata.create_all(engine)
        factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        setup = factory()
        alice = make_principal(setup, 1)
        first_moderator = make_principal(setup, 10, Role.MODERATOR)
        second_moderator = make_principal(setup, 11, Role.MODERATOR)
        contribution_id = ContributionService(setup, staging).submit(
            alice, {"make": "Volvo", "model": "EX30", "year": 2024}
        ).id
        setup.close()

        winner_db, loser_db = factory(), factory()
        try:
            # Both moderators have loaded the proposal while it was PENDING.
            loser_view = loser_db.get(Contribution, contribution_id)
            assert loser_view.status == ProposalStatus.PENDING

            ApprovalApplier(winner_db, staging).approve(first_moderator, contribution_id)
            with pytest.raises(PreconditionFailedError):
                ApprovalApplier(loser_db, staging).approve(second_moderator, contribution_id)
        finally:
            winner_db.close()
            loser_db.close()

        check = factory()
        try:
            assert check.query(Vehicle).filter_by(make="Volvo").count() == 1
            assert check.get(User, 1).app_currency_balance == settings.moderation.contribution_reward
            assert check.get(Contribution, contribution_id).reviewed_by == first_moderator.user_id
        finally:
            check.close()
            engine.dispose()

    def test_failure_rolls_back_everything(self, db, service, applier, alice, moderator, monkeypatch):
        contribution = service.submit(alice, {"make": "Fiat", "model": "500e", "year": 2024})

        def broken_credit(self, user_id, amount):
            raise RuntimeError("ledger down")

        monkeypatch.setattr(ApprovalApplier, "_credit", broken_credit)
        with pytest.raises(RuntimeError):
            applier.approve(moderator, contribution.id)

        db.expire_all()
        assert db.get(Contribution, contribution.id).status == ProposalStatus.PENDING
        assert db.query(Vehicle).filter_by(make="Fiat").count() == 0
        assert db.query(ModerationLog).count() == 0


class TestSelfModeration:
    """Moderators deciding their own proposals."""

    def test_allowed_by_default(self, db, service, applier, moderator):
        contribution = service.submit(moderator, {"make": "Mini", "model": "Aceman", "year": 2025})
        assert applier.approve(moderator, contribution.id).status == ProposalStatus.APPROVED

    def test_can_be_disabled(self, service, applier, moderator, monkeypatch):
        monkeypatch.setattr(settings.moderation, "allow_self_moderation", False)
        contribution = service.submit(moderator, {"make": "Mini", "model": "Aceman", "year": 2025})
        with pytest.raises(ForbiddenError):
            applier.approve(moderator, contribution.id)
