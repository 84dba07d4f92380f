# ------------------------------ IMPORTS ------------------------------
from typing import Optional
import logging

from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import ChangeType, Contribution, User, Vehicle
from core.errors import NotFoundError, PreconditionFailedError
from core.events import EventBus, event_bus
from core.security.policy import Transition
from core.security.principal import Principal
from core.services.proposal_state_machine import contribution_state_machine
from core.services.storage_service import StagingService
from catalog.store import CatalogStore
from images.service import ImageContributionService

logger = logging.getLogger(__name__)

# ------------------------------ APPROVAL APPLIER ------------------------------

class ApprovalApplier:
    """Executes moderator decisions on vehicle proposals.

    Approval is one transaction: the PENDING compare-and-swap is its first
    write, followed by the catalog write, the contributor credit, linked
    image promotion and the moderation log. Any failure rolls all of it back.
    """

    def __init__(self, db: Session, staging: StagingService, events: EventBus = event_bus):
        self.db = db
        self.events = events
        self.machine = contribution_state_machine(db)
        self.store = CatalogStore(db)
        self.images = ImageContributionService(db, staging, events)

    # ------------------------------ APPROVE ------------------------------

    def approve(self, actor: Principal, contribution_id: int) -> Contribution:
        contribution = self.machine.load(contribution_id)
        self.machine.authorize(actor, contribution, Transition.APPROVE)

        change_type = contribution.change_type
        vehicle_data = dict(contribution.vehicle_data)
        submitter_id = contribution.user_id

        target: Optional[Vehicle] = None
        if change_type == ChangeType.UPDATE:
            target = self.store.get(contribution.target_vehicle_id)
            if target is None:
                raise NotFoundError(
                    "Target vehicle vanished",
                    {"id": contribution_id, "target_vehicle_id": contribution.target_vehicle_id},
                )
            self._check_version(contribution, target)

        try:
            self.machine.finalize(contribution, Transition.APPROVE, actor)
            if target is not None:
                vehicle = self.store.replace(target, vehicle_data)
            else:
                vehicle = self.store.insert(vehicle_data)
            vehicle_id = vehicle.id
            self._credit(submitter_id, settings.moderation.contribution_reward)
            approved_images, failed_images = self.images.approve_linked(contribution_id, vehicle_id, actor)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.images.restore_promoted()
            raise
        self.images.forget_promoted()

        logger.info(
            f"Contribution {contribution_id} applied to vehicle {vehicle_id}; "
            f"credited user {submitter_id} with {settings.moderation.contribution_reward}"
        )
        self.events.publish(
            "contribution.approved",
            contribution_id=contribution_id,
            vehicle_id=vehicle_id,
            user_id=submitter_id,
            moderator_id=actor.user_id,
            approved_images=approved_images,
            failed_images=failed_images,
        )
        return self.machine.load(contribution_id)

    # ------------------------------ REJECT ------------------------------

    def reject(self, actor: Principal, contribution_id: int, comment: Optional[str]) -> Contribution:
        contribution = self.machine.load(contribution_id)
        self.machine.authorize(actor, contribution, Transition.REJECT)
        reason = self.machine.validate_rejection_comment(comment)
        submitter_id = contribution.user_id

        try:
            self.machine.finalize(contribution, Transition.REJECT, actor, comment=reason)
            staged_keys = self.images.close_linked(contribution_id, Transition.REJECT, actor, comment=reason)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.images.discard_files(staged_keys)
        self.events.publish(
            "contribution.rejected",
            contribution_id=contribution_id,
            user_id=submitter_id,
            moderator_id=actor.user_id,
            reason=reason,
        )
        return self.machine.load(contribution_id)

    # ------------------------------ HELPERS ------------------------------

    def _check_version(self, contribution: Contribution, vehicle: Vehicle) -> None:
        """Detect a catalog write between submission and approval."""
        base = contribution.base_vehicle_version
        if base is None or base == vehicle.version:
            return
        logger.warning(
            f"Contribution {contribution.id} was based on version {base} of vehicle {vehicle.id}, "
            f"now at version {vehicle.version}"
        )
        if settings.moderation.reject_stale_updates:
            raise PreconditionFailedError(
                "Target vehicle changed since this contribution was submitted",
                {"id": contribution.id, "base_version": base, "current_version": vehicle.version},
            )

    def _credit(self, user_id: int, amount: int) -> None:
        """Atomic balance increment on the users ledger."""
        updated = (
            self.db.query(User)
            .filter(User.id == user_id)
            .update({User.app_currency_balance: User.app_currency_balance + amount}, synchronize_session=False)
        )
        if updated == 0:
            logger.warning(f"User {user_id} had no ledger row; creating it with the reward")
            self.db.add(User(id=user_id, app_currency_balance=amount))
            self.db.flush()

# ------------------------------ END OF FILE ------------------------------
