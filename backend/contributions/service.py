# ------------------------------ IMPORTS ------------------------------
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import ChangeType, Contribution, ProposalStatus
from core.errors import ConflictError, PreconditionFailedError, ValidationError
from core.events import EventBus, event_bus
from core.security.policy import Transition, require_transition
from core.security.principal import Principal
from core.services.proposal_state_machine import contribution_state_machine
from core.services.storage_service import StagingService
from core.utils.data_helpers import as_utc, utcnow
from catalog.duplicates import DuplicateDetector
from catalog.schemas import DuplicateCheckResult, VehicleData
from catalog.store import CatalogStore
from images.service import ImageContributionService
from .votes import VoteTally

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_RECENT = 10

# ------------------------------ VALIDATION ------------------------------

def validate_vehicle_data(vehicle_data: Any) -> Dict[str, Any]:
    """Check a candidate payload and return it unchanged."""
    if not isinstance(vehicle_data, dict) or not vehicle_data:
        raise ValidationError("Vehicle data is required for contribution")
    if not vehicle_data.get("make") or not vehicle_data.get("model") or not vehicle_data.get("year"):
        raise ValidationError("Make, model, and year are required")
    try:
        VehicleData.model_validate(vehicle_data)
    except PydanticValidationError as e:
        details = [{"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]} for err in e.errors()]
        raise ValidationError("Invalid vehicle data", {"details": details})
    return vehicle_data

# ------------------------------ SERVICE ------------------------------

class ContributionService:
    """Submission, owner transitions and listings for vehicle proposals."""

    def __init__(self, db: Session, staging: StagingService, events: EventBus = event_bus):
        self.db = db
        self.events = events
        self.machine = contribution_state_machine(db)
        self.store = CatalogStore(db)
        self.detector = DuplicateDetector(db)
        self.tally = VoteTally(db)
        self.images = ImageContributionService(db, staging, events)

    # ------------------------------ HELPERS ------------------------------

    def _resolve_target(self, change_type: ChangeType, target_vehicle_id: Optional[int]) -> Tuple[Optional[int], Optional[int]]:
        """Target id and its current version for UPDATE proposals."""
        if change_type != ChangeType.UPDATE:
            return None, None
        if not target_vehicle_id:
            raise ValidationError("Target vehicle ID is required for updates")
        vehicle = self.store.require(target_vehicle_id)
        return vehicle.id, vehicle.version

    # ------------------------------ DUPLICATES ------------------------------

    def check_duplicate(self, vehicle_data: Dict[str, Any]) -> DuplicateCheckResult:
        if not vehicle_data.get("make") or not vehicle_data.get("model") or not vehicle_data.get("year"):
            raise ValidationError("Make, model, and year are required")
        return self.detector.check_duplicate(vehicle_data)

    def _reject_duplicates(self, vehicle_data: Dict[str, Any]) -> None:
        verdict = self.detector.check_duplicate(vehicle_data)
        if verdict.is_duplicate:
            raise ConflictError(
                "Duplicate vehicle detected",
                {
                    "message": verdict.message,
                    "existing_vehicle": verdict.existing_vehicle,
                    "suggestions": verdict.suggestions,
                },
            )

    # ------------------------------ SUBMIT ------------------------------

    def submit(
        self,
        actor: Principal,
        vehicle_data: Dict[str, Any],
        change_type: Optional[ChangeType] = None,
        target_vehicle_id: Optional[int] = None,
    ) -> Contribution:
        """Persist a new PENDING proposal.

        NEW proposals go through the duplicate detector first; a match is a
        ConflictError carrying the existing vehicle and suggestions.
        """
        validate_vehicle_data(vehicle_data)
        change_type = change_type or ChangeType.NEW
        target_id, base_version = self._resolve_target(change_type, target_vehicle_id)

        if change_type == ChangeType.NEW:
            self._reject_duplicates(vehicle_data)

        contribution = Contribution(
            user_id=actor.user_id,
            change_type=change_type,
            target_vehicle_id=target_id,
            base_vehicle_version=base_version,
            vehicle_data=vehicle_data,
            status=ProposalStatus.PENDING,
            created_at=utcnow(),
        )
        self.db.add(contribution)
        self.db.commit()
        self.db.refresh(contribution)

        logger.info(f"Contribution {contribution.id} ({change_type.value}) submitted by user {actor.user_id}")
        self.events.publish(
            "contribution.submitted",
            contribution_id=contribution.id,
            user_id=actor.user_id,
            change_type=change_type.value,
        )
        return contribution

    # ------------------------------ OWNER TRANSITIONS ------------------------------

    def edit(
        self,
        actor: Principal,
        contribution_id: int,
        vehicle_data: Dict[str, Any],
        change_type: Optional[ChangeType] = None,
        target_vehicle_id: Optional[int] = None,
    ) -> Contribution:
        """Replace the payload of a PENDING proposal wholesale.

        A payload that resolves to NEW is screened for duplicates again.
        """
        validate_vehicle_data(vehicle_data)
        contribution = self.machine.load(contribution_id)
        self.machine.authorize(actor, contribution, Transition.EDIT)

        change_type = change_type or contribution.change_type
        target_id, base_version = self._resolve_target(
            change_type, target_vehicle_id or contribution.target_vehicle_id
        )
        if change_type == ChangeType.NEW:
            self._reject_duplicates(vehicle_data)
        self.machine.update_pending(contribution, {
            "vehicle_data": vehicle_data,
            "change_type": change_type,
            "target_vehicle_id": target_id,
            "base_vehicle_version": base_version,
        })
        self.db.commit()

        logger.info(f"Contribution {contribution_id} edited by user {actor.user_id}")
        return self.machine.load(contribution_id)

    def cancel(self, actor: Principal, contribution_id: int) -> Tuple[Contribution, int]:
        """Withdraw a PENDING proposal and its linked images."""
        contribution = self.machine.load(contribution_id)
        self.machine.authorize(actor, contribution, Transition.CANCEL)

        try:
            self.machine.finalize(contribution, Transition.CANCEL, actor)
            staged_keys = self.images.close_linked(contribution_id, Transition.CANCEL, actor)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.images.discard_files(staged_keys)
        self.events.publish("contribution.cancelled", contribution_id=contribution_id, user_id=actor.user_id)
        return self.machine.load(contribution_id), len(staged_keys)

    def resubmit(self, actor: Principal, contribution_id: int) -> Contribution:
        """Clone a REJECTED proposal into a fresh PENDING one."""
        original = self.machine.load(contribution_id)
        require_transition(actor, original, Transition.RESUBMIT)
        if original.status != ProposalStatus.REJECTED:
            raise PreconditionFailedError(
                "Only rejected contributions can be resubmitted",
                {"id": contribution_id, "status": original.status.value},
            )

        target_id, base_version = self._resolve_target(original.change_type, original.target_vehicle_id)
        contribution = Contribution(
            user_id=original.user_id,
            change_type=original.change_type,
            target_vehicle_id=target_id,
            base_vehicle_version=base_version,
            vehicle_data=original.vehicle_data,
            status=ProposalStatus.PENDING,
            created_at=utcnow(),
        )
        self.db.add(contribution)
        self.db.commit()
        self.db.refresh(contribution)

        logger.info(f"Contribution {contribution_id} resubmitted as {contribution.id}")
        self.events.publish(
            "contribution.resubmitted",
            contribution_id=contribution.id,
            previous_contribution_id=contribution_id,
            user_id=actor.user_id,
        )
        return contribution

    # ------------------------------ READS ------------------------------

    def get(self, contribution_id: int) -> Contribution:
        return self.machine.load(contribution_id)

    def list_pending(self) -> List[Contribution]:
        return (
            self.db.query(Contribution)
            .filter(Contribution.status == ProposalStatus.PENDING)
            .order_by(desc(Contribution.created_at), desc(Contribution.id))
            .all()
        )

    def list_all(
        self,
        status: Optional[ProposalStatus] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
        sort_order: str = "desc",
    ) -> Tuple[List[Contribution], int]:
        """Filtered page of contributions with the total match count."""
        if page < 1:
            raise ValidationError("page must be at least 1")
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        query = self.db.query(Contribution)
        if status:
            query = query.filter(Contribution.status == status)
        if user_id:
            query = query.filter(Contribution.user_id == user_id)

        order = asc if sort_order == "asc" else desc
        total = query.count()
        items = (
            query.order_by(order(Contribution.created_at), order(Contribution.id))
            .limit(limit)
            .offset((page - 1) * limit)
            .all()
        )
        return items, total

    def list_mine(self, actor: Principal) -> List[Contribution]:
        return (
            self.db.query(Contribution)
            .filter(Contribution.user_id == actor.user_id)
            .order_by(desc(Contribution.created_at), desc(Contribution.id))
            .all()
        )

    def recent(self, limit: int = 5) -> List[Tuple[Contribution, bool]]:
        """Newest contributions paired with whether they count as new."""
        limit = max(1, min(limit, MAX_RECENT))
        cutoff = utcnow() - timedelta(days=settings.moderation.recent_window_days)
        rows = (
            self.db.query(Contribution)
            .order_by(desc(Contribution.created_at), desc(Contribution.id))
            .limit(limit)
            .all()
        )
        return [(row, as_utc(row.created_at) > cutoff) for row in rows]

# ------------------------------ END OF FILE ------------------------------
