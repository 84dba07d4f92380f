# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, Optional, Type
import logging

from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import Contribution, ImageContribution, ModerationLog, ProposalStatus
from core.errors import NotFoundError, PreconditionFailedError, ValidationError
from core.security.policy import Transition, require_transition
from core.security.principal import Principal
from core.utils.data_helpers import sanitize_comment, utcnow

logger = logging.getLogger(__name__)

# ------------------------------ CONSTANTS ------------------------------

TERMINAL_STATES = {
    Transition.APPROVE: (ProposalStatus.APPROVED, "approved_at"),
    Transition.REJECT: (ProposalStatus.REJECTED, "rejected_at"),
    Transition.CANCEL: (ProposalStatus.CANCELLED, "cancelled_at"),
}

# ------------------------------ STATE MACHINE ------------------------------

class ProposalStateMachine:
    """Lifecycle of one kind of moderated proposal.

    PENDING is the only non-terminal state. Every write that depends on the
    proposal still being PENDING is a compare-and-swap against the status
    column, so of two racing decisions only the first one lands.
    """

    def __init__(self, db: Session, model: Type[Any], label: str, target_type: str):
        self.db = db
        self.model = model
        self.label = label
        self.target_type = target_type

    # ------------------------------ READS ------------------------------

    def load(self, proposal_id: int) -> Any:
        proposal = self.db.get(self.model, proposal_id)
        if proposal is None:
            raise NotFoundError(f"{self.label} not found", {"id": proposal_id})
        return proposal

    # ------------------------------ GUARDS ------------------------------

    def ensure_pending(self, proposal: Any) -> None:
        if proposal.status != ProposalStatus.PENDING:
            raise PreconditionFailedError(
                f"{self.label} is not pending",
                {"id": proposal.id, "status": proposal.status.value},
            )

    def authorize(self, actor: Principal, proposal: Any, transition: Transition) -> None:
        """Capability check first, then the status guard."""
        require_transition(actor, proposal, transition)
        self.ensure_pending(proposal)

    def validate_rejection_comment(self, comment: Optional[str]) -> str:
        """Return the sanitised comment or raise if it is too short."""
        minimum = settings.moderation.rejection_comment_min_length
        if len((comment or "").strip()) < minimum:
            raise ValidationError(
                f"Rejection comment is required and must be at least {minimum} characters."
            )
        return sanitize_comment(comment)

    # ------------------------------ WRITES ------------------------------

    def compare_and_swap(self, proposal: Any, values: Dict[str, Any]) -> None:
        """Write ``values`` only if the row is still PENDING."""
        updated = (
            self.db.query(self.model)
            .filter(self.model.id == proposal.id, self.model.status == ProposalStatus.PENDING)
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            self.db.rollback()
            raise PreconditionFailedError(f"{self.label} is not pending", {"id": proposal.id})
        self.db.expire(proposal)

    def update_pending(self, proposal: Any, values: Dict[str, Any]) -> None:
        """Change proposal fields while leaving it PENDING."""
        self.compare_and_swap(proposal, values)

    def finalize(
        self,
        proposal: Any,
        transition: Transition,
        actor: Principal,
        comment: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Move a PENDING proposal to the terminal state for ``transition``.

        Moderator decisions are also written to the moderation log. Does not
        commit; callers bundle this with their side effects.
        """
        status, timestamp_field = TERMINAL_STATES[transition]
        values: Dict[str, Any] = {"status": status, timestamp_field: utcnow()}
        if transition in (Transition.APPROVE, Transition.REJECT):
            values["reviewed_by"] = actor.user_id
        if comment is not None:
            values["rejection_comment"] = comment
        if extra:
            values.update(extra)

        self.compare_and_swap(proposal, values)
        if transition in (Transition.APPROVE, Transition.REJECT):
            self.db.add(ModerationLog(
                target_type=self.target_type,
                target_id=proposal.id,
                action=status.value,
                moderator_id=actor.user_id,
                comment=comment,
            ))
        logger.info(f"{self.label} {proposal.id} -> {status.value} by user {actor.user_id}")

# ------------------------------ FACTORIES ------------------------------

def contribution_state_machine(db: Session) -> ProposalStateMachine:
    return ProposalStateMachine(db, Contribution, "Contribution", "CONTRIBUTION")

def image_state_machine(db: Session) -> ProposalStateMachine:
    return ProposalStateMachine(db, ImageContribution, "Image contribution", "IMAGE_CONTRIBUTION")

# ------------------------------ END OF FILE ------------------------------
