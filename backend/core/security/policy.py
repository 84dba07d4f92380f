# ------------------------------ IMPORTS ------------------------------
from enum import Enum
from typing import Any

from core.config.settings import settings
from core.errors import ForbiddenError
from core.security.principal import Principal

# ------------------------------ TRANSITIONS ------------------------------

class Transition(str, Enum):
    EDIT = "edit"
    CANCEL = "cancel"
    RESUBMIT = "resubmit"
    VOTE = "vote"
    APPROVE = "approve"
    REJECT = "reject"

OWNER_TRANSITIONS = {Transition.EDIT, Transition.CANCEL, Transition.RESUBMIT}
MODERATOR_TRANSITIONS = {Transition.APPROVE, Transition.REJECT}

DENIAL_MESSAGES = {
    Transition.EDIT: "You can only update your own contributions",
    Transition.CANCEL: "You can only cancel your own contributions",
    Transition.RESUBMIT: "You can only resubmit your own contributions",
    Transition.VOTE: "You cannot vote on your own contribution",
    Transition.APPROVE: "Moderator or admin role required",
    Transition.REJECT: "Moderator or admin role required",
}

# ------------------------------ POLICY ------------------------------

def can_transition(actor: Principal, proposal: Any, transition: Transition) -> bool:
    """Capability check shared by vehicle and image proposals.

    Only role and ownership are decided here; status guards live in the
    state machine.
    """
    is_owner = proposal.user_id == actor.user_id

    if transition in OWNER_TRANSITIONS:
        return is_owner
    if transition == Transition.VOTE:
        return not is_owner
    if transition in MODERATOR_TRANSITIONS:
        if not actor.is_moderator:
            return False
        if is_owner and not settings.moderation.allow_self_moderation:
            return False
        return True
    return False

def require_transition(actor: Principal, proposal: Any, transition: Transition) -> None:
    """Raise ForbiddenError unless ``actor`` may apply ``transition``."""
    if not can_transition(actor, proposal, transition):
        message = DENIAL_MESSAGES[transition]
        if transition in MODERATOR_TRANSITIONS and actor.is_moderator:
            message = "Moderators may not decide their own proposals"
        raise ForbiddenError(message)

# ------------------------------ END OF FILE ------------------------------
