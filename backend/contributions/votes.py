# ------------------------------ IMPORTS ------------------------------
from typing import Dict, Iterable
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database.models import ContributionReview
from core.errors import ConflictError
from core.security.policy import Transition
from core.security.principal import Principal
from core.services.proposal_state_machine import contribution_state_machine

logger = logging.getLogger(__name__)

# ------------------------------ VOTE TALLY ------------------------------

class VoteTally:
    """Peer +1 votes. Counts are always recomputed from the review rows."""

    def __init__(self, db: Session):
        self.db = db
        self.machine = contribution_state_machine(db)

    def vote(self, actor: Principal, contribution_id: int) -> int:
        """Record one vote and return the new count."""
        contribution = self.machine.load(contribution_id)
        self.machine.authorize(actor, contribution, Transition.VOTE)

        existing = (
            self.db.query(ContributionReview)
            .filter(
                ContributionReview.contribution_id == contribution_id,
                ContributionReview.user_id == actor.user_id,
            )
            .first()
        )
        if existing is not None:
            raise ConflictError("You have already voted on this contribution")

        self.db.add(ContributionReview(contribution_id=contribution_id, user_id=actor.user_id, vote=1))
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against the same user's concurrent vote.
            self.db.rollback()
            raise ConflictError("You have already voted on this contribution")

        logger.info(f"User {actor.user_id} voted on contribution {contribution_id}")
        return self.count(contribution_id)

    def count(self, contribution_id: int) -> int:
        return (
            self.db.query(func.count(ContributionReview.id))
            .filter(ContributionReview.contribution_id == contribution_id)
            .scalar()
        ) or 0

    def counts(self, contribution_ids: Iterable[int]) -> Dict[int, int]:
        """Vote count per contribution id; ids without votes map to 0."""
        ids = list(contribution_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(ContributionReview.contribution_id, func.count(ContributionReview.id))
            .filter(ContributionReview.contribution_id.in_(ids))
            .group_by(ContributionReview.contribution_id)
            .all()
        )
        tally = {contribution_id: 0 for contribution_id in ids}
        tally.update({contribution_id: total for contribution_id, total in rows})
        return tally

# ------------------------------ END OF FILE ------------------------------
