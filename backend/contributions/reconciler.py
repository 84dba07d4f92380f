# ------------------------------ IMPORTS ------------------------------
import logging

from sqlalchemy.orm import Session

from core.database.models import ChangeType, Contribution, ContributionReview, ImageContribution, Vehicle
from .schemas import OrphanOut, ReconcileReport

logger = logging.getLogger(__name__)

# ------------------------------ ORPHAN RECONCILER ------------------------------

class OrphanReconciler:
    """Removes UPDATE proposals whose target vehicle no longer exists."""

    def __init__(self, db: Session):
        self.db = db

    def find_orphans(self) -> list[OrphanOut]:
        rows = (
            self.db.query(Contribution.id, Contribution.target_vehicle_id)
            .outerjoin(Vehicle, Vehicle.id == Contribution.target_vehicle_id)
            .filter(
                Contribution.change_type == ChangeType.UPDATE,
                Contribution.target_vehicle_id.isnot(None),
                Vehicle.id.is_(None),
            )
            .order_by(Contribution.id.asc())
            .all()
        )
        return [OrphanOut(contribution_id=cid, missing_vehicle_id=vid) for cid, vid in rows]

    def reconcile(self) -> ReconcileReport:
        """Delete each orphan's votes, then the orphan itself. Idempotent."""
        orphans = self.find_orphans()
        if not orphans:
            logger.info("Orphan reconciliation: nothing to remove")
            return ReconcileReport()

        for orphan in orphans:
            self.db.query(ContributionReview).filter(
                ContributionReview.contribution_id == orphan.contribution_id
            ).delete(synchronize_session=False)
            self.db.query(ImageContribution).filter(
                ImageContribution.contribution_id == orphan.contribution_id
            ).update({ImageContribution.contribution_id: None}, synchronize_session=False)
            self.db.query(Contribution).filter(
                Contribution.id == orphan.contribution_id
            ).delete(synchronize_session=False)
            # One short transaction per orphan keeps locks off the full scan.
            self.db.commit()
            logger.info(
                f"Removed orphan contribution {orphan.contribution_id} "
                f"(missing vehicle {orphan.missing_vehicle_id})"
            )

        logger.info(f"Orphan reconciliation removed {len(orphans)} contribution(s)")
        return ReconcileReport(removed=len(orphans), orphans=orphans)

# ------------------------------ END OF FILE ------------------------------
