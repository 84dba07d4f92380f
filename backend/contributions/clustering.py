# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import ChangeType, Contribution, ProposalStatus, Vehicle
from core.utils.data_helpers import as_utc, normalize_text
from core.services.proposal_state_machine import contribution_state_machine

logger = logging.getLogger(__name__)

# ------------------------------ PURE CLUSTERING ------------------------------

def _identity(make: Any, model: Any) -> Tuple[str, str]:
    return normalize_text(make), normalize_text(model)

def _year(value: Any) -> Optional[int]:
    return value if isinstance(value, int) and not isinstance(value, bool) else None

def _near(a: Optional[int], b: Optional[int], window: int) -> bool:
    return a is not None and b is not None and abs(a - b) <= window

def related_proposals(
    seed: Contribution,
    pending: Iterable[Contribution],
    catalog: Dict[int, Vehicle],
    year_window: Optional[int] = None,
) -> List[Contribution]:
    """Other pending proposals about the same logical vehicle as ``seed``.

    The seed's anchor is its target vehicle for UPDATE proposals and its own
    payload for NEW ones. UPDATE proposals match by sharing the seed's
    target, or (for a NEW seed) by targeting a catalog vehicle with the same
    make and model inside the year window. NEW proposals match on make,
    model and the year window. Result is newest first.
    """
    window = settings.moderation.related_year_window if year_window is None else year_window

    if seed.change_type == ChangeType.UPDATE:
        anchor = catalog.get(seed.target_vehicle_id)
        if anchor is None:
            anchor_identity, anchor_year = None, None
        else:
            anchor_identity, anchor_year = _identity(anchor.make, anchor.model), anchor.year
    else:
        data = seed.vehicle_data or {}
        anchor_identity, anchor_year = _identity(data.get("make"), data.get("model")), _year(data.get("year"))

    related: Dict[int, Contribution] = {}
    for other in pending:
        if other.id == seed.id or other.status != ProposalStatus.PENDING:
            continue

        if other.change_type == ChangeType.UPDATE:
            if seed.change_type == ChangeType.UPDATE:
                matched = other.target_vehicle_id == seed.target_vehicle_id
            else:
                target = catalog.get(other.target_vehicle_id)
                matched = (
                    target is not None
                    and _identity(target.make, target.model) == anchor_identity
                    and _near(target.year, anchor_year, window)
                )
        else:
            data = other.vehicle_data or {}
            matched = (
                anchor_identity is not None
                and _identity(data.get("make"), data.get("model")) == anchor_identity
                and _near(_year(data.get("year")), anchor_year, window)
            )

        if matched:
            related[other.id] = other

    return sorted(related.values(), key=lambda c: (as_utc(c.created_at), c.id), reverse=True)

# ------------------------------ SERVICE ------------------------------

class RelatedProposalClusterer:
    """Read-side grouping of pending proposals for joint review."""

    def __init__(self, db: Session):
        self.db = db
        self.machine = contribution_state_machine(db)

    def related_to(self, contribution_id: int) -> List[Contribution]:
        seed = self.machine.load(contribution_id)
        pending = (
            self.db.query(Contribution)
            .filter(Contribution.status == ProposalStatus.PENDING)
            .all()
        )
        target_ids = {c.target_vehicle_id for c in pending + [seed] if c.target_vehicle_id is not None}
        catalog = {}
        if target_ids:
            catalog = {v.id: v for v in self.db.query(Vehicle).filter(Vehicle.id.in_(target_ids))}

        related = related_proposals(seed, pending, catalog)
        logger.debug(f"Contribution {contribution_id} has {len(related)} related pending proposal(s)")
        return related

# ------------------------------ END OF FILE ------------------------------
