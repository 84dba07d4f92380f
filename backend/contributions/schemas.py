# ------------------------------ IMPORTS ------------------------------
from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import datetime

from core.database.models import ChangeType, ProposalStatus
from catalog.schemas import BaseOutModel

# ------------------------------ REQUEST MODELS ------------------------------

class ContributionRequest(BaseModel):
    """Submission or edit of a vehicle proposal.

    ``vehicle_data`` stays a plain mapping so the stored payload is exactly
    what the client sent; field validation happens in the service.
    """
    vehicle_data: Dict[str, Any]
    change_type: Optional[ChangeType] = None
    target_vehicle_id: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "vehicle_data": {"make": "Tesla", "model": "Model 3", "year": 2023, "range": 520},
                "change_type": "UPDATE",
                "target_vehicle_id": 5,
            }
        }

class RejectRequest(BaseModel):
    comment: Optional[str] = None

# ------------------------------ OUTPUT MODELS ------------------------------

class ContributionOut(BaseOutModel):
    """Contribution output model."""
    id: int
    user_id: int
    change_type: ChangeType
    target_vehicle_id: Optional[int] = None
    base_vehicle_version: Optional[int] = None
    vehicle_data: Dict[str, Any]
    status: ProposalStatus
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    rejection_comment: Optional[str] = None
    votes: int = 0
    is_new: Optional[bool] = None

class OrphanOut(BaseModel):
    contribution_id: int
    missing_vehicle_id: int

class ReconcileReport(BaseModel):
    """Result of one orphan reconciliation pass."""
    removed: int = 0
    orphans: List[OrphanOut] = Field(default_factory=list)

# ------------------------------ END OF FILE ------------------------------
