# ------------------------------ IMPORTS ------------------------------
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from core.database.models import ProposalStatus
from catalog.schemas import BaseOutModel

# ------------------------------ REQUEST MODELS ------------------------------

class ImageApproveRequest(BaseModel):
    display_order: Optional[int] = Field(None, ge=0)

class ImageRejectRequest(BaseModel):
    comment: Optional[str] = None

class ImageEditRequest(BaseModel):
    alt_text: Optional[str] = Field(None, max_length=255)
    caption: Optional[str] = Field(None, max_length=500)

# ------------------------------ OUTPUT MODELS ------------------------------

class ImageContributionOut(BaseOutModel):
    """Image contribution output model."""
    id: int
    user_id: int
    vehicle_id: Optional[int] = None
    contribution_id: Optional[int] = None
    filename: str
    original_filename: str
    path: str
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    status: ProposalStatus
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    rejection_comment: Optional[str] = None

# ------------------------------ END OF FILE ------------------------------
