# ------------------------------ IMPORTS ------------------------------
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List, Any
from datetime import datetime

# ------------------------------ BASE MODELS ------------------------------

class BaseOutModel(BaseModel):
    """Base model with common datetime serialization."""

    @field_serializer('created_at', 'updated_at', 'approved_at', 'rejected_at', 'cancelled_at',
                      'uploaded_at', check_fields=False)
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return dt.isoformat() if dt else None

    class Config:
        from_attributes = True

class APIResponse(BaseModel):
    """Generic API response model."""
    success: bool
    data: dict[str, Any]

# ------------------------------ PAYLOAD MODELS ------------------------------

class VehicleData(BaseModel):
    """Candidate vehicle record carried by a contribution.

    Strict so that a payload is never silently coerced; unknown keys are
    allowed and kept in the stored payload.
    """
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1886, le=2100)
    battery_capacity: Optional[float] = Field(None, ge=0)
    range: Optional[int] = Field(None, ge=0)
    charging_speed: Optional[float] = Field(None, ge=0)
    acceleration: Optional[float] = Field(None, ge=0)
    top_speed: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None

    class Config:
        strict = True
        extra = "allow"

# ------------------------------ OUTPUT MODELS ------------------------------

class VehicleOut(BaseOutModel):
    """Vehicle output model."""
    id: int
    make: str
    model: str
    year: int
    battery_capacity: Optional[float] = None
    range: Optional[int] = None
    charging_speed: Optional[float] = None
    acceleration: Optional[float] = None
    top_speed: Optional[int] = None
    price: Optional[float] = None
    description: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class VehicleImageOut(BaseOutModel):
    """Approved vehicle image output model."""
    id: int
    vehicle_id: int
    filename: str
    url: str
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    display_order: int
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    approved_by: Optional[int] = None

class DuplicateCheckResult(BaseModel):
    """Verdict of the duplicate detector."""
    is_duplicate: bool
    existing_vehicle: Optional[dict[str, Any]] = None
    suggestions: List[str] = []
    message: Optional[str] = None

# ------------------------------ REQUEST MODELS ------------------------------

class ImageOrder(BaseModel):
    id: int
    order: int = Field(..., ge=0)

class ImageOrderRequest(BaseModel):
    images: List[ImageOrder]

# ------------------------------ END OF FILE ------------------------------
