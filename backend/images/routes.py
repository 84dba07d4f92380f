# ------------------------------ IMPORTS ------------------------------
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form, Path
from sqlalchemy.orm import Session
import logging

from core.database import get_db
from core.errors import ForbiddenError
from core.security.principal import Principal, get_principal
from core.services.storage_service import StagingService, get_staging_service
from core.utils.serializers import serialize_models
from catalog.schemas import APIResponse, VehicleImageOut
from .service import ImageContributionService
from .schemas import ImageApproveRequest, ImageRejectRequest, ImageEditRequest, ImageContributionOut

logger = logging.getLogger(__name__)

# ------------------------------ ROUTER SETUP ------------------------------
router = APIRouter()

# ------------------------------ DEPENDENCY INJECTION ------------------------------

def get_image_service(
    db: Session = Depends(get_db),
    staging: StagingService = Depends(get_staging_service),
) -> ImageContributionService:
    """Dependency to get ImageContributionService instance."""
    return ImageContributionService(db, staging)

def _image_out(image) -> dict:
    return ImageContributionOut.model_validate(image).model_dump(mode="json")

# ------------------------------ SUBMISSION ------------------------------

@router.post("/contribute", response_model=APIResponse, status_code=201, tags=["Images"])
async def contribute_image(
    image: UploadFile = File(...),
    vehicle_id: Optional[int] = Form(None),
    contribution_id: Optional[int] = Form(None),
    alt_text: Optional[str] = Form(None),
    caption: Optional[str] = Form(None),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Submit an image for review."""
    content = await image.read()
    contribution = service.submit(
        principal,
        content=content,
        original_filename=image.filename,
        content_type=image.content_type,
        vehicle_id=vehicle_id,
        contribution_id=contribution_id,
        alt_text=alt_text,
        caption=caption,
    )
    return APIResponse(
        success=True,
        data={"message": "Image submitted for review", "image_contribution": _image_out(contribution)},
    )

# ------------------------------ LISTINGS ------------------------------

@router.get("/contributions/pending", response_model=APIResponse, tags=["Images"])
async def get_pending_images(
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Pending image contributions, newest first."""
    images = service.list_pending()
    return APIResponse(
        success=True,
        data={"image_contributions": serialize_models(images, ImageContributionOut), "total": len(images)},
    )

@router.get("/contributions/{image_id}", response_model=APIResponse, tags=["Images"])
async def get_image_contribution(
    image_id: int = Path(..., description="Image contribution ID"),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Get one image contribution."""
    return APIResponse(success=True, data={"image_contribution": _image_out(service.get(image_id))})

# ------------------------------ OWNER ACTIONS ------------------------------

@router.put("/contributions/{image_id}", response_model=APIResponse, tags=["Images"])
async def edit_image_contribution(
    request: ImageEditRequest,
    image_id: int = Path(..., description="Image contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Update alt text and caption of a pending image."""
    image = service.edit(principal, image_id, request.alt_text, request.caption)
    return APIResponse(success=True, data={"image_contribution": _image_out(image)})

@router.post("/contributions/{image_id}/cancel", response_model=APIResponse, tags=["Images"])
async def cancel_image_contribution(
    image_id: int = Path(..., description="Image contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Withdraw a pending image and discard its staged file."""
    image = service.cancel(principal, image_id)
    return APIResponse(success=True, data={"image_contribution": _image_out(image)})

# ------------------------------ MODERATION ------------------------------

@router.post("/contributions/{image_id}/approve", response_model=APIResponse, tags=["Images"])
async def approve_image_contribution(
    request: Optional[ImageApproveRequest] = None,
    image_id: int = Path(..., description="Image contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Approve an image and attach it to its vehicle."""
    display_order = request.display_order if request else None
    vehicle_image = service.approve(principal, image_id, display_order)
    return APIResponse(
        success=True,
        data={
            "message": "Image approved successfully",
            "image": VehicleImageOut.model_validate(vehicle_image).model_dump(mode="json"),
        },
    )

@router.post("/contributions/{image_id}/reject", response_model=APIResponse, tags=["Images"])
async def reject_image_contribution(
    request: ImageRejectRequest,
    image_id: int = Path(..., description="Image contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Reject an image and discard its staged file."""
    image = service.reject(principal, image_id, request.comment)
    return APIResponse(success=True, data={"image_contribution": _image_out(image)})

@router.delete("/{vehicle_image_id}", response_model=APIResponse, tags=["Images"])
async def delete_vehicle_image(
    vehicle_image_id: int = Path(..., description="Approved vehicle image ID"),
    principal: Principal = Depends(get_principal),
    service: ImageContributionService = Depends(get_image_service),
) -> APIResponse:
    """Remove an approved image (admin only)."""
    if not principal.is_admin:
        raise ForbiddenError("Admin role required")
    service.delete_vehicle_image(principal, vehicle_image_id)
    return APIResponse(success=True, data={"deleted_image_id": vehicle_image_id})

# ------------------------------ END OF FILE ------------------------------
