# ------------------------------ IMPORTS ------------------------------
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
import logging

from core.database import get_db
from core.errors import ForbiddenError, ValidationError
from core.security.principal import Principal, get_principal
from core.utils.serializers import serialize_models
from .store import CatalogStore
from .schemas import APIResponse, VehicleOut, VehicleImageOut, ImageOrderRequest

logger = logging.getLogger(__name__)

# ------------------------------ ROUTER SETUP ------------------------------
router = APIRouter()

# ------------------------------ DEPENDENCY INJECTION ------------------------------

def get_catalog_store(db: Session = Depends(get_db)) -> CatalogStore:
    """Dependency to get CatalogStore instance."""
    return CatalogStore(db)

# ------------------------------ VEHICLE ENDPOINTS ------------------------------

@router.get("/{vehicle_id}", response_model=APIResponse, tags=["Vehicles"])
async def get_vehicle(
    vehicle_id: int = Path(..., description="Catalog vehicle ID"),
    store: CatalogStore = Depends(get_catalog_store),
) -> APIResponse:
    """Get one catalog vehicle."""
    vehicle = store.require(vehicle_id)
    return APIResponse(success=True, data={"vehicle": VehicleOut.model_validate(vehicle).model_dump(mode="json")})

@router.delete("/{vehicle_id}", response_model=APIResponse, tags=["Vehicles"])
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Catalog vehicle ID"),
    principal: Principal = Depends(get_principal),
    store: CatalogStore = Depends(get_catalog_store),
) -> APIResponse:
    """Remove a vehicle from the catalog (admin only)."""
    if not principal.is_admin:
        raise ForbiddenError("Admin role required")
    store.delete(vehicle_id)
    store.db.commit()
    logger.info(f"Admin {principal.user_id} deleted vehicle {vehicle_id}")
    return APIResponse(success=True, data={"deleted_vehicle_id": vehicle_id})

# ------------------------------ IMAGE ENDPOINTS ------------------------------

@router.get("/{vehicle_id}/images", response_model=APIResponse, tags=["Vehicles"])
async def get_vehicle_images(
    vehicle_id: int = Path(..., description="Catalog vehicle ID"),
    store: CatalogStore = Depends(get_catalog_store),
) -> APIResponse:
    """Approved images of a vehicle in display order."""
    store.require(vehicle_id)
    images = store.images_for(vehicle_id)
    return APIResponse(
        success=True,
        data={"images": serialize_models(images, VehicleImageOut), "total": len(images)},
    )

@router.put("/{vehicle_id}/images/reorder", response_model=APIResponse, tags=["Vehicles"])
async def reorder_vehicle_images(
    request: ImageOrderRequest,
    vehicle_id: int = Path(..., description="Catalog vehicle ID"),
    principal: Principal = Depends(get_principal),
    store: CatalogStore = Depends(get_catalog_store),
) -> APIResponse:
    """Set the display order of a vehicle's images (moderator only)."""
    if not principal.is_moderator:
        raise ForbiddenError("Moderator or admin role required")
    if not request.images:
        raise ValidationError("Images array is required")

    images = store.reorder_images(vehicle_id, {item.id: item.order for item in request.images})
    store.db.commit()
    return APIResponse(success=True, data={"images": serialize_models(images, VehicleImageOut)})

# ------------------------------ END OF FILE ------------------------------
