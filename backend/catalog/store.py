# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.database.models import Vehicle, VehicleImage, VEHICLE_FIELDS
from core.errors import NotFoundError
from core.utils.data_helpers import normalize_text

logger = logging.getLogger(__name__)

# ------------------------------ CATALOG STORE ------------------------------

class CatalogStore:
    """Canonical vehicle table. Writes are flushed, never committed here."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, vehicle_id: Optional[int]) -> Optional[Vehicle]:
        if vehicle_id is None:
            return None
        return self.db.get(Vehicle, vehicle_id)

    def require(self, vehicle_id: Optional[int]) -> Vehicle:
        vehicle = self.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Cannot find target vehicle", {"vehicle_id": vehicle_id})
        return vehicle

    def find_by_make_model(self, make: str, model: str, year: Optional[int] = None, year_tolerance: int = 0) -> List[Vehicle]:
        """Case-insensitive make/model lookup, optionally inside a year window."""
        query = self.db.query(Vehicle).filter(
            func.lower(func.trim(Vehicle.make)) == normalize_text(make),
            func.lower(func.trim(Vehicle.model)) == normalize_text(model),
        )
        if year is not None:
            query = query.filter(Vehicle.year.between(year - year_tolerance, year + year_tolerance))
        return query.order_by(Vehicle.id.asc()).all()

    def insert(self, vehicle_data: Dict[str, Any]) -> Vehicle:
        vehicle = Vehicle(**{name: vehicle_data.get(name) for name in VEHICLE_FIELDS})
        vehicle.version = 1
        self.db.add(vehicle)
        self.db.flush()
        logger.info(f"Inserted vehicle {vehicle.id}: {vehicle.make} {vehicle.model} {vehicle.year}")
        return vehicle

    def replace(self, vehicle: Vehicle, vehicle_data: Dict[str, Any]) -> Vehicle:
        """Overwrite every catalog field; absent keys become null."""
        for name in VEHICLE_FIELDS:
            setattr(vehicle, name, vehicle_data.get(name))
        vehicle.version = (vehicle.version or 0) + 1
        self.db.flush()
        logger.info(f"Replaced vehicle {vehicle.id} (version {vehicle.version})")
        return vehicle

    def delete(self, vehicle_id: int) -> None:
        """Direct admin removal; pending UPDATE proposals become orphans."""
        vehicle = self.require(vehicle_id)
        self.db.delete(vehicle)
        self.db.flush()
        logger.info(f"Deleted vehicle {vehicle_id}")

    # ------------------------------ IMAGES ------------------------------

    def images_for(self, vehicle_id: int) -> List[VehicleImage]:
        return (
            self.db.query(VehicleImage)
            .filter(VehicleImage.vehicle_id == vehicle_id, VehicleImage.is_approved.is_(True))
            .order_by(VehicleImage.display_order.asc(), VehicleImage.uploaded_at.asc())
            .all()
        )

    def next_display_order(self, vehicle_id: int) -> int:
        current = (
            self.db.query(func.max(VehicleImage.display_order))
            .filter(VehicleImage.vehicle_id == vehicle_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def reorder_images(self, vehicle_id: int, orders: Dict[int, int]) -> List[VehicleImage]:
        self.require(vehicle_id)
        for image in self.db.query(VehicleImage).filter(VehicleImage.vehicle_id == vehicle_id):
            if image.id in orders:
                image.display_order = orders[image.id]
        self.db.flush()
        return self.images_for(vehicle_id)

# ------------------------------ END OF FILE ------------------------------
