# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Index
from sqlalchemy.orm import relationship

from core.database.connection import Base
from core.utils.data_helpers import utcnow

# ------------------------------ CONSTANTS ------------------------------

# Catalog fields a contribution payload replaces wholesale on approval.
VEHICLE_FIELDS = (
    "make",
    "model",
    "year",
    "battery_capacity",
    "range",
    "charging_speed",
    "acceleration",
    "top_speed",
    "price",
    "description",
)

# ------------------------------ VEHICLE MODEL ------------------------------

class Vehicle(Base):
    """Vehicle model - a canonical row of the EV catalog."""

    __tablename__ = "vehicles"
    __table_args__ = (
        Index("ix_vehicles_make_model", "make", "model"),
    )

    id = Column(Integer, primary_key=True, index=True)

    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)

    battery_capacity = Column(Float, nullable=True, comment="Battery capacity in kWh")
    range = Column(Integer, nullable=True, comment="Range in km")
    charging_speed = Column(Float, nullable=True, comment="Peak DC charging speed in kW")
    acceleration = Column(Float, nullable=True, comment="0-100 km/h in seconds")
    top_speed = Column(Integer, nullable=True, comment="Top speed in km/h")
    price = Column(Float, nullable=True, comment="Base price")
    description = Column(Text, nullable=True)

    version = Column(Integer, default=1, nullable=False, comment="Bumped on every catalog write")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    images = relationship(
        "VehicleImage",
        back_populates="vehicle",
        cascade="all, delete-orphan",
        order_by="VehicleImage.display_order",
    )

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in VEHICLE_FIELDS}
        data["id"] = self.id
        data["version"] = self.version
        return data

    def __repr__(self):
        return f"<Vehicle(id={self.id}, make={self.make}, model={self.model}, year={self.year})>"

# ------------------------------ END OF FILE ------------------------------
