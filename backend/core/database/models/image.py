# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship

from core.database.connection import Base
from core.database.models.proposal import ProposalMixin
from core.utils.data_helpers import utcnow

# ------------------------------ IMAGE CONTRIBUTION MODEL ------------------------------

class ImageContribution(ProposalMixin, Base):
    """A proposed vehicle image waiting in the staging area."""

    __tablename__ = "image_contributions"

    # Null while the image rides along with a pending NEW contribution.
    vehicle_id = Column(Integer, nullable=True, index=True)
    contribution_id = Column(Integer, ForeignKey("contributions.id"), nullable=True, index=True)

    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=False)
    path = Column(String(500), nullable=False, comment="Staged path until approved, durable path after")
    alt_text = Column(String(255), nullable=True)
    caption = Column(String(500), nullable=True)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)

    contribution = relationship("Contribution", back_populates="images")

    def __repr__(self):
        return f"<ImageContribution(id={self.id}, vehicle_id={self.vehicle_id}, status={self.status})>"

# ------------------------------ VEHICLE IMAGE MODEL ------------------------------

class VehicleImage(Base):
    """Approved, durable image attached to a catalog vehicle."""

    __tablename__ = "vehicle_images"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)

    filename = Column(String(255), nullable=False)
    path = Column(String(500), nullable=False)
    url = Column(String(1000), nullable=False)
    alt_text = Column(String(255), nullable=True)
    caption = Column(String(500), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)

    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    vehicle = relationship("Vehicle", back_populates="images")

    def __repr__(self):
        return f"<VehicleImage(id={self.id}, vehicle_id={self.vehicle_id}, order={self.display_order})>"

# ------------------------------ END OF FILE ------------------------------
