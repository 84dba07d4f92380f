# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, ForeignKey, JSON, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from core.database.connection import Base
from core.database.models.proposal import ProposalMixin, ChangeType

# ------------------------------ CONTRIBUTION MODEL ------------------------------

class Contribution(ProposalMixin, Base):
    """Contribution model - a proposed NEW vehicle or UPDATE to an existing one."""

    __tablename__ = "contributions"
    __table_args__ = (
        Index("ix_contributions_status_created", "status", "created_at"),
    )

    change_type = Column(
        SQLEnum(ChangeType, name="contribution_change_type", native_enum=False, length=16),
        default=ChangeType.NEW,
        nullable=False,
    )
    # Plain integer on purpose: the referenced vehicle may be deleted out of band.
    target_vehicle_id = Column(Integer, nullable=True, index=True)
    base_vehicle_version = Column(Integer, nullable=True)
    vehicle_data = Column(JSON, nullable=False)

    reviews = relationship("ContributionReview", back_populates="contribution", cascade="all, delete-orphan")
    images = relationship("ImageContribution", back_populates="contribution")

    def __repr__(self):
        return f"<Contribution(id={self.id}, type={self.change_type}, status={self.status})>"

# ------------------------------ REVIEW MODEL ------------------------------

class ContributionReview(Base):
    """One +1 vote by a user on a contribution."""

    __tablename__ = "contribution_reviews"
    __table_args__ = (
        UniqueConstraint("contribution_id", "user_id", name="uq_contribution_review_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contribution_id = Column(Integer, ForeignKey("contributions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vote = Column(Integer, nullable=False, default=1)

    contribution = relationship("Contribution", back_populates="reviews")

    def __repr__(self):
        return f"<ContributionReview(contribution_id={self.contribution_id}, user_id={self.user_id})>"

# ------------------------------ END OF FILE ------------------------------
