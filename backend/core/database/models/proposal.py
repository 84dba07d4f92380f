# ------------------------------ IMPORTS ------------------------------
from enum import Enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Enum as SQLEnum
from sqlalchemy.orm import declared_attr

from core.utils.data_helpers import utcnow

# ------------------------------ ENUMS ------------------------------

class ProposalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

class ChangeType(str, Enum):
    NEW = "NEW"
    UPDATE = "UPDATE"

# ------------------------------ LIFECYCLE MIXIN ------------------------------

class ProposalMixin:
    """Columns shared by every moderated proposal.

    Status only ever leaves PENDING once; exactly one of the terminal
    timestamps is set alongside the terminal status.
    """

    id = Column(Integer, primary_key=True, index=True)

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def status(cls):
        return Column(
            SQLEnum(ProposalStatus, name=f"{cls.__tablename__}_status", native_enum=False, length=16),
            default=ProposalStatus.PENDING,
            nullable=False,
            index=True,
        )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    @declared_attr
    def reviewed_by(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)

    rejection_comment = Column(Text, nullable=True)

# ------------------------------ END OF FILE ------------------------------
