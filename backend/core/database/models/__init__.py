# ------------------------------ IMPORTS ------------------------------
from .proposal import ProposalStatus, ChangeType, ProposalMixin
from .user import User
from .vehicle import Vehicle, VEHICLE_FIELDS
from .contribution import Contribution, ContributionReview
from .image import ImageContribution, VehicleImage
from .moderation_log import ModerationLog

__all__ = [
    "ProposalStatus",
    "ChangeType",
    "ProposalMixin",
    "User",
    "Vehicle",
    "VEHICLE_FIELDS",
    "Contribution",
    "ContributionReview",
    "ImageContribution",
    "VehicleImage",
    "ModerationLog",
]
