"""Infrastructure models package exports."""
from .base import Base, metadata
from .payment import BookingModel, CampaignModel, DonationModel, EventModel

__all__ = [
    "Base",
    "metadata",
    "CampaignModel",
    "DonationModel",
    "EventModel",
    "BookingModel",
]
