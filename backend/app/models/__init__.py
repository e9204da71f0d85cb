"""ORM models package export."""

from app.models.booking import Booking, BookingStatus, PaymentType
from app.models.domain_event import DomainEvent
from app.models.escrow import EscrowStatus, EscrowTransaction
from app.models.favorite import Favorite
from app.models.property import Property
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import SubscriptionTier, User, UserRole

__all__ = [
    "Booking",
    "BookingStatus",
    "DomainEvent",
    "EscrowStatus",
    "EscrowTransaction",
    "Favorite",
    "PaymentType",
    "Property",
    "Reservation",
    "ReservationStatus",
    "SubscriptionTier",
    "User",
    "UserRole",
]
