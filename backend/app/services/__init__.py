"""Service layer exports."""
from app.services import (
    auth_service,
    booking_service,
    escrow_service,
    event_service,
    favorite_service,
    payment_plan,
    property_service,
    quota_service,
    reservation_service,
    user_service,
)

__all__ = [
    "auth_service",
    "booking_service",
    "escrow_service",
    "event_service",
    "favorite_service",
    "payment_plan",
    "property_service",
    "quota_service",
    "reservation_service",
    "user_service",
]
