"""Schema exports."""

from app.schemas.auth import Token, TokenClaims
from app.schemas.booking import (
    BookingCancelRequest,
    BookingCheckRead,
    BookingCreate,
    BookingRead,
)
from app.schemas.escrow import EscrowDeclineRequest, EscrowRead, EscrowTimelineEntry
from app.schemas.favorite import FavoriteCreate, FavoriteRead
from app.schemas.payment_plan import PaymentPlanRead
from app.schemas.quota import QuotaSnapshotRead
from app.schemas.reservation import (
    ReservationCheckRead,
    ReservationCreate,
    ReservationRead,
    ReservationRejectRequest,
    ReservationSweepRead,
)
from app.schemas.user import UserRead

__all__ = [
    "BookingCancelRequest",
    "BookingCheckRead",
    "BookingCreate",
    "BookingRead",
    "EscrowDeclineRequest",
    "EscrowRead",
    "EscrowTimelineEntry",
    "FavoriteCreate",
    "FavoriteRead",
    "PaymentPlanRead",
    "QuotaSnapshotRead",
    "ReservationCheckRead",
    "ReservationCreate",
    "ReservationRead",
    "ReservationRejectRequest",
    "ReservationSweepRead",
    "Token",
    "TokenClaims",
    "UserRead",
]
