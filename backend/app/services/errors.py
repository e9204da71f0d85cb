"""Domain errors raised by the booking core services."""

from __future__ import annotations


class DomainError(ValueError):
    """Base class for expected, caller-facing failures."""

    code = "domain_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotAuthorized(DomainError):
    """Caller is not the party the operation requires."""

    code = "not_authorized"


class NotFound(DomainError):
    code = "not_found"


class InvalidTransition(DomainError):
    """Requested state change is not reachable from the current state."""

    code = "invalid_transition"

    def __init__(
        self, message: str, *, current: str | None = None, target: str | None = None
    ) -> None:
        self.current = current
        self.target = target
        super().__init__(message)


class AlreadyFinalized(InvalidTransition):
    """Escrow transaction already reached ``released`` or ``refunded``."""

    code = "already_finalized"


class DuplicateReservation(DomainError):
    code = "duplicate_reservation"


class DuplicateBooking(DomainError):
    code = "duplicate_booking"


class DuplicateFavorite(DomainError):
    code = "duplicate_favorite"


class LimitReached(DomainError):
    """Free-tier quota denial; shown to users as an upgrade prompt."""

    code = "limit_reached"

    def __init__(self, message: str, *, kind: str, limit: int) -> None:
        self.kind = kind
        self.limit = limit
        super().__init__(message)


class PropertyUnavailable(DomainError):
    code = "property_unavailable"


class InvalidConfiguration(DomainError):
    """Upstream property data is inconsistent; not user-correctable."""

    code = "invalid_configuration"


__all__ = [
    "AlreadyFinalized",
    "DomainError",
    "DuplicateBooking",
    "DuplicateFavorite",
    "DuplicateReservation",
    "InvalidConfiguration",
    "InvalidTransition",
    "LimitReached",
    "NotAuthorized",
    "NotFound",
    "PropertyUnavailable",
]
