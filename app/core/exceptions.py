"""
Caller-facing failures raised by the booking engine.

Every error carries a stable ``kind`` (the class name), a human readable
``detail`` and the HTTP status a transport layer should map it to. None of
them are fatal: the operation that raised has already been rolled back.
"""
from typing import List, Optional, Sequence, Tuple


class BookingError(Exception):
    status_code = 400

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail()
        super().__init__(self.detail)

    @property
    def kind(self) -> str:
        return type(self).__name__

    @classmethod
    def default_detail(cls) -> str:
        return cls.__name__


# --- Seats & holds ---

class SeatUnavailable(BookingError):
    status_code = 409

    def __init__(self, seats: Sequence[Tuple[str, int]], detail: Optional[str] = None):
        self.seats: List[Tuple[str, int]] = [(r, n) for r, n in seats]
        labels = ", ".join(f"{r}{n}" for r, n in self.seats)
        super().__init__(detail or f"Seats not available: {labels}")


class InvalidSeatReference(BookingError):
    status_code = 400

    def __init__(self, seats: Sequence[Tuple[str, int]], detail: Optional[str] = None):
        self.seats: List[Tuple[str, int]] = [(r, n) for r, n in seats]
        labels = ", ".join(f"{r}{n}" for r, n in self.seats)
        super().__init__(detail or f"Seats outside the room layout: {labels}")


class InvalidHoldRequest(BookingError):
    status_code = 400


class SessionNotFound(BookingError):
    status_code = 404


class HoldNotFound(BookingError):
    status_code = 404


class HoldExpired(BookingError):
    status_code = 410


class HoldOwnershipMismatch(BookingError):
    status_code = 403


# --- Settlement ---

class AmountMismatch(BookingError):
    status_code = 400


class PromotionNotApplicable(BookingError):
    status_code = 400


class PaymentDetailsMissing(BookingError):
    status_code = 400


class InvalidInstallments(BookingError):
    status_code = 400


class PaymentNotFound(BookingError):
    status_code = 404


class PaymentNotPending(BookingError):
    status_code = 409


# --- Tickets & cancellation ---

class TicketNotFound(BookingError):
    status_code = 404


class AccessDenied(BookingError):
    status_code = 403


class AlreadyUsed(BookingError):
    status_code = 409


class TicketAlreadyCancelled(BookingError):
    status_code = 409


class SessionAlreadyOccurred(BookingError):
    status_code = 409


class CancellationWindowClosed(BookingError):
    status_code = 409


class PaymentNotRefundable(BookingError):
    status_code = 409
