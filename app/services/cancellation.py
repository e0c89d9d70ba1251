"""
Ticket cancellation and refunds.

Cancelling any ticket refunds the whole payment it was bought with, even when
other tickets of that purchase stay active.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AccessDenied,
    AlreadyUsed,
    CancellationWindowClosed,
    PaymentNotRefundable,
    SessionAlreadyOccurred,
    TicketAlreadyCancelled,
    TicketNotFound,
)
from app.db.session import atomic
from app.models.payment import Payment, PaymentStatus
from app.models.seat import Seat, SeatStatus
from app.models.ticket import Ticket, TicketStatus
from app.services.catalog import get_session_schedule
from app.utils.clock import resolve_now

logger = logging.getLogger(__name__)


def _free_seat(db: Session, ticket: Ticket) -> int:
    return (
        db.query(Seat)
        .filter(Seat.ticket_id == ticket.id, Seat.status == SeatStatus.OCCUPIED)
        .update(
            {"status": SeatStatus.AVAILABLE, "ticket_id": None},
            synchronize_session=False,
        )
    )


def check_cancellation_window(starts_at: datetime, now: datetime) -> None:
    if starts_at <= now:
        raise SessionAlreadyOccurred("The session has already started")
    if starts_at - now < timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS):
        raise CancellationWindowClosed(
            f"Tickets can only be cancelled up to {settings.CANCELLATION_CUTOFF_HOURS} hours before the session"
        )


def cancel(db: Session, ticket_id: UUID, user_id: UUID, now: Optional[datetime] = None) -> Ticket:
    """Cancel an ACTIVE ticket, free its seat and refund its payment."""
    now = resolve_now(now)

    with atomic(db):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).with_for_update().first()
        if not ticket:
            raise TicketNotFound(f"Ticket {ticket_id} not found")
        if ticket.user_id != user_id:
            raise AccessDenied("Ticket belongs to another user")
        if ticket.status == TicketStatus.USED:
            raise AlreadyUsed("Ticket has already been used")
        if ticket.status == TicketStatus.CANCELLED:
            raise TicketAlreadyCancelled("Ticket is already cancelled")

        check_cancellation_window(get_session_schedule(db, ticket.session_id), now)

        payment = db.query(Payment).filter(Payment.id == ticket.payment_id).with_for_update().first()
        if payment.status not in (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED):
            raise PaymentNotRefundable(
                f"Payment {payment.id} is {payment.status.value}; only completed payments can be refunded"
            )

        ticket.status = TicketStatus.CANCELLED
        ticket.cancelled_at = now
        _free_seat(db, ticket)

        # A REFUNDED payment was refunded in full by an earlier cancellation
        if payment.status == PaymentStatus.COMPLETED:
            payment.status = PaymentStatus.REFUNDED
            payment.refunded_at = now

    db.refresh(ticket)
    logger.info("Ticket %s cancelled by user %s, payment %s refunded", ticket_id, user_id, ticket.payment_id)
    return ticket


def void_payment_tickets(db: Session, payment: Payment, now: datetime) -> int:
    """
    Cancel every ACTIVE ticket of a payment that never went through and free
    their seats. Runs inside the caller's transaction.
    """
    voided = 0
    for ticket in db.query(Ticket).filter(
        Ticket.payment_id == payment.id,
        Ticket.status == TicketStatus.ACTIVE,
    ).all():
        ticket.status = TicketStatus.CANCELLED
        ticket.cancelled_at = now
        _free_seat(db, ticket)
        voided += 1
    return voided
