from datetime import timedelta

import pytest

from app.core.exceptions import (
    AccessDenied,
    AlreadyUsed,
    CancellationWindowClosed,
    PaymentNotRefundable,
    SessionAlreadyOccurred,
    TicketAlreadyCancelled,
    TicketNotFound,
)
from app.models.payment import PaymentMethod, PaymentStatus
from app.models.seat import Seat, SeatStatus
from app.models.ticket import TicketStatus
from app.schemas.payment import PaymentDetails
from app.services.cancellation import cancel
from app.services.holds import create_hold
from app.services.seat_grid import list_seats
from app.services.settlement import resolve_pix_payment, settle
from app.services.tickets import get_ticket, list_tickets, ticket_qr_code


@pytest.fixture
def purchase(db, make_session, user_id, card, now):
    """Two tickets bought together for a session starting in exactly 3 days."""
    session = make_session(starts_at=now + timedelta(days=3))
    hold = create_hold(db, session.id, user_id, [("C", 4), ("C", 5)], [("ADULT", 1), ("STUDENT", 1)], now=now)
    payment = settle(db, hold.id, user_id, PaymentMethod.CREDIT, PaymentDetails(**card), 43, now=now)
    return session, payment


def _ticket(payment, number):
    return next(t for t in payment.tickets if t.seat_number == number)


def test_cancel_25_hours_before_session(db, purchase, user_id):
    session, payment = purchase
    ticket = _ticket(payment, 4)
    when = session.starts_at - timedelta(hours=25)

    cancelled = cancel(db, ticket.id, user_id, now=when)

    assert cancelled.status == TicketStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    seats = {(s.row_label, s.seat_number): s for s in list_seats(db, session.id, now=when)}
    assert seats[("C", 4)].status == SeatStatus.AVAILABLE
    assert seats[("C", 4)].ticket_id is None
    assert seats[("C", 5)].status == SeatStatus.OCCUPIED
    db.refresh(payment)
    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refunded_at is not None


def test_refund_covers_whole_payment(db, purchase, user_id):
    session, payment = purchase

    cancel(db, _ticket(payment, 5).id, user_id, now=session.starts_at - timedelta(days=2))

    db.refresh(payment)
    assert payment.status == PaymentStatus.REFUNDED
    assert _ticket(payment, 4).status == TicketStatus.ACTIVE


def test_cancel_23_hours_before_session_is_refused(db, purchase, user_id):
    session, payment = purchase
    ticket = _ticket(payment, 4)

    with pytest.raises(CancellationWindowClosed):
        cancel(db, ticket.id, user_id, now=session.starts_at - timedelta(hours=23))

    db.refresh(ticket)
    db.refresh(payment)
    assert ticket.status == TicketStatus.ACTIVE
    assert payment.status == PaymentStatus.COMPLETED
    assert db.query(Seat).filter(Seat.status == SeatStatus.OCCUPIED).count() == 2


def test_cancel_after_session_started(db, purchase, user_id):
    session, payment = purchase

    with pytest.raises(SessionAlreadyOccurred):
        cancel(db, _ticket(payment, 4).id, user_id, now=session.starts_at + timedelta(minutes=1))


def test_cancel_someone_elses_ticket(db, purchase, other_user_id, now):
    _, payment = purchase

    with pytest.raises(AccessDenied):
        cancel(db, _ticket(payment, 4).id, other_user_id, now=now)


def test_cancel_unknown_ticket(db, purchase, user_id, now):
    _, payment = purchase

    with pytest.raises(TicketNotFound):
        cancel(db, payment.id, user_id, now=now)


def test_cancel_used_ticket(db, purchase, user_id, now):
    _, payment = purchase
    ticket = _ticket(payment, 4)
    ticket.status = TicketStatus.USED
    db.commit()

    with pytest.raises(AlreadyUsed):
        cancel(db, ticket.id, user_id, now=now)


def test_cancel_twice(db, purchase, user_id, now):
    _, payment = purchase
    ticket = _ticket(payment, 4)
    cancel(db, ticket.id, user_id, now=now)

    with pytest.raises(TicketAlreadyCancelled):
        cancel(db, ticket.id, user_id, now=now)


def test_cancelled_seat_can_be_held_again(db, purchase, user_id, other_user_id, now):
    session, payment = purchase
    cancel(db, _ticket(payment, 4).id, user_id, now=now)

    hold = create_hold(db, session.id, other_user_id, [("C", 4)], [("ADULT", 1)], now=now)

    seat = db.query(Seat).filter(Seat.row_label == "C", Seat.seat_number == 4).one()
    assert seat.status == SeatStatus.RESERVED
    assert seat.hold_id == hold.id


def test_ticket_queries(db, purchase, user_id, other_user_id, now):
    _, payment = purchase
    ticket = _ticket(payment, 4)

    assert {t.id for t in list_tickets(db, user_id)} == {t.id for t in payment.tickets}
    assert list_tickets(db, other_user_id) == []

    cancel(db, ticket.id, user_id, now=now)
    assert [t.id for t in list_tickets(db, user_id, TicketStatus.CANCELLED)] == [ticket.id]

    with pytest.raises(TicketNotFound):
        get_ticket(db, ticket.id, other_user_id)


def test_qr_code_is_generated_once(db, purchase, user_id):
    _, payment = purchase
    ticket = get_ticket(db, _ticket(payment, 4).id, user_id)
    assert ticket.qr_code is None

    first = ticket_qr_code(db, ticket)
    second = ticket_qr_code(db, get_ticket(db, ticket.id, user_id))

    assert first == second
    assert first.endswith(f"/{ticket.id}/verify")


def test_cancel_second_ticket_keeps_original_refund(db, purchase, user_id, now):
    session, payment = purchase
    first_at = session.starts_at - timedelta(days=2)
    cancel(db, _ticket(payment, 4).id, user_id, now=first_at)
    db.refresh(payment)
    refunded_at = payment.refunded_at

    second = cancel(db, _ticket(payment, 5).id, user_id, now=first_at + timedelta(hours=1))

    assert second.status == TicketStatus.CANCELLED
    db.refresh(payment)
    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refunded_at == refunded_at
    assert db.query(Seat).filter(Seat.status == SeatStatus.OCCUPIED).count() == 0


def test_cancel_ticket_with_pending_pix_payment_is_refused(db, movie_session, user_id, now):
    hold = create_hold(db, movie_session.id, user_id, [("A", 1)], [("ADULT", 1)], now=now)
    payment = settle(db, hold.id, user_id, PaymentMethod.PIX, None, 25, now=now)
    ticket = payment.tickets[0]

    with pytest.raises(PaymentNotRefundable):
        cancel(db, ticket.id, user_id, now=now)

    db.refresh(ticket)
    db.refresh(payment)
    assert ticket.status == TicketStatus.ACTIVE
    assert payment.status == PaymentStatus.PENDING
    assert payment.refunded_at is None

    # The provider can still confirm the charge afterwards
    assert resolve_pix_payment(db, payment.id, succeeded=True, now=now).status == PaymentStatus.COMPLETED


def test_cancel_ticket_for_deactivated_session(db, purchase, user_id, now):
    session, payment = purchase
    session.is_active = False
    db.commit()

    cancelled = cancel(db, _ticket(payment, 4).id, user_id, now=now)

    assert cancelled.status == TicketStatus.CANCELLED
    db.refresh(payment)
    assert payment.status == PaymentStatus.REFUNDED
