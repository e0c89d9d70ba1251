"""
Settlement: turn a live hold and a payment into tickets.

Everything happens inside one transaction. Either the payment, its tickets,
the OCCUPIED seats and the SETTLED hold are all written, or nothing is.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.exceptions import (
    AmountMismatch,
    HoldExpired,
    HoldNotFound,
    HoldOwnershipMismatch,
    InvalidInstallments,
    PaymentDetailsMissing,
    PaymentNotFound,
    PaymentNotPending,
)
from app.db.session import atomic
from app.models.hold import Hold, HoldStatus
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.seat import Seat, SeatStatus
from app.models.ticket import Ticket, TicketType
from app.schemas.payment import PaymentDetails
from app.services.catalog import get_session, get_ticket_rate
from app.services.holds import expire_hold, is_expired
from app.services.promotions import validate_promotion
from app.services.seat_grid import as_seat_refs, seat_filter
from app.utils.clock import resolve_now
from app.utils.codes import generate_pix_reference

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class Quote:
    subtotal: Decimal
    discount_percent: Optional[Decimal]
    total: Decimal


@dataclass
class PaymentTerms:
    status: PaymentStatus
    installments: Optional[int] = None
    card_last_four: Optional[str] = None
    pix_code: Optional[str] = None
    pix_qr_code: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def quote_hold(
    db: Session,
    hold: Hold,
    promotion_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Quote:
    """Price a hold from the rate table, minus an optional promotion."""
    subtotal = sum(
        (get_ticket_rate(t["type"]) * t["count"] for t in hold.ticket_types),
        Decimal("0"),
    ).quantize(CENT)

    if not promotion_code:
        return Quote(subtotal=subtotal, discount_percent=None, total=subtotal)

    session = get_session(db, hold.session_id)
    discount = validate_promotion(db, promotion_code, session, resolve_now(now))
    total = (subtotal * (Decimal("100") - discount) / Decimal("100")).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    return Quote(subtotal=subtotal, discount_percent=discount, total=total)


def validate_payment_details(
    method: PaymentMethod,
    details: Optional[PaymentDetails],
) -> PaymentTerms:
    """Check method-specific requirements and work out the initial payment status."""
    method = PaymentMethod(method)

    if method == PaymentMethod.PIX:
        pix_code, pix_qr_code = generate_pix_reference()
        return PaymentTerms(
            status=PaymentStatus.PENDING,
            pix_code=pix_code,
            pix_qr_code=pix_qr_code,
        )

    # CREDIT / DEBIT are authorised synchronously
    required = ("card_number", "card_name", "expiry_date", "cvv")
    missing = [f for f in required if not (details and getattr(details, f))]
    if missing:
        raise PaymentDetailsMissing(
            f"Card details are required for {method.value} payments: missing {', '.join(missing)}"
        )

    installments = details.installments if details.installments is not None else 1
    if not 1 <= installments <= settings.MAX_INSTALLMENTS:
        raise InvalidInstallments(
            f"Installments must be between 1 and {settings.MAX_INSTALLMENTS}"
        )

    return PaymentTerms(
        status=PaymentStatus.COMPLETED,
        installments=installments,
        card_last_four=details.card_number[-4:],
    )


def _expand_ticket_types(hold: Hold) -> List[TicketType]:
    """One ticket type per seat, in the order the types were declared."""
    return [
        TicketType(t["type"])
        for t in hold.ticket_types
        for _ in range(t["count"])
    ]


def _load_active_hold(db: Session, hold_id: UUID, user_id: UUID, now: datetime) -> Hold:
    hold = db.query(Hold).filter(Hold.id == hold_id).with_for_update().first()
    if not hold:
        raise HoldNotFound(f"Hold {hold_id} not found")
    if hold.status != HoldStatus.ACTIVE:
        raise HoldExpired(f"Hold {hold_id} is {hold.status.value.lower()}")
    if is_expired(hold, now):
        raise HoldExpired(f"Hold {hold_id} expired at {hold.expires_at}")
    if hold.user_id != user_id:
        raise HoldOwnershipMismatch("Hold belongs to another user")
    return hold


# ---------------------------------------------------------------------------
# Settle
# ---------------------------------------------------------------------------


def settle(
    db: Session,
    hold_id: UUID,
    user_id: UUID,
    payment_method: PaymentMethod,
    payment_details: Optional[PaymentDetails],
    declared_amount: Decimal,
    promotion_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Payment:
    """
    Convert an ACTIVE hold into a payment plus one ticket per held seat.

    Fails with HoldNotFound / HoldExpired / HoldOwnershipMismatch when the
    hold cannot be used, AmountMismatch when ``declared_amount`` differs from
    the computed price by more than AMOUNT_TOLERANCE, PromotionNotApplicable,
    PaymentDetailsMissing or InvalidInstallments. On failure nothing is
    written, except that a hold found past its TTL is expired on the spot.
    """
    now = resolve_now(now)

    try:
        with atomic(db):
            hold = _load_active_hold(db, hold_id, user_id, now)

            quote = quote_hold(db, hold, promotion_code, now)
            declared = Decimal(str(declared_amount))
            if abs(quote.total - declared) > settings.AMOUNT_TOLERANCE:
                raise AmountMismatch(
                    f"Declared amount {declared} does not match ticket prices ({quote.total})"
                )

            terms = validate_payment_details(payment_method, payment_details)

            purchase_id = uuid.uuid4()
            payment = Payment(
                user_id=user_id,
                purchase_id=purchase_id,
                amount=quote.total,
                subtotal=quote.subtotal,
                discount_percent=quote.discount_percent,
                promotion_code=promotion_code if quote.discount_percent is not None else None,
                method=PaymentMethod(payment_method),
                status=terms.status,
                installments=terms.installments,
                card_last_four=terms.card_last_four,
                pix_code=terms.pix_code,
                pix_qr_code=terms.pix_qr_code,
            )
            db.add(payment)
            db.flush()

            seat_refs = as_seat_refs(hold.seat_refs)
            for ref, ticket_type in zip(seat_refs, _expand_ticket_types(hold)):
                ticket = Ticket(
                    session_id=hold.session_id,
                    user_id=user_id,
                    payment_id=payment.id,
                    purchase_id=purchase_id,
                    ticket_type=ticket_type,
                    price=get_ticket_rate(ticket_type),
                    seat_row=ref.row,
                    seat_number=ref.number,
                )
                db.add(ticket)
                db.flush()

                occupied = (
                    db.query(Seat)
                    .filter(
                        seat_filter(hold.session_id, [ref]),
                        Seat.hold_id == hold.id,
                        Seat.status == SeatStatus.RESERVED,
                    )
                    .update(
                        {"status": SeatStatus.OCCUPIED, "ticket_id": ticket.id, "hold_id": None},
                        synchronize_session=False,
                    )
                )
                if occupied != 1:
                    raise HoldExpired(f"Hold {hold_id} no longer covers seat {ref.label}")

            settled = (
                db.query(Hold)
                .filter(Hold.id == hold.id, Hold.status == HoldStatus.ACTIVE)
                .update(
                    {"status": HoldStatus.SETTLED, "closed_at": now, "payment_id": payment.id},
                    synchronize_session=False,
                )
            )
            if settled != 1:
                raise HoldExpired(f"Hold {hold_id} was closed concurrently")
    except HoldExpired:
        # Free the seats of a hold that ran out, so readers see them again
        expire_hold(db, hold_id, now=now)
        raise

    db.refresh(payment)
    logger.info(
        "Hold %s settled: payment %s (%s, %s) for %s, %d ticket(s)",
        hold_id, payment.id, payment.method.value, payment.status.value,
        payment.amount, len(payment.tickets),
    )
    return payment


# ---------------------------------------------------------------------------
# Payment lookups & PIX confirmation
# ---------------------------------------------------------------------------


def get_payment(db: Session, payment_id: UUID, user_id: UUID) -> Payment:
    payment = (
        db.query(Payment)
        .options(joinedload(Payment.tickets))
        .filter(Payment.id == payment_id, Payment.user_id == user_id)
        .first()
    )
    if not payment:
        raise PaymentNotFound(f"Payment {payment_id} not found")
    return payment


def resolve_pix_payment(
    db: Session,
    payment_id: UUID,
    succeeded: bool,
    now: Optional[datetime] = None,
) -> Payment:
    """
    Apply the PIX provider's verdict to a PENDING payment. A failed charge
    voids its tickets and gives their seats back.
    """
    from app.services.cancellation import void_payment_tickets

    now = resolve_now(now)
    with atomic(db):
        payment = db.query(Payment).filter(Payment.id == payment_id).with_for_update().first()
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found")
        if payment.status != PaymentStatus.PENDING:
            raise PaymentNotPending(
                f"Payment {payment_id} is {payment.status.value}, not PENDING"
            )

        if succeeded:
            payment.status = PaymentStatus.COMPLETED
        else:
            payment.status = PaymentStatus.FAILED
            void_payment_tickets(db, payment, now)

    db.refresh(payment)
    logger.info("PIX payment %s resolved as %s", payment_id, payment.status.value)
    return payment
