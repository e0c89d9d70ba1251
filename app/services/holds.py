"""
Seat holds: the all-or-nothing locking protocol.

A hold flips a set of seats from AVAILABLE to RESERVED in a single conditional
UPDATE. The number of rows the UPDATE touched is compared with the number of
seats requested; if a concurrent writer got to any of them first the whole
transaction is rolled back, so a hold never covers fewer seats than asked for
and no seat is ever held twice.

Expiry is lazy: any read or write that touches a session first releases holds
whose TTL has passed. The background sweep in ``app.main`` only keeps the
table tidy; nothing depends on it having run.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    HoldExpired,
    HoldNotFound,
    HoldOwnershipMismatch,
    InvalidHoldRequest,
    SeatUnavailable,
)
from app.db.session import atomic
from app.models.hold import Hold, HoldStatus
from app.models.seat import Seat, SeatStatus
from app.models.ticket import TicketType
from app.services.seat_grid import SeatRef, as_seat_refs, materialize_seats, seat_filter, seats_exist
from app.utils.clock import ensure_utc, resolve_now

logger = logging.getLogger(__name__)


def is_expired(hold: Hold, now: datetime) -> bool:
    return ensure_utc(now) > ensure_utc(hold.expires_at)


def normalize_ticket_types(ticket_type_counts) -> List[Dict]:
    """
    Accept ``[{"type": ..., "count": ...}]`` or ``[(type, count)]`` and return
    the JSON form stored on the hold, keeping declaration order.
    """
    normalized = []
    for entry in ticket_type_counts:
        if isinstance(entry, dict):
            ticket_type, count = entry["type"], entry["count"]
        else:
            ticket_type, count = entry
        try:
            ticket_type = TicketType(ticket_type)
        except ValueError:
            raise InvalidHoldRequest(f"Unknown ticket type '{ticket_type}'")
        normalized.append({"type": ticket_type.value, "count": int(count)})
    return normalized


def _validate_request(seat_refs: Sequence[SeatRef], ticket_types: List[Dict]) -> None:
    if not seat_refs:
        raise InvalidHoldRequest("At least one seat is required")
    if len(set(seat_refs)) != len(seat_refs):
        raise InvalidHoldRequest("Duplicate seats in request")
    if any(t["count"] < 1 for t in ticket_types):
        raise InvalidHoldRequest("Ticket type counts must be positive")
    total = sum(t["count"] for t in ticket_types)
    if total != len(seat_refs):
        raise InvalidHoldRequest(
            f"Ticket types cover {total} seat(s) but {len(seat_refs)} were requested"
        )


def _release_seats(db: Session, hold: Hold) -> int:
    return (
        db.query(Seat)
        .filter(Seat.hold_id == hold.id, Seat.status == SeatStatus.RESERVED)
        .update(
            {"status": SeatStatus.AVAILABLE, "hold_id": None},
            synchronize_session=False,
        )
    )


def _close_hold(db: Session, hold: Hold, status: HoldStatus, now: datetime) -> bool:
    """Move an ACTIVE hold to a terminal status; False if someone else already did."""
    updated = (
        db.query(Hold)
        .filter(Hold.id == hold.id, Hold.status == HoldStatus.ACTIVE)
        .update({"status": status, "closed_at": now}, synchronize_session=False)
    )
    return updated == 1


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def expire_hold(db: Session, hold_id: UUID, now: Optional[datetime] = None) -> bool:
    """
    Release an ACTIVE hold whose TTL has passed. Returns True if this call
    expired it; unknown, unexpired or already terminal holds are left alone.
    """
    now = resolve_now(now)
    with atomic(db):
        hold = db.query(Hold).filter(Hold.id == hold_id).with_for_update().first()
        if not hold or hold.status != HoldStatus.ACTIVE or not is_expired(hold, now):
            return False
        if not _close_hold(db, hold, HoldStatus.EXPIRED, now):
            return False
        released = _release_seats(db, hold)

    logger.info("Hold %s expired, %d seat(s) released", hold_id, released)
    return True


def expire_stale_holds(
    db: Session,
    session_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> int:
    """Expire every ACTIVE hold past its TTL, optionally for one session only."""
    now = resolve_now(now)
    query = db.query(Hold.id).filter(
        Hold.status == HoldStatus.ACTIVE,
        Hold.expires_at < now,
    )
    if session_id is not None:
        query = query.filter(Hold.session_id == session_id)
    stale_ids = [row.id for row in query.all()]

    return sum(1 for hold_id in stale_ids if expire_hold(db, hold_id, now=now))


# ---------------------------------------------------------------------------
# Create / read / release
# ---------------------------------------------------------------------------


def create_hold(
    db: Session,
    session_id: UUID,
    user_id: UUID,
    seat_refs,
    ticket_type_counts,
    now: Optional[datetime] = None,
) -> Hold:
    """
    Reserve ``seat_refs`` for ``user_id`` for HOLD_TTL_MINUTES.

    Raises InvalidHoldRequest before touching storage when the request is
    malformed, InvalidSeatReference for seats outside the room and
    SeatUnavailable when any requested seat is not AVAILABLE. Nothing is
    written unless every seat was reserved.
    """
    now = resolve_now(now)
    seat_refs = as_seat_refs(seat_refs)
    ticket_types = normalize_ticket_types(ticket_type_counts)
    _validate_request(seat_refs, ticket_types)

    seats_exist(db, session_id, seat_refs)
    expire_stale_holds(db, session_id=session_id, now=now)

    with atomic(db):
        materialize_seats(db, session_id, seat_refs)

        current = (
            db.query(Seat)
            .filter(seat_filter(session_id, seat_refs))
            .populate_existing()
            .with_for_update()
            .all()
        )
        conflicts = [
            SeatRef(s.row_label, s.seat_number)
            for s in current
            if s.status != SeatStatus.AVAILABLE
        ]
        if conflicts:
            raise SeatUnavailable(sorted(conflicts))

        hold = Hold(
            session_id=session_id,
            user_id=user_id,
            seat_refs=[list(ref) for ref in seat_refs],
            ticket_types=ticket_types,
            status=HoldStatus.ACTIVE,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.HOLD_TTL_MINUTES),
        )
        db.add(hold)
        db.flush()

        reserved = (
            db.query(Seat)
            .filter(seat_filter(session_id, seat_refs), Seat.status == SeatStatus.AVAILABLE)
            .update(
                {"status": SeatStatus.RESERVED, "hold_id": hold.id},
                synchronize_session=False,
            )
        )
        if reserved != len(seat_refs):
            # A concurrent hold won part of the set between our read and update
            taken = [
                SeatRef(s.row_label, s.seat_number)
                for s in db.query(Seat).populate_existing().filter(
                    seat_filter(session_id, seat_refs),
                    or_(Seat.hold_id.is_(None), Seat.hold_id != hold.id),
                ).all()
                if s.status != SeatStatus.AVAILABLE
            ]
            logger.warning(
                "Hold race lost for session %s: reserved %d of %d seat(s)",
                session_id, reserved, len(seat_refs),
            )
            raise SeatUnavailable(sorted(taken) or seat_refs)

    db.refresh(hold)
    logger.info(
        "Hold %s created for user %s: %d seat(s) in session %s until %s",
        hold.id, user_id, len(seat_refs), session_id, hold.expires_at,
    )
    return hold


def get_hold(db: Session, hold_id: UUID, user_id: UUID, now: Optional[datetime] = None) -> Hold:
    """Return one of the user's holds, expiring it first if its TTL has passed."""
    now = resolve_now(now)
    hold = db.query(Hold).filter(Hold.id == hold_id).first()
    if not hold:
        raise HoldNotFound(f"Hold {hold_id} not found")
    if hold.user_id != user_id:
        raise HoldOwnershipMismatch("Hold belongs to another user")
    if hold.status == HoldStatus.ACTIVE and is_expired(hold, now):
        expire_hold(db, hold_id, now=now)
        db.refresh(hold)
    return hold


def release_hold(db: Session, hold_id: UUID, user_id: UUID, now: Optional[datetime] = None) -> Hold:
    """Give the seats of an ACTIVE hold back before its TTL runs out."""
    hold = get_hold(db, hold_id, user_id, now=now)
    now = resolve_now(now)

    with atomic(db):
        if hold.status != HoldStatus.ACTIVE or not _close_hold(db, hold, HoldStatus.RELEASED, now):
            raise HoldExpired(f"Hold {hold_id} is no longer active")
        released = _release_seats(db, hold)

    db.refresh(hold)
    logger.info("Hold %s released by user %s, %d seat(s) freed", hold_id, user_id, released)
    return hold
