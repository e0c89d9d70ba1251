"""
Read-only lookups against the catalog: room geometry, session schedule and the
ticket rate table.
"""
from datetime import datetime
from decimal import Decimal
from typing import Tuple
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.exceptions import SessionNotFound
from app.models.catalog import MovieSession, Room
from app.models.ticket import TicketType
from app.utils.clock import ensure_utc


def get_session(db: Session, session_id: UUID) -> MovieSession:
    session = (
        db.query(MovieSession)
        .options(joinedload(MovieSession.room))
        .filter(MovieSession.id == session_id, MovieSession.is_active == True)  # noqa: E712
        .first()
    )
    if not session:
        raise SessionNotFound(f"Session {session_id} not found")
    return session


def get_room_geometry(db: Session, room_id: UUID) -> Tuple[int, int]:
    """Return (rows, seats_per_row) for a room."""
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise SessionNotFound(f"Room {room_id} not found")
    return room.row_count, room.seats_per_row


def get_session_schedule(db: Session, session_id: UUID) -> datetime:
    """Return the scheduled start of a session as aware UTC, active or not."""
    starts_at = (
        db.query(MovieSession.starts_at)
        .filter(MovieSession.id == session_id)
        .scalar()
    )
    if starts_at is None:
        raise SessionNotFound(f"Session {session_id} not found")
    return ensure_utc(starts_at)


def get_ticket_rate(ticket_type: TicketType) -> Decimal:
    return Decimal(settings.TICKET_PRICES[TicketType(ticket_type).value])
