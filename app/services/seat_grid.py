"""
The seat grid of a session: every addressable seat derived from the room's
geometry, overlaid with the seat rows that have actually been persisted.
"""
import string
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidSeatReference
from app.models.catalog import MovieSession
from app.models.seat import Seat, SeatStatus
from app.services.catalog import get_room_geometry, get_session
from app.utils.clock import resolve_now

ROW_LABELS = string.ascii_uppercase


class SeatRef(NamedTuple):
    row: str
    number: int

    @property
    def label(self) -> str:
        return f"{self.row}{self.number}"


def as_seat_refs(refs: Iterable[Sequence]) -> List[SeatRef]:
    """Accept (row, number) pairs, lists (as stored in JSON) or SeatRefs."""
    return [SeatRef(str(r), int(n)) for r, n in refs]


def seat_filter(session_id: UUID, seat_refs: Sequence[SeatRef]):
    """SQL criterion matching exactly the given seats of a session."""
    return and_(
        Seat.session_id == session_id,
        or_(*[
            and_(Seat.row_label == ref.row, Seat.seat_number == ref.number)
            for ref in seat_refs
        ]),
    )


def grid_labels(row_count: int, seats_per_row: int) -> List[SeatRef]:
    return [
        SeatRef(ROW_LABELS[r], n)
        for r in range(row_count)
        for n in range(1, seats_per_row + 1)
    ]


def seats_exist(db: Session, session_id: UUID, seat_refs: Sequence[SeatRef]) -> bool:
    """Check every seat lies inside the room; raise InvalidSeatReference otherwise."""
    session = get_session(db, session_id)
    row_count, seats_per_row = get_room_geometry(db, session.room_id)
    valid_rows = ROW_LABELS[:row_count]

    outside = [
        ref for ref in seat_refs
        if ref.row not in valid_rows or len(ref.row) != 1 or not 1 <= ref.number <= seats_per_row
    ]
    if outside:
        raise InvalidSeatReference(outside)
    return True


def materialize_seats(db: Session, session_id: UUID, seat_refs: Sequence[SeatRef]) -> None:
    """
    Make sure a seat row exists for every ref. Existing rows are left untouched,
    so calling this twice (or concurrently) is harmless.
    """
    values = [
        {
            "id": uuid.uuid4(),
            "session_id": session_id,
            "row_label": ref.row,
            "seat_number": ref.number,
            "status": SeatStatus.AVAILABLE,
        }
        for ref in seat_refs
    ]
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = insert(Seat).values(values).on_conflict_do_nothing(
        index_elements=["session_id", "row_label", "seat_number"]
    )
    db.execute(stmt)


def persisted_seats(db: Session, session_id: UUID) -> Dict[Tuple[str, int], Seat]:
    return {
        (s.row_label, s.seat_number): s
        for s in db.query(Seat).filter(Seat.session_id == session_id).all()
    }


def list_seats(db: Session, session_id: UUID, now: Optional[datetime] = None) -> List[Seat]:
    """
    Return every seat of a session, rows A..Z then seat number ascending.
    Seats never touched by a hold are returned as transient AVAILABLE records.
    Holds that have run past their expiry are released first.
    """
    from app.services.holds import expire_stale_holds

    session: MovieSession = get_session(db, session_id)
    expire_stale_holds(db, session_id=session_id, now=resolve_now(now))

    row_count, seats_per_row = get_room_geometry(db, session.room_id)
    stored = persisted_seats(db, session_id)

    return [
        stored.get((ref.row, ref.number))
        or Seat(
            session_id=session_id,
            row_label=ref.row,
            seat_number=ref.number,
            status=SeatStatus.AVAILABLE,
        )
        for ref in grid_labels(row_count, seats_per_row)
    ]
