from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user_id
from app.core.config import settings
from app.models.hold import Hold
from app.models.seat import SeatStatus
from app.schemas.seat import SeatMapResponse, SeatRow, SeatStatusOut
from app.schemas.hold import Hold as HoldSchema, HoldCreate
from app.services.seat_grid import list_seats
from app.services.holds import create_hold, get_hold, release_hold

sessions_router = APIRouter(prefix="/sessions", tags=["Seats & Holds"])
holds_router = APIRouter(prefix="/holds", tags=["Seats & Holds"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_hold(hold: Hold) -> HoldSchema:
    return HoldSchema(
        id=hold.id,
        session_id=hold.session_id,
        status=hold.status.value,
        seats=[{"row": r, "number": n} for r, n in hold.seat_refs],
        ticket_types=hold.ticket_types,
        created_at=hold.created_at,
        expires_at=hold.expires_at,
        ttl_seconds=settings.HOLD_TTL_MINUTES * 60,
        payment_id=hold.payment_id,
    )


# ---------------------------------------------------------------------------
# Public: Seat map (seat selection screen)
# ---------------------------------------------------------------------------


@sessions_router.get("/{session_id}/seats", response_model=SeatMapResponse)
def get_seat_map(
    session_id: UUID,
    db: Session = Depends(get_db),
):
    """
    Returns every seat of the session grouped by row, A..Z.
    Expired holds are released before the response is built.
    Does not require authentication; anyone can view availability.
    """
    seats = list_seats(db, session_id)

    rows_dict: dict[str, list] = {}
    for seat in seats:
        rows_dict.setdefault(seat.row_label, []).append(
            SeatStatusOut(number=seat.seat_number, status=seat.status.value)
        )

    return SeatMapResponse(
        session_id=session_id,
        total_seats=len(seats),
        available_seats=sum(1 for s in seats if s.status == SeatStatus.AVAILABLE),
        rows=[SeatRow(label=label, seats=row) for label, row in rows_dict.items()],
    )


# ---------------------------------------------------------------------------
# Holds (auth required)
# ---------------------------------------------------------------------------


@sessions_router.post(
    "/{session_id}/holds",
    response_model=HoldSchema,
    status_code=status.HTTP_201_CREATED,
)
def hold_seats(
    session_id: UUID,
    body: HoldCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Hold a set of seats for the authenticated user for 15 minutes.
    Either every requested seat is held or none is.
    """
    hold = create_hold(
        db,
        session_id=session_id,
        user_id=user_id,
        seat_refs=[(s.row, s.number) for s in body.seats],
        ticket_type_counts=[(t.type, t.count) for t in body.ticket_types],
    )
    return _serialize_hold(hold)


@holds_router.get("/{hold_id}", response_model=HoldSchema)
def read_hold(
    hold_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    return _serialize_hold(get_hold(db, hold_id, user_id))


@holds_router.delete("/{hold_id}", response_model=HoldSchema)
def release_seat_hold(
    hold_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Release a hold (e.g. user goes back / cancels checkout)."""
    return _serialize_hold(release_hold(db, hold_id, user_id))
