import uuid

import pytest

from app.core.exceptions import InvalidSeatReference, SessionNotFound
from app.models.seat import Seat, SeatStatus
from app.services.holds import create_hold
from app.services.seat_grid import SeatRef, list_seats, materialize_seats, seats_exist


def test_list_seats_covers_full_grid_in_order(db, make_session, now):
    session = make_session(rows=3, seats_per_row=4)

    seats = list_seats(db, session.id, now=now)

    assert len(seats) == 12
    labels = [(s.row_label, s.seat_number) for s in seats]
    assert labels == [(r, n) for r in "ABC" for n in range(1, 5)]
    assert len(set(labels)) == 12
    assert all(s.status == SeatStatus.AVAILABLE for s in seats)


def test_list_seats_does_not_persist_untouched_seats(db, movie_session, now):
    list_seats(db, movie_session.id, now=now)

    assert db.query(Seat).count() == 0


def test_list_seats_is_deterministic(db, movie_session, user_id, now):
    create_hold(db, movie_session.id, user_id, [("B", 2), ("B", 3)], [("ADULT", 2)], now=now)

    first = [(s.row_label, s.seat_number, s.status) for s in list_seats(db, movie_session.id, now=now)]
    second = [(s.row_label, s.seat_number, s.status) for s in list_seats(db, movie_session.id, now=now)]

    assert first == second
    reserved = [(r, n) for r, n, status in first if status == SeatStatus.RESERVED]
    assert reserved == [("B", 2), ("B", 3)]


def test_list_seats_unknown_session(db, now):
    with pytest.raises(SessionNotFound):
        list_seats(db, uuid.uuid4(), now=now)


def test_seats_exist_within_bounds(db, make_session):
    session = make_session(rows=2, seats_per_row=5)

    assert seats_exist(db, session.id, [SeatRef("A", 1), SeatRef("B", 5)])


@pytest.mark.parametrize("ref", [SeatRef("C", 1), SeatRef("A", 0), SeatRef("A", 6), SeatRef("a", 1), SeatRef("", 1)])
def test_seats_exist_rejects_out_of_bounds(db, make_session, ref):
    session = make_session(rows=2, seats_per_row=5)

    with pytest.raises(InvalidSeatReference) as exc_info:
        seats_exist(db, session.id, [SeatRef("A", 1), ref])

    assert exc_info.value.seats == [tuple(ref)]


def test_materialize_seats_is_idempotent(db, movie_session):
    refs = [SeatRef("A", 1), SeatRef("A", 2)]

    materialize_seats(db, movie_session.id, refs)
    materialize_seats(db, movie_session.id, refs + [SeatRef("A", 3)])
    db.commit()

    rows = db.query(Seat).filter(Seat.session_id == movie_session.id).all()
    assert sorted((s.row_label, s.seat_number) for s in rows) == [("A", 1), ("A", 2), ("A", 3)]
    assert all(s.status == SeatStatus.AVAILABLE for s in rows)
