from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import configure_mappers

import pytest

from app.db.base import Base
from app.models.seat import Seat, SeatStatus


def test_mappers_configure():
    configure_mappers()


def test_all_tables_created(engine):
    assert set(inspect(engine).get_table_names()) == set(Base.metadata.tables)


def test_seat_refs_must_match_status(db, movie_session):
    db.add(Seat(session_id=movie_session.id, row_label="A", seat_number=1, status=SeatStatus.RESERVED))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_seat_identity_is_unique_per_session(db, movie_session):
    db.add(Seat(session_id=movie_session.id, row_label="A", seat_number=1, status=SeatStatus.AVAILABLE))
    db.add(Seat(session_id=movie_session.id, row_label="A", seat_number=1, status=SeatStatus.AVAILABLE))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
