import uuid
from sqlalchemy import Column, String, Boolean, DateTime, func, DECIMAL, Integer, ForeignKey, JSON, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base

# Catalog records are owned by the catalog service; the booking engine only
# reads them (room geometry, session schedule, promotion rules).

class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("row_count BETWEEN 1 AND 26", name="ck_rooms_rows"),
        CheckConstraint("seats_per_row >= 1", name="ck_rooms_seats_per_row"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cinema_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    row_count = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)

    sessions = relationship("MovieSession", back_populates="room")

class MovieSession(Base):
    __tablename__ = "movie_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    cinema_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False, index=True)
    starts_at = Column(DateTime(timezone=True), nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    room = relationship("Room", back_populates="sessions")
    seats = relationship("Seat", back_populates="session")

class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    discount = Column(DECIMAL(5, 2), nullable=False) # percent, 0-100
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True)
    applicable_movies = Column(JSON, nullable=True) # list of movie ids; empty = all
    applicable_cinemas = Column(JSON, nullable=True) # list of cinema ids; empty = all
    created_at = Column(DateTime(timezone=True), server_default=func.now())
