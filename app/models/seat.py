import uuid
import enum
from sqlalchemy import Column, String, Integer, ForeignKey, Uuid, Enum as SAEnum, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base

class SeatStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    OCCUPIED = "OCCUPIED"

class Seat(Base):
    """
    A seat of one session. Rows are only stored once a hold touches the seat;
    a missing row means the seat is available.
    """
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("session_id", "row_label", "seat_number", name="uq_seats_session_row_number"),
        # hold_id is set iff RESERVED, ticket_id iff OCCUPIED
        CheckConstraint(
            "(status = 'AVAILABLE' AND hold_id IS NULL AND ticket_id IS NULL)"
            " OR (status = 'RESERVED' AND hold_id IS NOT NULL AND ticket_id IS NULL)"
            " OR (status = 'OCCUPIED' AND hold_id IS NULL AND ticket_id IS NOT NULL)",
            name="ck_seats_status_refs",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("movie_sessions.id"), nullable=False, index=True)
    row_label = Column(String(1), nullable=False)
    seat_number = Column(Integer, nullable=False)
    status = Column(SAEnum(SeatStatus, native_enum=False, length=20), nullable=False, default=SeatStatus.AVAILABLE, index=True)
    hold_id = Column(Uuid(as_uuid=True), ForeignKey("holds.id"), nullable=True, index=True)
    ticket_id = Column(Uuid(as_uuid=True), ForeignKey("tickets.id"), nullable=True, index=True)

    session = relationship("MovieSession", back_populates="seats")

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"
