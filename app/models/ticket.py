import uuid
import enum
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base

class TicketType(str, enum.Enum):
    ADULT = "ADULT"
    CHILD = "CHILD"
    SENIOR = "SENIOR"
    STUDENT = "STUDENT"

class TicketStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    USED = "USED" # set by check-in, outside this service
    CANCELLED = "CANCELLED"

class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("movie_sessions.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id"), nullable=False, index=True)
    purchase_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    ticket_type = Column(SAEnum(TicketType, native_enum=False, length=20), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    seat_row = Column(String(1), nullable=False)
    seat_number = Column(Integer, nullable=False)
    status = Column(SAEnum(TicketStatus, native_enum=False, length=20), nullable=False, default=TicketStatus.ACTIVE, index=True)
    qr_code = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    session = relationship("MovieSession")
    payment = relationship("Payment", back_populates="tickets")
