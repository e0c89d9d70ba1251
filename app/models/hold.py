import uuid
import enum
from sqlalchemy import Column, DateTime, func, ForeignKey, JSON, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base

class HoldStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"
    EXPIRED = "EXPIRED"
    RELEASED = "RELEASED"

class Hold(Base):
    __tablename__ = "holds"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("movie_sessions.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    seat_refs = Column(JSON, nullable=False) # [["A", 1], ["A", 2]] in request order
    ticket_types = Column(JSON, nullable=False) # [{"type": "ADULT", "count": 2}] in declaration order
    status = Column(SAEnum(HoldStatus, native_enum=False, length=20), nullable=False, default=HoldStatus.ACTIVE, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id"), nullable=True)

    session = relationship("MovieSession")
    payment = relationship("Payment")

    @property
    def seat_count(self) -> int:
        return len(self.seat_refs)
