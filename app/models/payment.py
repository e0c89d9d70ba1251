import uuid
import enum
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base

class PaymentMethod(str, enum.Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    PIX = "PIX"

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    purchase_id = Column(Uuid(as_uuid=True), unique=True, nullable=False, index=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    subtotal = Column(DECIMAL(10, 2), nullable=False)
    discount_percent = Column(DECIMAL(5, 2), nullable=True)
    promotion_code = Column(String(50), nullable=True)
    method = Column(SAEnum(PaymentMethod, native_enum=False, length=20), nullable=False)
    status = Column(SAEnum(PaymentStatus, native_enum=False, length=20), nullable=False, index=True)
    installments = Column(Integer, nullable=True)
    card_last_four = Column(String(4), nullable=True)
    pix_code = Column(String(64), nullable=True)
    pix_qr_code = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    tickets = relationship("Ticket", back_populates="payment", order_by="[Ticket.seat_row, Ticket.seat_number]")
