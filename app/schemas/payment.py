from typing import Optional, List
from pydantic import BaseModel, UUID4
from decimal import Decimal
from datetime import datetime

from app.models.payment import PaymentMethod, PaymentStatus
from app.schemas.ticket import Ticket


class PaymentDetails(BaseModel):
    card_number: Optional[str] = None
    card_name: Optional[str] = None
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    installments: Optional[int] = None


# Payment: Create (POST /payments)
class PaymentCreate(BaseModel):
    hold_id: UUID4
    payment_method: PaymentMethod
    payment_details: Optional[PaymentDetails] = None
    total_amount: Decimal
    promotion_code: Optional[str] = None


# PIX webhook (POST /payments/{id}/pix-confirmation)
class PixConfirmation(BaseModel):
    succeeded: bool = True


class Payment(BaseModel):
    id: UUID4
    purchase_id: UUID4
    amount: Decimal
    subtotal: Decimal
    discount_percent: Optional[Decimal] = None
    promotion_code: Optional[str] = None
    method: PaymentMethod
    status: PaymentStatus
    installments: Optional[int] = None
    card_last_four: Optional[str] = None
    pix_code: Optional[str] = None
    pix_qr_code: Optional[str] = None
    created_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    tickets: List[Ticket] = []

    class Config:
        from_attributes = True
