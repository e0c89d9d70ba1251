from typing import Optional
from pydantic import BaseModel, UUID4
from decimal import Decimal
from datetime import datetime

from app.models.ticket import TicketStatus, TicketType


class Ticket(BaseModel):
    id: UUID4
    session_id: UUID4
    payment_id: UUID4
    purchase_id: UUID4
    ticket_type: TicketType
    price: Decimal
    seat_row: str
    seat_number: int
    status: TicketStatus
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketQRCode(BaseModel):
    ticket_id: UUID4
    qr_code: str


# Ticket: Cancel response (POST /tickets/{id}/cancel)
class TicketCancelResponse(BaseModel):
    id: UUID4
    status: TicketStatus
    cancelled_at: datetime
    payment_id: UUID4
    payment_status: str
