from typing import Annotated, Optional, List
from pydantic import BaseModel, Field, UUID4
from datetime import datetime

from app.models.ticket import TicketType
from app.schemas.seat import SeatRefIn


class TicketTypeCount(BaseModel):
    type: TicketType
    count: int


# Hold: Create (POST /sessions/{id}/holds)
class HoldCreate(BaseModel):
    seats: Annotated[List[SeatRefIn], Field(min_length=1, max_length=10)]
    ticket_types: Annotated[List[TicketTypeCount], Field(min_length=1)]


# Hold: response (POST /sessions/{id}/holds, GET /holds/{id})
class Hold(BaseModel):
    id: UUID4
    session_id: UUID4
    status: str
    seats: List[SeatRefIn]
    ticket_types: List[TicketTypeCount]
    created_at: datetime
    expires_at: datetime
    ttl_seconds: int
    payment_id: Optional[UUID4] = None
