from typing import List
from pydantic import BaseModel

from app.schemas.seat import SeatRefIn


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str


class SeatsUnavailableError(ErrorResponse):
    unavailable_seats: List[SeatRefIn]
