from typing import List
from pydantic import BaseModel, UUID4


class SeatRefIn(BaseModel):
    row: str
    number: int


# --- Seat Map (GET /sessions/{id}/seats) ---

class SeatStatusOut(BaseModel):
    number: int
    status: str  # AVAILABLE, RESERVED, OCCUPIED


class SeatRow(BaseModel):
    label: str
    seats: List[SeatStatusOut]


class SeatMapResponse(BaseModel):
    session_id: UUID4
    total_seats: int
    available_seats: int
    rows: List[SeatRow]
