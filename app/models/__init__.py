from app.models.catalog import Room, MovieSession, Promotion
from app.models.seat import Seat, SeatStatus
from app.models.hold import Hold, HoldStatus
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.ticket import Ticket, TicketStatus, TicketType
