from app.schemas.common import ErrorResponse, SeatsUnavailableError
from app.schemas.seat import SeatRefIn, SeatMapResponse, SeatRow, SeatStatusOut
from app.schemas.hold import Hold, HoldCreate, TicketTypeCount
from app.schemas.ticket import Ticket, TicketQRCode, TicketCancelResponse
from app.schemas.payment import Payment, PaymentCreate, PaymentDetails, PixConfirmation
