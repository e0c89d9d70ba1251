
from app.db.session import Base
from app.models.catalog import Room, MovieSession, Promotion
from app.models.seat import Seat
from app.models.hold import Hold
from app.models.payment import Payment
from app.models.ticket import Ticket
