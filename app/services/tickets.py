from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import TicketNotFound
from app.models.ticket import Ticket, TicketStatus
from app.utils.codes import ticket_verification_url


def list_tickets(db: Session, user_id: UUID, status: Optional[TicketStatus] = None) -> List[Ticket]:
    """Return the user's tickets, newest first."""
    query = (
        db.query(Ticket)
        .options(joinedload(Ticket.session))
        .filter(Ticket.user_id == user_id)
    )
    if status:
        query = query.filter(Ticket.status == status)
    return query.order_by(Ticket.created_at.desc(), Ticket.seat_row, Ticket.seat_number).all()


def get_ticket(db: Session, ticket_id: UUID, user_id: UUID) -> Ticket:
    ticket = (
        db.query(Ticket)
        .options(joinedload(Ticket.session))
        .filter(Ticket.id == ticket_id, Ticket.user_id == user_id)
        .first()
    )
    if not ticket:
        raise TicketNotFound(f"Ticket {ticket_id} not found")
    return ticket


def ticket_qr_code(db: Session, ticket: Ticket) -> str:
    """Generate the ticket's QR reference on first request and cache it."""
    if not ticket.qr_code:
        ticket.qr_code = ticket_verification_url(ticket.id)
        db.commit()
        db.refresh(ticket)
    return ticket.qr_code
