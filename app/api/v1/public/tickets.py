from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user_id
from app.models.ticket import TicketStatus
from app.schemas.ticket import Ticket as TicketSchema, TicketCancelResponse, TicketQRCode
from app.services.cancellation import cancel
from app.services.tickets import get_ticket, list_tickets, ticket_qr_code

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/", response_model=List[TicketSchema])
def list_my_tickets(
    status: Optional[TicketStatus] = Query(None, description="Filter by status: ACTIVE, USED, CANCELLED"),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Return the authenticated user's tickets, newest first."""
    return list_tickets(db, user_id, status)


@router.get("/{ticket_id}", response_model=TicketSchema)
def read_ticket(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    return get_ticket(db, ticket_id, user_id)


@router.get("/{ticket_id}/qr", response_model=TicketQRCode)
def read_ticket_qr(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    ticket = get_ticket(db, ticket_id, user_id)
    return TicketQRCode(ticket_id=ticket.id, qr_code=ticket_qr_code(db, ticket))


@router.post("/{ticket_id}/cancel", response_model=TicketCancelResponse)
def cancel_ticket(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Cancel a ticket up to 24 hours before the session.
    - Frees the seat.
    - Refunds the whole payment the ticket was bought with.
    """
    ticket = cancel(db, ticket_id, user_id)
    return TicketCancelResponse(
        id=ticket.id,
        status=ticket.status,
        cancelled_at=ticket.cancelled_at,
        payment_id=ticket.payment_id,
        payment_status=ticket.payment.status.value,
    )
