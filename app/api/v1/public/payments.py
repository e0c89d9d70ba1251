from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user_id, verify_pix_webhook
from app.schemas.payment import Payment as PaymentSchema, PaymentCreate, PixConfirmation
from app.services.settlement import get_payment, resolve_pix_payment, settle

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/", response_model=PaymentSchema, status_code=status.HTTP_201_CREATED)
def process_payment(
    data: PaymentCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Pay for a hold and receive its tickets.

    - CREDIT / DEBIT: card details required, completed immediately.
    - PIX: returns a PIX code and QR link; stays PENDING until confirmed.
    """
    return settle(
        db,
        hold_id=data.hold_id,
        user_id=user_id,
        payment_method=data.payment_method,
        payment_details=data.payment_details,
        declared_amount=data.total_amount,
        promotion_code=data.promotion_code,
    )


@router.get("/{payment_id}", response_model=PaymentSchema)
def read_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    return get_payment(db, payment_id, user_id)


@router.post(
    "/{payment_id}/pix-confirmation",
    response_model=PaymentSchema,
    dependencies=[Depends(verify_pix_webhook)],
)
def confirm_pix_payment(
    payment_id: UUID,
    body: PixConfirmation,
    db: Session = Depends(get_db),
):
    """Webhook called by the PIX provider once the charge settles or fails."""
    return resolve_pix_payment(db, payment_id, succeeded=body.succeeded)
