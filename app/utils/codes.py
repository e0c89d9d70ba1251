import uuid
from typing import Tuple

from app.core.config import settings


def generate_pix_reference() -> Tuple[str, str]:
    """Return a (pix_code, qr_url) pair for a pending PIX charge."""
    pix_code = f"PIX-{uuid.uuid4()}"
    return pix_code, f"{settings.PIX_QR_BASE_URL}/{pix_code}"


def ticket_verification_url(ticket_id) -> str:
    return f"{settings.TICKET_VERIFY_BASE_URL}/{ticket_id}/verify"
