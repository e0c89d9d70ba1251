import hmac
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import settings
from app.core.security import decode_token

# Tokens are issued by the auth service; this API only reads the subject.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> UUID:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    subject = decode_token(token)
    if not subject:
        raise credentials_exception
    try:
        return UUID(subject)
    except ValueError:
        raise credentials_exception


def verify_pix_webhook(
    x_pix_webhook_secret: Optional[str] = Header(default=None),
) -> None:
    """Only the PIX provider, holding the shared secret, may confirm charges."""
    if not x_pix_webhook_secret or not hmac.compare_digest(
        x_pix_webhook_secret.encode(), settings.PIX_WEBHOOK_SECRET.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )
