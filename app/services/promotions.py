import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.exceptions import PromotionNotApplicable
from app.models.catalog import MovieSession, Promotion
from app.utils.clock import ensure_utc

logger = logging.getLogger(__name__)


def validate_promotion(db: Session, code: str, session: MovieSession, now: datetime) -> Decimal:
    """
    Return the discount percentage of an active promotion code for a session.

    A promotion applies when it is active, ``now`` falls inside its validity
    window and, if it lists movies or cinemas, the session's movie/cinema is
    among them.
    """
    promotion = (
        db.query(Promotion)
        .filter(Promotion.code == code, Promotion.is_active == True)  # noqa: E712
        .first()
    )
    if not promotion:
        raise PromotionNotApplicable(f"Promotion '{code}' is invalid or inactive")

    if not (ensure_utc(promotion.valid_from) <= now <= ensure_utc(promotion.valid_until)):
        raise PromotionNotApplicable(f"Promotion '{code}' is expired")

    if promotion.applicable_movies and str(session.movie_id) not in promotion.applicable_movies:
        raise PromotionNotApplicable(f"Promotion '{code}' is not applicable for this movie")

    if promotion.applicable_cinemas and str(session.cinema_id) not in promotion.applicable_cinemas:
        raise PromotionNotApplicable(f"Promotion '{code}' is not applicable for this cinema")

    logger.info("Promotion %s applied to session %s (%s%%)", code, session.id, promotion.discount)
    return Decimal(promotion.discount)
