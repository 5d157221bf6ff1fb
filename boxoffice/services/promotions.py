"""Promotion codes and their one-time broadcast.

`send_to_subscribers` marks a promotion as sent and commits BEFORE the
broadcast is handed off. A concurrent second call therefore sees
AlreadySentError instead of e-mailing everyone twice. The price of that
ordering: if the process dies between the commit and the send, the
promotion stays marked as sent and nobody receives it. Moving to an outbox
(pending -> sending -> sent, with a recovery sweep for rows stuck in
sending) would trade that silent drop for at-least-once delivery.
"""

import logging
import random
import string
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.orm import Session

from boxoffice.core.config import settings
from boxoffice.core.errors import (
    AlreadySentError,
    ConflictError,
    DependencyError,
    IdentityUnavailableError,
    InvalidCodeError,
    NoSubscribersError,
    PromotionNotFoundError,
    ValidationError,
)
from boxoffice.db.transaction import atomic, storage_errors
from boxoffice.integrations.identity import IdentityDirectory
from boxoffice.integrations.notifications import NotificationDispatcher, PromotionNotice
from boxoffice.models.promotion import Promotion

logger = logging.getLogger(__name__)

CODE_CHARS = string.ascii_uppercase + string.digits
MAX_CODE_LENGTH = 32


def _normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _generate_code(db: Session, length: int) -> str:
    """Generate a promotion code that is not in use yet."""
    while True:
        code = "".join(random.choices(CODE_CHARS, k=length))
        if not db.query(Promotion.id).filter(Promotion.code == code).first():
            return code


def _parse_discount(discount_percentage) -> Decimal:
    try:
        discount = Decimal(str(discount_percentage))
    except (InvalidOperation, ValueError):
        raise ValidationError("discount_percentage must be a number") from None
    if not (Decimal("0") < discount <= Decimal("100")):
        raise ValidationError("discount_percentage must be greater than 0 and at most 100")
    return discount


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_promotion(
    db: Session,
    discount_percentage,
    description: Optional[str] = None,
    code: Optional[str] = None,
) -> Promotion:
    """Store a new, unsent promotion. A code is generated unless one is given."""
    discount = _parse_discount(discount_percentage)
    if code is not None:
        code = _normalize_code(code)
        if not code or len(code) > MAX_CODE_LENGTH or not code.isalnum():
            raise ValidationError(f"code must be 1-{MAX_CODE_LENGTH} letters or digits")

    with atomic(db):
        if code and db.query(Promotion.id).filter(Promotion.code == code).first():
            raise ConflictError(f"Promotion code {code} already exists")
        promotion = Promotion(
            code=code or _generate_code(db, settings.PROMO_CODE_LENGTH),
            discount_percentage=discount,
            description=description,
            created_at=datetime.now(timezone.utc),
            is_sent=False,
        )
        db.add(promotion)
        db.flush()

    logger.info("Created promotion %s (%s, %s%%)", promotion.id, promotion.code, discount)
    return promotion


def send_to_subscribers(
    db: Session,
    promotion_id: int,
    identity: IdentityDirectory,
    notifications: NotificationDispatcher,
) -> Promotion:
    """Mark a promotion as sent and broadcast it to every subscribed customer."""
    promotion = get_promotion(db, promotion_id)
    if promotion.is_sent:
        raise AlreadySentError(promotion_id)

    try:
        emails = identity.get_subscribed_customer_emails()
    except DependencyError:
        raise
    except Exception as exc:
        logger.exception("Could not load promotion subscribers.")
        raise IdentityUnavailableError() from exc
    if not emails:
        logger.info("Promotion %s not sent: no subscribers", promotion_id)
        raise NoSubscribersError()

    with atomic(db):
        updated = (
            db.query(Promotion)
            .filter(Promotion.id == promotion_id, Promotion.is_sent == False)  # noqa: E712
            .update({"is_sent": True}, synchronize_session=False)
        )
        if not updated:
            if not db.query(Promotion.id).filter(Promotion.id == promotion_id).first():
                raise PromotionNotFoundError(promotion_id)
            raise AlreadySentError(promotion_id)

    promotion = get_promotion(db, promotion_id)
    notice = PromotionNotice(
        promotion_id=promotion.id,
        code=promotion.code,
        discount_percentage=promotion.discount_percentage,
        description=promotion.description,
    )
    logger.info("Broadcasting promotion %s to %d subscriber(s)", promotion_id, len(emails))
    notifications.promotion_broadcast(emails, notice)
    return promotion


def delete_promotion(db: Session, promotion_id: int) -> None:
    with atomic(db):
        promotion = db.query(Promotion).filter(Promotion.id == promotion_id).first()
        if not promotion:
            raise PromotionNotFoundError(promotion_id)
        db.delete(promotion)
    logger.info("Deleted promotion %s", promotion_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def validate_code(db: Session, code: str) -> Decimal:
    """Return the discount for a code that exists and has been sent."""
    normalized = _normalize_code(code)
    if not normalized:
        raise InvalidCodeError(code)
    with storage_errors():
        row = (
            db.query(Promotion.discount_percentage)
            .filter(Promotion.code == normalized, Promotion.is_sent == True)  # noqa: E712
            .first()
        )
    if not row:
        logger.info("Rejected promotion code %r", normalized)
        raise InvalidCodeError(code)
    return row.discount_percentage


def get_promotion(db: Session, promotion_id: int) -> Promotion:
    with storage_errors():
        promotion = db.query(Promotion).filter(Promotion.id == promotion_id).first()
    if not promotion:
        raise PromotionNotFoundError(promotion_id)
    return promotion


def list_promotions(db: Session) -> List[Promotion]:
    """All promotions, newest first."""
    with storage_errors():
        return db.query(Promotion).order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()
