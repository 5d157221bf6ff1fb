from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db, get_identity, get_notifications
from boxoffice.integrations.identity import IdentityDirectory
from boxoffice.integrations.notifications import NotificationDispatcher
from boxoffice.schemas.common import DeletedResponse
from boxoffice.schemas.promotion import (
    PromotionCreate,
    Promotion as PromotionSchema,
    PromotionSendResponse,
)
from boxoffice.services import promotions

router = APIRouter(prefix="/admin/promotions", tags=["Admin - Promotions"])


@router.post("", response_model=PromotionSchema, status_code=status.HTTP_201_CREATED)
def create_promotion(data: PromotionCreate, db: Session = Depends(get_db)):
    return promotions.create_promotion(
        db,
        discount_percentage=data.discount_percentage,
        description=data.description,
        code=data.code,
    )


@router.get("", response_model=List[PromotionSchema])
def list_promotions(db: Session = Depends(get_db)):
    return promotions.list_promotions(db)


@router.post("/{promotion_id}/send", response_model=PromotionSendResponse)
def send_promotion(
    promotion_id: int,
    db: Session = Depends(get_db),
    identity: IdentityDirectory = Depends(get_identity),
    notifications: NotificationDispatcher = Depends(get_notifications),
):
    """
    E-mail a promotion to every subscribed customer.
    A promotion can be sent only once; the response returns as soon as it is
    marked as sent and the e-mail goes out in the background.
    """
    promotion = promotions.send_to_subscribers(db, promotion_id, identity, notifications)
    return PromotionSendResponse(id=promotion.id, code=promotion.code, is_sent=promotion.is_sent)


@router.delete("/{promotion_id}", response_model=DeletedResponse)
def delete_promotion(promotion_id: int, db: Session = Depends(get_db)):
    promotions.delete_promotion(db, promotion_id)
    return DeletedResponse(id=promotion_id)
