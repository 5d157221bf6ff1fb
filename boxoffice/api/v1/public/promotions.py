from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxoffice.api.deps import get_db
from boxoffice.schemas.promotion import PromotionValidationResponse
from boxoffice.services import promotions

router = APIRouter(prefix="/promotions", tags=["Promotions"])


@router.get("/validate/{code}", response_model=PromotionValidationResponse)
def validate_promotion_code(code: str, db: Session = Depends(get_db)):
    """Check a code at checkout. Only promotions that have been sent are redeemable."""
    discount = promotions.validate_code(db, code)
    return PromotionValidationResponse(code=code.strip().upper(), discount_percentage=discount)
