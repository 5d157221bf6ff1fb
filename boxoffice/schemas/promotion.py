from typing import Annotated, Optional
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime


# Promotion - Create (POST /admin/promotions)
class PromotionCreate(BaseModel):
    discount_percentage: Annotated[Decimal, Field(gt=0, le=100, max_digits=5, decimal_places=2)]
    description: Optional[str] = None
    code: Optional[str] = Field(None, min_length=1, max_length=32)


class Promotion(BaseModel):
    id: int
    code: str
    discount_percentage: Decimal
    description: Optional[str] = None
    created_at: datetime
    is_sent: bool

    class Config:
        from_attributes = True


class PromotionSendResponse(BaseModel):
    id: int
    code: str
    is_sent: bool


class PromotionValidationResponse(BaseModel):
    code: str
    discount_percentage: Decimal
    message: str = "Promotion code is valid."
