"""
Promo code Pydantic models
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


DiscountType = Literal["flat", "percentage"]


class PromoUsage(BaseModel):
    userId: str
    usedAt: datetime
    orderId: str
    discountApplied: float = 0


class PromoUsageDetail(PromoUsage):
    userName: Optional[str] = None
    userEmail: Optional[str] = None


class PromoCode(BaseModel):
    """Promo code document as stored in the promocodes collection"""
    code: str
    description: Optional[str] = None
    discountType: DiscountType
    discountValue: float
    maxDiscount: Optional[float] = None
    minPurchaseAmount: int = 0
    applicablePlans: List[str] = []
    usageLimit: Optional[int] = None
    usageCount: int = 0
    perUserLimit: int = 1
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None
    active: bool = True
    usedBy: List[PromoUsage] = []
    createdAt: Optional[datetime] = None

    def uses_by(self, user_id: str) -> int:
        return sum(1 for usage in self.usedBy if usage.userId == user_id)


class PromoEvaluation(BaseModel):
    """Outcome of evaluating a promo code against a user, plan and amount"""
    valid: bool
    reason: Optional[str] = None
    notFound: bool = False
    code: Optional[str] = None
    baseAmount: float = 0
    discountAmount: float = 0
    finalAmount: float = 0


# Request Models

class ValidatePromoRequest(BaseModel):
    code: Optional[str] = None
    planId: Optional[str] = None


class CreatePromoRequest(BaseModel):
    code: str = Field(min_length=1)
    description: Optional[str] = None
    discountType: DiscountType
    discountValue: float = Field(gt=0)
    maxDiscount: Optional[float] = Field(default=None, ge=0)
    minPurchaseAmount: Optional[int] = Field(default=None, ge=0)
    applicablePlans: Optional[List[str]] = None
    usageLimit: Optional[int] = Field(default=None, ge=1)
    perUserLimit: Optional[int] = Field(default=None, ge=1)
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None


# Response Models

class PromoSummary(BaseModel):
    code: str
    description: Optional[str] = None
    discountType: DiscountType
    discountValue: float


class PromoPricing(BaseModel):
    originalAmount: int
    discountAmount: float
    finalAmount: float


class ValidatePromoResponse(BaseModel):
    valid: bool = True
    message: str = "Promo code applied successfully"
    promoCode: PromoSummary
    pricing: PromoPricing


class PromoStatsResponse(BaseModel):
    code: str
    description: Optional[str] = None
    usageCount: int
    usageLimit: Optional[int] = None
    active: bool
    validFrom: Optional[datetime] = None
    validUntil: Optional[datetime] = None
    usedBy: List[PromoUsageDetail] = []
