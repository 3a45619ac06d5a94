"""
Subscription, pricing and payment Pydantic models
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


PlanDuration = Literal["lifetime", "monthly"]
PaymentStatus = Literal["pending", "success"]


class PlanDefinition(BaseModel):
    """A subscription tier: price, duration and interview-credit allotment"""
    planId: str
    name: str
    amount: int = Field(ge=0)  # rupees
    duration: PlanDuration
    interviews: int = Field(ge=0)

    class Config:
        frozen = True


class SubscriptionState(BaseModel):
    """Subscription embedded in a user document"""
    active: bool = False
    planId: str = "free"
    planName: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    interviewsTotal: int = 0
    interviewsUsed: int = 0
    interviewsRemaining: int = 0

    @classmethod
    def from_doc(cls, user_doc: Optional[dict]) -> "SubscriptionState":
        subscription = (user_doc or {}).get("subscription") or {}
        return cls(**subscription)

    def is_expired(self, now: datetime) -> bool:
        return self.endDate is not None and now > self.endDate


def inert_subscription() -> dict:
    """Subscription document every new user starts with"""
    return SubscriptionState().model_dump()


class PaymentRecord(BaseModel):
    """One entry of a user's append-only payments list"""
    orderId: str
    planId: str
    amount: float
    originalAmount: int
    discountAmount: float = 0
    upgradeDiscount: int = 0
    promoCode: Optional[str] = None
    isUpgrade: bool = False
    previousPlanId: Optional[str] = None
    interviewsGranted: int = 0
    productType: str = "subscription"
    provider: str = "razorpay"
    currency: str = "INR"
    status: PaymentStatus = "pending"
    createdAt: Optional[datetime] = None
    paidAt: Optional[datetime] = None
    paymentId: Optional[str] = None
    signature: Optional[str] = None


# Pricing variants

class PlainPricing(BaseModel):
    kind: Literal["plain"] = "plain"
    amount: int


class UpgradedPricing(BaseModel):
    kind: Literal["upgraded"] = "upgraded"
    amount: int
    upgradeDiscount: int
    previousPlanId: str


OrderPricing = Union[PlainPricing, UpgradedPricing]


class PromoApplication(BaseModel):
    code: str
    discountAmount: float
    finalAmount: float


# Request Models

class CreateOrderRequest(BaseModel):
    planId: Optional[str] = None
    promoCode: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


# Response Models

class OrderIntentResponse(BaseModel):
    orderId: str
    amount: int  # paise, as sent to the gateway
    currency: str
    keyId: Optional[str] = None
    planId: str
    planName: str
    interviews: int
    originalAmount: int
    upgradeDiscount: int = 0
    discountAmount: float = 0
    finalAmount: float
    promoCode: Optional[str] = None
    isUpgrade: bool = False
    previousPlanId: Optional[str] = None


class InterviewCredits(BaseModel):
    remaining: int
    total: int


class PromoAppliedSummary(BaseModel):
    code: str
    discountAmount: float
    originalAmount: int


class RedemptionResponse(BaseModel):
    success: bool = True
    alreadyProcessed: bool = False
    subscription: SubscriptionState
    interviews: InterviewCredits
    plan: Optional[Dict[str, Any]] = None
    promoApplied: Optional[PromoAppliedSummary] = None


class ConsumeInterviewResponse(BaseModel):
    success: bool = True
    remaining: int


class InterviewStatusResponse(BaseModel):
    subscription: SubscriptionState
    recentInterviews: List[Dict[str, Any]] = []


class PaymentHistoryResponse(BaseModel):
    success: bool = True
    history: List[PaymentRecord] = []
