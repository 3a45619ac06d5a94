"""Pydantic models for request/response validation"""

# Import all models for easy access
from app.models.user import (
    UserRegisterRequest,
    UserResponse,
    UserLoginRequest,
    UserLoginResponse,
)

from app.models.subscription import (
    PlanDefinition,
    SubscriptionState,
    PaymentRecord,
    PlainPricing,
    UpgradedPricing,
    PromoApplication,
    CreateOrderRequest,
    VerifyPaymentRequest,
    OrderIntentResponse,
    RedemptionResponse,
    ConsumeInterviewResponse,
    InterviewStatusResponse,
    PaymentHistoryResponse,
)

from app.models.promo_code import (
    PromoCode,
    PromoUsage,
    PromoUsageDetail,
    PromoEvaluation,
    ValidatePromoRequest,
    CreatePromoRequest,
    ValidatePromoResponse,
    PromoStatsResponse,
)

from app.models.revenue import (
    RevenueOverview,
    RevenueAnalytics,
    InvoiceListResponse,
    ActiveSubscriptionsResponse,
)

__all__ = [
    # User models
    "UserRegisterRequest",
    "UserResponse",
    "UserLoginRequest",
    "UserLoginResponse",
    # Subscription models
    "PlanDefinition",
    "SubscriptionState",
    "PaymentRecord",
    "PlainPricing",
    "UpgradedPricing",
    "PromoApplication",
    "CreateOrderRequest",
    "VerifyPaymentRequest",
    "OrderIntentResponse",
    "RedemptionResponse",
    "ConsumeInterviewResponse",
    "InterviewStatusResponse",
    "PaymentHistoryResponse",
    # Promo code models
    "PromoCode",
    "PromoUsage",
    "PromoUsageDetail",
    "PromoEvaluation",
    "ValidatePromoRequest",
    "CreatePromoRequest",
    "ValidatePromoResponse",
    "PromoStatsResponse",
    # Revenue models
    "RevenueOverview",
    "RevenueAnalytics",
    "InvoiceListResponse",
    "ActiveSubscriptionsResponse",
]
