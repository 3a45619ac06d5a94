"""
Revenue reporting Pydantic models (admin)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class RevenueOverview(BaseModel):
    totalRevenue: float
    totalTransactions: int
    monthRevenue: float
    monthTransactions: int
    activeSubscriptions: int


class PlanRevenue(BaseModel):
    planId: str
    planName: Optional[str] = None
    revenue: float
    transactions: int


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    revenue: float
    transactions: int


class RevenueAnalytics(BaseModel):
    byPlan: List[PlanRevenue] = []
    byMonth: List[MonthlyRevenue] = []


class Invoice(BaseModel):
    orderId: str
    paymentId: Optional[str] = None
    planId: str
    amount: float
    originalAmount: int
    discountAmount: float = 0
    upgradeDiscount: int = 0
    promoCode: Optional[str] = None
    currency: str = "INR"
    paidAt: Optional[datetime] = None
    userId: str
    userName: Optional[str] = None
    userEmail: Optional[str] = None


class InvoiceListResponse(BaseModel):
    success: bool = True
    invoices: List[Invoice] = []


class ActiveSubscription(BaseModel):
    userId: str
    name: Optional[str] = None
    email: Optional[str] = None
    planId: str
    planName: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    interviewsRemaining: int = 0


class ActiveSubscriptionsResponse(BaseModel):
    success: bool = True
    count: int
    subscriptions: List[ActiveSubscription] = []
