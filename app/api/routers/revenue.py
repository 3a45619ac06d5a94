"""
Revenue API routes (admin)
"""
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_revenue_report
from app.core.auth import get_current_admin
from app.models.revenue import (
    ActiveSubscriptionsResponse,
    InvoiceListResponse,
    RevenueAnalytics,
    RevenueOverview,
)
from app.models.user import UserResponse
from app.services.revenue_service import DEFAULT_INVOICE_LIMIT, RevenueReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/revenue", tags=["revenue"])


@router.get("/overview", response_model=RevenueOverview)
def revenue_overview(
    admin: UserResponse = Depends(get_current_admin),
    report: RevenueReport = Depends(get_revenue_report),
):
    """Total and current-month revenue plus the number of active subscriptions"""
    logger.info(f"Revenue overview requested by {admin.email}")
    return report.overview()


@router.get("/analytics", response_model=RevenueAnalytics)
def revenue_analytics(
    admin: UserResponse = Depends(get_current_admin),
    report: RevenueReport = Depends(get_revenue_report),
):
    """Revenue grouped by plan and by calendar month"""
    return report.analytics()


@router.get("/invoices", response_model=InvoiceListResponse)
def revenue_invoices(
    limit: int = Query(DEFAULT_INVOICE_LIMIT, ge=1, le=500),
    admin: UserResponse = Depends(get_current_admin),
    report: RevenueReport = Depends(get_revenue_report),
):
    """Successful payments, newest first, with the paying user's name and email"""
    return report.invoices(limit=limit)


@router.get("/active-subscriptions", response_model=ActiveSubscriptionsResponse)
def active_subscriptions(
    admin: UserResponse = Depends(get_current_admin),
    report: RevenueReport = Depends(get_revenue_report),
):
    return report.active_subscriptions()
