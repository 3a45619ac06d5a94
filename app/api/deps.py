"""
FastAPI dependency providers for the subscription ledger
"""
from functools import lru_cache

from fastapi import Depends

from app.core.plans import PlanCatalog, default_catalog
from app.services.notification_service import NotificationService
from app.services.payment_gateway import RazorpayGateway, gateway_from_settings
from app.services.promo_service import PromoEvaluator
from app.services.revenue_service import RevenueReport
from app.services.subscription_service import SubscriptionLedger


def get_plan_catalog() -> PlanCatalog:
    return default_catalog


@lru_cache()
def get_payment_gateway() -> RazorpayGateway:
    return gateway_from_settings()


@lru_cache()
def get_notification_service() -> NotificationService:
    return NotificationService()


def get_promo_evaluator(catalog: PlanCatalog = Depends(get_plan_catalog)) -> PromoEvaluator:
    return PromoEvaluator(catalog)


def get_subscription_ledger(
    catalog: PlanCatalog = Depends(get_plan_catalog),
    promo_evaluator: PromoEvaluator = Depends(get_promo_evaluator),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    notifier: NotificationService = Depends(get_notification_service),
) -> SubscriptionLedger:
    return SubscriptionLedger(catalog, promo_evaluator, gateway, notifier)


def get_revenue_report(catalog: PlanCatalog = Depends(get_plan_catalog)) -> RevenueReport:
    return RevenueReport(catalog)
