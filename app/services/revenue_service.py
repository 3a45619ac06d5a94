"""
Revenue service - admin reporting over successful payment records and active subscriptions
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterator, List, Tuple

from pymongo import ASCENDING

from app.core.plans import PlanCatalog
from app.db.mongodb import require_collection, USERS_COLLECTION
from app.models.revenue import (
    ActiveSubscription,
    ActiveSubscriptionsResponse,
    Invoice,
    InvoiceListResponse,
    MonthlyRevenue,
    PlanRevenue,
    RevenueAnalytics,
    RevenueOverview,
)
from app.models.subscription import PaymentRecord, SubscriptionState

logger = logging.getLogger(__name__)

DEFAULT_INVOICE_LIMIT = 50

# One row per successful payment, carrying the owner's name and email
_SUCCESSFUL_PAYMENTS_PIPELINE = [
    {"$match": {"payments.status": "success"}},
    {"$unwind": "$payments"},
    {"$match": {"payments.status": "success"}},
    {"$project": {"name": 1, "email": 1, "payment": "$payments"}},
]


class RevenueReport:
    """
    Args:
        catalog: Plan catalog, used for plan names
        clock: Returns "now" as naive UTC; decides the current month
    """

    def __init__(self, catalog: PlanCatalog, clock: Callable[[], datetime] = datetime.utcnow):
        self.catalog = catalog
        self.clock = clock

    def _successful_payments(self) -> Iterator[Tuple[dict, PaymentRecord]]:
        collection = require_collection(USERS_COLLECTION)
        for row in collection.aggregate(_SUCCESSFUL_PAYMENTS_PIPELINE):
            yield row, PaymentRecord(**row["payment"])

    def overview(self) -> RevenueOverview:
        now = self.clock()
        total = month_total = 0.0
        count = month_count = 0
        for _, record in self._successful_payments():
            total += record.amount
            count += 1
            if record.paidAt and (record.paidAt.year, record.paidAt.month) == (now.year, now.month):
                month_total += record.amount
                month_count += 1

        active = require_collection(USERS_COLLECTION).count_documents({"subscription.active": True})
        return RevenueOverview(
            totalRevenue=round(total, 2),
            totalTransactions=count,
            monthRevenue=round(month_total, 2),
            monthTransactions=month_count,
            activeSubscriptions=active,
        )

    def analytics(self) -> RevenueAnalytics:
        by_plan = defaultdict(lambda: [0.0, 0])
        by_month = defaultdict(lambda: [0.0, 0])
        for _, record in self._successful_payments():
            by_plan[record.planId][0] += record.amount
            by_plan[record.planId][1] += 1
            if record.paidAt:
                month = record.paidAt.strftime("%Y-%m")
                by_month[month][0] += record.amount
                by_month[month][1] += 1

        plans: List[PlanRevenue] = []
        for plan_id, (revenue, transactions) in by_plan.items():
            plan = self.catalog.lookup(plan_id)
            plans.append(PlanRevenue(
                planId=plan_id,
                planName=plan.name if plan else None,
                revenue=round(revenue, 2),
                transactions=transactions,
            ))
        plans.sort(key=lambda p: p.revenue, reverse=True)

        return RevenueAnalytics(
            byPlan=plans,
            byMonth=[
                MonthlyRevenue(month=month, revenue=round(revenue, 2), transactions=transactions)
                for month, (revenue, transactions) in sorted(by_month.items())
            ],
        )

    def invoices(self, limit: int = DEFAULT_INVOICE_LIMIT) -> InvoiceListResponse:
        invoices = [
            Invoice(
                orderId=record.orderId,
                paymentId=record.paymentId,
                planId=record.planId,
                amount=record.amount,
                originalAmount=record.originalAmount,
                discountAmount=record.discountAmount,
                upgradeDiscount=record.upgradeDiscount,
                promoCode=record.promoCode,
                currency=record.currency,
                paidAt=record.paidAt,
                userId=str(row["_id"]),
                userName=row.get("name"),
                userEmail=row.get("email"),
            )
            for row, record in self._successful_payments()
        ]
        invoices.sort(key=lambda i: i.paidAt or datetime.min, reverse=True)
        return InvoiceListResponse(invoices=invoices[:limit])

    def active_subscriptions(self) -> ActiveSubscriptionsResponse:
        collection = require_collection(USERS_COLLECTION)
        cursor = collection.find(
            {"subscription.active": True},
            {"name": 1, "email": 1, "subscription": 1},
        ).sort("subscription.endDate", ASCENDING)

        subscriptions = []
        for user in cursor:
            subscription = SubscriptionState.from_doc(user)
            subscriptions.append(ActiveSubscription(
                userId=str(user["_id"]),
                name=user.get("name"),
                email=user.get("email"),
                planId=subscription.planId,
                planName=subscription.planName,
                startDate=subscription.startDate,
                endDate=subscription.endDate,
                interviewsRemaining=subscription.interviewsRemaining,
            ))

        logger.debug(f"Listed {len(subscriptions)} active subscriptions")
        return ActiveSubscriptionsResponse(count=len(subscriptions), subscriptions=subscriptions)
