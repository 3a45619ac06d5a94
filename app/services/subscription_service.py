"""
Subscription service - order creation, payment redemption and interview credits

The ledger prices plan purchases (upgrade credit + promo discount), records
pending Razorpay orders on the user document, turns verified payments into
subscription/credit state exactly once, and consumes interview credits.
"""

import calendar
import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import BackgroundTasks, HTTPException, status
from pymongo import ReturnDocument

from app.core.plans import PlanCatalog
from app.db.mongodb import require_collection, USERS_COLLECTION
from app.models.subscription import (
    ConsumeInterviewResponse,
    InterviewCredits,
    InterviewStatusResponse,
    OrderIntentResponse,
    OrderPricing,
    PaymentHistoryResponse,
    PaymentRecord,
    PlainPricing,
    PlanDefinition,
    PromoApplication,
    PromoAppliedSummary,
    RedemptionResponse,
    SubscriptionState,
    UpgradedPricing,
)
from app.services.notification_service import NotificationService
from app.services.payment_gateway import RazorpayGateway
from app.services.promo_service import PromoEvaluator, raise_for_evaluation, record_usage
from app.services.user_service import get_user_doc
from app.utils.user_helpers import parse_user_id

logger = logging.getLogger(__name__)

LIFETIME_END_DATE = datetime(2099, 12, 31)

# TODO: move the interview override onto the promo code document once it is
# confirmed whether PREP29 applies to every plan or only some of them.
INTERVIEW_OVERRIDE_PROMO = "PREP29"
INTERVIEW_OVERRIDE_COUNT = 2

RECENT_INTERVIEWS_LIMIT = 5


def add_months(start: datetime, months: int = 1) -> datetime:
    """Calendar month arithmetic; the day is clamped to the end of the target month"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def subscription_end_date(plan: PlanDefinition, start: datetime) -> datetime:
    if plan.duration == "lifetime":
        return LIFETIME_END_DATE
    return add_months(start, 1)


def interviews_to_grant(plan: PlanDefinition, promo_code: Optional[str]) -> int:
    if promo_code == INTERVIEW_OVERRIDE_PROMO:
        return INTERVIEW_OVERRIDE_COUNT
    return plan.interviews


def price_order(plan: PlanDefinition, subscription: SubscriptionState, catalog: PlanCatalog) -> OrderPricing:
    """
    Base price of a purchase. Moving from an active plan to a strictly more
    expensive one credits the current plan's price; anything else pays full price.
    """
    current_plan = catalog.lookup(subscription.planId) if subscription.active else None
    if (
        current_plan is not None
        and current_plan.planId != plan.planId
        and plan.amount > current_plan.amount
    ):
        return UpgradedPricing(
            amount=plan.amount - current_plan.amount,
            upgradeDiscount=current_plan.amount,
            previousPlanId=current_plan.planId,
        )
    return PlainPricing(amount=plan.amount)


def _eligibility_error(message: str, **hints) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"message": message, **hints},
    )


class SubscriptionLedger:
    """
    Args:
        catalog: Plan catalog, the only source of prices and credit allotments
        promo_evaluator: Evaluator used to price promo codes at order time
        gateway: Razorpay wrapper for order creation and signature checks
        notifier: Best-effort notification sink
        clock: Returns "now" as naive UTC
    """

    def __init__(
        self,
        catalog: PlanCatalog,
        promo_evaluator: PromoEvaluator,
        gateway: RazorpayGateway,
        notifier: NotificationService,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.catalog = catalog
        self.promo_evaluator = promo_evaluator
        self.gateway = gateway
        self.notifier = notifier
        self.clock = clock

    def _dispatch(self, background_tasks: Optional[BackgroundTasks], func, *args, **kwargs) -> None:
        """Run a notification after the response, or inline when no task queue is given"""
        if background_tasks is not None:
            background_tasks.add_task(func, *args, **kwargs)
        else:
            func(*args, **kwargs)

    # Orders

    def create_order(self, user_id: str, plan_id: Optional[str], promo_code: Optional[str] = None) -> OrderIntentResponse:
        if not plan_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "planId is required"},
            )
        plan = self.catalog.lookup(plan_id)
        if plan is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Invalid planId"},
            )

        user = get_user_doc(user_id, {"subscription": 1})
        pricing = price_order(plan, SubscriptionState.from_doc(user), self.catalog)

        promo: Optional[PromoApplication] = None
        if promo_code:
            evaluation = self.promo_evaluator.evaluate(promo_code, user_id, plan_id, pricing.amount)
            raise_for_evaluation(evaluation)
            promo = PromoApplication(
                code=evaluation.code,
                discountAmount=evaluation.discountAmount,
                finalAmount=evaluation.finalAmount,
            )

        final_amount = promo.finalAmount if promo else pricing.amount
        discount_amount = promo.discountAmount if promo else 0
        if final_amount < 1:
            # Razorpay does not accept orders below one rupee
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Order amount must be at least ₹1"},
            )

        order = self.gateway.create_order(
            amount=round(final_amount * 100),
            notes={"planId": plan_id, "userId": user_id, "promoCode": promo.code if promo else "none"},
        )

        upgraded = isinstance(pricing, UpgradedPricing)
        record = PaymentRecord(
            orderId=order["id"],
            planId=plan_id,
            amount=final_amount,
            originalAmount=plan.amount,
            discountAmount=discount_amount,
            upgradeDiscount=pricing.upgradeDiscount if upgraded else 0,
            promoCode=promo.code if promo else None,
            isUpgrade=upgraded,
            previousPlanId=pricing.previousPlanId if upgraded else None,
            interviewsGranted=interviews_to_grant(plan, promo.code if promo else None),
            currency=order.get("currency", self.gateway.currency),
            createdAt=self.clock(),
        )

        collection = require_collection(USERS_COLLECTION)
        collection.update_one(
            {"_id": parse_user_id(user_id)},
            {"$push": {"payments": record.model_dump()}},
        )

        logger.info(
            f"Created order {record.orderId} for user {user_id}: plan={plan_id} "
            f"base={pricing.amount} discount={discount_amount} final={final_amount} upgrade={upgraded}"
        )

        return OrderIntentResponse(
            orderId=record.orderId,
            amount=order.get("amount", round(final_amount * 100)),
            currency=record.currency,
            keyId=self.gateway.key_id,
            planId=plan_id,
            planName=plan.name,
            interviews=plan.interviews,
            originalAmount=plan.amount,
            upgradeDiscount=record.upgradeDiscount,
            discountAmount=discount_amount,
            finalAmount=final_amount,
            promoCode=record.promoCode,
            isUpgrade=upgraded,
            previousPlanId=record.previousPlanId,
        )

    # Redemption

    def _snapshot(self, user_id: str, already_processed: bool, plan: Optional[PlanDefinition] = None,
                  record: Optional[PaymentRecord] = None) -> RedemptionResponse:
        subscription = SubscriptionState.from_doc(get_user_doc(user_id, {"subscription": 1}))
        promo_applied = None
        if record is not None and record.promoCode:
            promo_applied = PromoAppliedSummary(
                code=record.promoCode,
                discountAmount=record.discountAmount,
                originalAmount=record.originalAmount,
            )
        return RedemptionResponse(
            alreadyProcessed=already_processed,
            subscription=subscription,
            interviews=InterviewCredits(
                remaining=subscription.interviewsRemaining,
                total=subscription.interviewsTotal,
            ),
            plan=(
                {"name": plan.name, "planId": plan.planId, "amount": plan.amount, "duration": plan.duration}
                if plan else None
            ),
            promoApplied=promo_applied,
        )

    def verify_and_redeem(
        self,
        user_id: str,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> RedemptionResponse:
        if not order_id or not payment_id or not signature:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Missing payment data"},
            )

        if not self.gateway.verify_signature(order_id, payment_id, signature):
            logger.warning(f"Invalid payment signature for order {order_id} (user {user_id})")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Invalid payment signature"},
            )

        user = get_user_doc(user_id, {"subscription": 1, "payments": 1})
        record_doc = next((p for p in user.get("payments", []) if p.get("orderId") == order_id), None)
        if record_doc is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"message": "Payment record not found"},
            )
        record = PaymentRecord(**record_doc)

        if record.status == "success":
            logger.info(f"Order {order_id} already redeemed; returning current state")
            return self._snapshot(user_id, True, self.catalog.lookup(record.planId), record)

        plan = self.catalog.lookup(record.planId)
        if plan is None:
            logger.error(f"Order {order_id} references unknown plan {record.planId}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": "Plan on payment record is no longer available"},
            )

        subscription = SubscriptionState.from_doc(user)
        now = self.clock()
        grant = interviews_to_grant(plan, record.promoCode)
        plan_change = subscription.active and subscription.planId != plan.planId

        set_fields = {
            "payments.$.status": "success",
            "payments.$.paidAt": now,
            "payments.$.paymentId": payment_id,
            "payments.$.signature": signature,
            "subscription.active": True,
            "subscription.planId": plan.planId,
            "subscription.planName": plan.name,
            "subscription.startDate": now,
            "subscription.endDate": subscription_end_date(plan, now),
            "dateUpdated": now,
        }
        if plan_change:
            # Switching plans discards the old pool
            set_fields.update({
                "subscription.interviewsTotal": grant,
                "subscription.interviewsUsed": 0,
                "subscription.interviewsRemaining": grant,
            })
            update = {"$set": set_fields}
        else:
            update = {
                "$set": set_fields,
                "$inc": {
                    "subscription.interviewsTotal": grant,
                    "subscription.interviewsRemaining": grant,
                },
            }

        # Compare-and-set on the pending record: only one caller can win
        collection = require_collection(USERS_COLLECTION)
        result = collection.update_one(
            {
                "_id": parse_user_id(user_id),
                "payments": {"$elemMatch": {"orderId": order_id, "status": "pending"}},
            },
            update,
        )
        if result.matched_count == 0:
            logger.info(f"Order {order_id} was redeemed concurrently; returning current state")
            return self._snapshot(user_id, True, plan, record)

        logger.info(
            f"Redeemed order {order_id} for user {user_id}: plan={plan.planId} "
            f"granted={grant} {'reset' if plan_change else 'added'}"
        )

        if record.promoCode:
            record_usage(record.promoCode, user_id, order_id, record.discountAmount)

        self._dispatch(
            background_tasks,
            self.notifier.subscription_activated,
            user_id,
            plan.name,
            {"planId": plan.planId, "orderId": order_id, "amount": record.amount},
        )

        return self._snapshot(user_id, False, plan, record)

    # Interview credits

    def _expire(self, collection, user_id: str, subscription: SubscriptionState, now: datetime) -> None:
        """Flip an expired subscription to inactive and reject the request"""
        collection.update_one(
            {"_id": parse_user_id(user_id), "subscription.active": True},
            {"$set": {"subscription.active": False, "dateUpdated": now}},
        )
        logger.info(f"Subscription for user {user_id} expired at {subscription.endDate}; deactivated")
        raise _eligibility_error("Subscription expired", requiresPayment=True)

    def consume_interview_credit(
        self, user_id: str, background_tasks: Optional[BackgroundTasks] = None
    ) -> ConsumeInterviewResponse:
        user = get_user_doc(user_id, {"subscription": 1})
        subscription = SubscriptionState.from_doc(user)
        now = self.clock()
        collection = require_collection(USERS_COLLECTION)
        user_id_obj = parse_user_id(user_id)

        if not subscription.active:
            raise _eligibility_error("No active subscription", requiresPayment=True)

        if subscription.is_expired(now):
            self._expire(collection, user_id, subscription, now)

        if subscription.interviewsRemaining <= 0:
            raise _eligibility_error("No interview credits remaining", needsUpgrade=True)

        updated = collection.find_one_and_update(
            {
                "_id": user_id_obj,
                "subscription.active": True,
                "subscription.interviewsRemaining": {"$gt": 0},
                "$or": [
                    {"subscription.endDate": None},
                    {"subscription.endDate": {"$gte": now}},
                ],
            },
            {"$inc": {"subscription.interviewsUsed": 1, "subscription.interviewsRemaining": -1}},
            projection={"subscription": 1},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            # The subscription changed between the read and the update
            current = SubscriptionState.from_doc(get_user_doc(user_id, {"subscription": 1}))
            if not current.active:
                raise _eligibility_error("No active subscription", requiresPayment=True)
            if current.is_expired(now):
                self._expire(collection, user_id, current, now)
            raise _eligibility_error("No interview credits remaining", needsUpgrade=True)

        remaining = SubscriptionState.from_doc(updated).interviewsRemaining
        logger.info(f"User {user_id} consumed an interview credit; {remaining} remaining")

        if remaining == 0:
            self._dispatch(background_tasks, self.notifier.credits_exhausted, user_id)

        return ConsumeInterviewResponse(remaining=remaining)

    # Queries

    def interview_status(self, user_id: str) -> InterviewStatusResponse:
        user = get_user_doc(user_id, {"subscription": 1, "interviewAttempts": 1})
        attempts = (user.get("interviewAttempts") or [])[-RECENT_INTERVIEWS_LIMIT:]
        return InterviewStatusResponse(
            subscription=SubscriptionState.from_doc(user),
            recentInterviews=[
                {key: str(value) if key == "_id" else value for key, value in attempt.items()}
                for attempt in attempts
            ],
        )

    def payment_history(self, user_id: str) -> PaymentHistoryResponse:
        user = get_user_doc(user_id, {"payments": 1})
        records = [PaymentRecord(**p) for p in user.get("payments") or [] if p.get("status") == "success"]
        records.sort(key=lambda r: r.paidAt or datetime.min, reverse=True)
        return PaymentHistoryResponse(history=records)
