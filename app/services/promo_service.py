"""
Promo code service - evaluation, usage recording and admin management
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bson import ObjectId
from fastapi import HTTPException, status
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from app.core.plans import PlanCatalog
from app.db.mongodb import require_collection, PROMO_CODES_COLLECTION, USERS_COLLECTION
from app.models.promo_code import (
    CreatePromoRequest,
    PromoCode,
    PromoEvaluation,
    PromoPricing,
    PromoStatsResponse,
    PromoSummary,
    PromoUsageDetail,
    ValidatePromoResponse,
)

logger = logging.getLogger(__name__)

USAGE_RECORD_ATTEMPTS = 5


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mongo hands back naive UTC datetimes; store and compare the same way"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def calculate_discount(promo: PromoCode, base_amount: float) -> float:
    """Discount for base_amount, never more than base_amount and never negative"""
    if promo.discountType == "flat":
        discount = promo.discountValue
    else:
        discount = base_amount * promo.discountValue / 100
        if promo.maxDiscount is not None:
            discount = min(discount, promo.maxDiscount)
    return round(max(0, min(discount, base_amount)), 2)


class PromoEvaluator:
    """
    Checks a promo code against a user, plan and base amount.

    Evaluation never touches usage counters; usage is recorded only once a
    payment has been verified (see record_usage).
    """

    def __init__(self, catalog: PlanCatalog, clock: Callable[[], datetime] = datetime.utcnow):
        self.catalog = catalog
        self.clock = clock

    def load(self, code: str) -> Optional[PromoCode]:
        collection = require_collection(PROMO_CODES_COLLECTION)
        doc = collection.find_one({"code": normalize_code(code)})
        return PromoCode(**doc) if doc else None

    def evaluate(self, code: str, user_id: str, plan_id: str, base_amount: float) -> PromoEvaluation:
        normalized = normalize_code(code)
        promo = self.load(normalized) if normalized else None
        if promo is None:
            return PromoEvaluation(valid=False, notFound=True, reason="Invalid promo code", code=normalized)

        def reject(reason: str) -> PromoEvaluation:
            logger.warning(f"Promo {promo.code} rejected for user {user_id} on plan {plan_id}: {reason}")
            return PromoEvaluation(valid=False, reason=reason, code=promo.code, baseAmount=base_amount)

        now = self.clock()
        if not promo.active:
            return reject("This promo code is no longer active")
        if promo.validFrom is not None and now < _as_naive_utc(promo.validFrom):
            return reject("This promo code is not yet valid")
        if promo.validUntil is not None and now > _as_naive_utc(promo.validUntil):
            return reject("This promo code has expired")
        if promo.usageLimit is not None and promo.usageCount >= promo.usageLimit:
            return reject("This promo code has reached its usage limit")
        if promo.uses_by(user_id) >= promo.perUserLimit:
            return reject("You have already used this promo code")
        if promo.applicablePlans and plan_id not in promo.applicablePlans:
            return reject("This promo code is not applicable to the selected plan")
        if base_amount < promo.minPurchaseAmount:
            return reject(f"Minimum purchase amount of ₹{promo.minPurchaseAmount} required")

        discount = calculate_discount(promo, base_amount)
        return PromoEvaluation(
            valid=True,
            code=promo.code,
            baseAmount=base_amount,
            discountAmount=discount,
            finalAmount=round(max(0, base_amount - discount), 2),
        )

    def preview(self, code: Optional[str], user_id: str, plan_id: Optional[str]) -> ValidatePromoResponse:
        """Discount preview against the full plan price; raises HTTPException when not applicable"""
        if not normalize_code(code):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"valid": False, "message": "Promo code is required"},
            )
        if not plan_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"valid": False, "message": "Plan ID is required"},
            )
        plan = self.catalog.lookup(plan_id)
        if plan is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"valid": False, "message": "Invalid plan ID"},
            )

        evaluation = self.evaluate(code, user_id, plan_id, plan.amount)
        raise_for_evaluation(evaluation)

        promo = self.load(evaluation.code)
        return ValidatePromoResponse(
            promoCode=PromoSummary(
                code=promo.code,
                description=promo.description,
                discountType=promo.discountType,
                discountValue=promo.discountValue,
            ),
            pricing=PromoPricing(
                originalAmount=plan.amount,
                discountAmount=evaluation.discountAmount,
                finalAmount=evaluation.finalAmount,
            ),
        )


def raise_for_evaluation(evaluation: PromoEvaluation) -> None:
    """Turn a failed evaluation into the HTTP error the client sees"""
    if evaluation.valid:
        return
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND if evaluation.notFound else status.HTTP_400_BAD_REQUEST,
        detail={"valid": False, "message": evaluation.reason},
    )


def record_usage(code: str, user_id: str, order_id: str, discount_applied: float) -> bool:
    """
    Count one redemption of a promo code.

    Both caps are checked against a snapshot of the code, and the $inc + $push
    only applies if usageCount is still the one in that snapshot. Every recorded
    usage bumps usageCount, so an unchanged count means usedBy is unchanged too.
    A conflicting writer forces a re-read, up to USAGE_RECORD_ATTEMPTS times.

    Returns:
        True if the usage was recorded
    """
    collection = require_collection(PROMO_CODES_COLLECTION)
    code = normalize_code(code)

    for _ in range(USAGE_RECORD_ATTEMPTS):
        promo_doc = collection.find_one(
            {"code": code},
            {"usageCount": 1, "usageLimit": 1, "perUserLimit": 1, "usedBy": 1},
        )
        if promo_doc is None:
            logger.warning(f"Promo usage for {code} (order {order_id}) not recorded: code not found")
            return False

        usage_count = promo_doc.get("usageCount", 0)
        usage_limit = promo_doc.get("usageLimit")
        if usage_limit is not None and usage_count >= usage_limit:
            logger.warning(f"Promo usage for {code} (order {order_id}) not recorded: usage limit reached")
            return False

        user_uses = sum(1 for usage in promo_doc.get("usedBy") or [] if usage.get("userId") == user_id)
        if user_uses >= (promo_doc.get("perUserLimit") or 1):
            logger.warning(
                f"Promo usage for {code} (order {order_id}) not recorded: "
                f"per-user limit reached for user {user_id}"
            )
            return False

        result = collection.update_one(
            {"code": code, "usageCount": usage_count},
            {
                "$inc": {"usageCount": 1},
                "$push": {
                    "usedBy": {
                        "userId": user_id,
                        "usedAt": datetime.utcnow(),
                        "orderId": order_id,
                        "discountApplied": discount_applied,
                    }
                },
            },
        )
        if result.matched_count:
            logger.info(f"Recorded promo {code} usage by user {user_id} for order {order_id}")
            return True

    logger.warning(f"Promo usage for {code} (order {order_id}) not recorded: too many concurrent updates")
    return False


# Admin operations

def create_promo_code(request: CreatePromoRequest, catalog: PlanCatalog) -> PromoCode:
    collection = require_collection(PROMO_CODES_COLLECTION)
    code = normalize_code(request.code)

    if collection.find_one({"code": code}):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Promo code already exists"},
        )

    unknown_plans = [plan_id for plan_id in request.applicablePlans or [] if plan_id not in catalog]
    if unknown_plans:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": f"Unknown plan(s): {', '.join(unknown_plans)}"},
        )

    if request.discountType == "percentage" and request.discountValue > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Percentage discount cannot exceed 100"},
        )

    now = datetime.utcnow()
    promo = PromoCode(
        code=code,
        description=request.description,
        discountType=request.discountType,
        discountValue=request.discountValue,
        maxDiscount=request.maxDiscount,
        minPurchaseAmount=request.minPurchaseAmount or 0,
        applicablePlans=request.applicablePlans or [],
        usageLimit=request.usageLimit,
        perUserLimit=request.perUserLimit or 1,
        validFrom=_as_naive_utc(request.validFrom) or now,
        validUntil=_as_naive_utc(request.validUntil),
        createdAt=now,
    )

    try:
        collection.insert_one(promo.model_dump())
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Promo code already exists"},
        )

    logger.info(f"Created promo code {code} ({promo.discountType} {promo.discountValue})")
    return promo


def deactivate_promo_code(code: str) -> PromoCode:
    collection = require_collection(PROMO_CODES_COLLECTION)
    result = collection.update_one({"code": normalize_code(code)}, {"$set": {"active": False}})
    if result.matched_count == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Promo code not found"},
        )
    logger.info(f"Deactivated promo code {normalize_code(code)}")
    return PromoCode(**collection.find_one({"code": normalize_code(code)}))


def list_active_promo_codes() -> List[dict]:
    collection = require_collection(PROMO_CODES_COLLECTION)
    cursor = collection.find({"active": True}, {"_id": 0, "usedBy": 0}).sort("createdAt", DESCENDING)
    return list(cursor)


def get_promo_stats(code: str) -> PromoStatsResponse:
    collection = require_collection(PROMO_CODES_COLLECTION)
    doc = collection.find_one({"code": normalize_code(code)})
    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Promo code not found"},
        )
    promo = PromoCode(**doc)

    # Attach name/email of each redeeming user
    user_ids = {usage.userId for usage in promo.usedBy if ObjectId.is_valid(usage.userId)}
    users = {}
    if user_ids:
        users_collection = require_collection(USERS_COLLECTION)
        for user in users_collection.find(
            {"_id": {"$in": [ObjectId(user_id) for user_id in user_ids]}},
            {"name": 1, "email": 1},
        ):
            users[str(user["_id"])] = user

    used_by = [
        PromoUsageDetail(
            **usage.model_dump(),
            userName=users.get(usage.userId, {}).get("name"),
            userEmail=users.get(usage.userId, {}).get("email"),
        )
        for usage in promo.usedBy
    ]

    return PromoStatsResponse(
        code=promo.code,
        description=promo.description,
        usageCount=promo.usageCount,
        usageLimit=promo.usageLimit,
        active=promo.active,
        validFrom=promo.validFrom,
        validUntil=promo.validUntil,
        usedBy=used_by,
    )
