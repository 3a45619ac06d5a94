"""
Promo code evaluation: discount math, ordered eligibility checks, preview errors
and guarded usage recording.
"""
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from app.db.mongodb import PROMO_CODES_COLLECTION
from app.models.promo_code import PromoCode
from app.services.promo_service import calculate_discount, record_usage, raise_for_evaluation

from conftest import make_promo, make_user


def _promo(**fields) -> PromoCode:
    base = {"code": "TEST", "discountType": "flat", "discountValue": 10}
    base.update(fields)
    return PromoCode(**base)


def test_percentage_discount():
    assert calculate_discount(_promo(discountType="percentage", discountValue=10), 179) == 17.9


def test_percentage_discount_capped_by_max_discount():
    promo = _promo(discountType="percentage", discountValue=50, maxDiscount=30)
    assert calculate_discount(promo, 179) == 30


def test_flat_discount_never_exceeds_base():
    assert calculate_discount(_promo(discountValue=100), 79) == 79


def test_evaluate_valid_percentage_code(db, evaluator):
    make_promo(db, "SAVE10", discountType="percentage", discountValue=10)
    user_id = make_user(db)

    evaluation = evaluator.evaluate("save10", user_id, "premium", 179)

    assert evaluation.valid is True
    assert evaluation.code == "SAVE10"
    assert evaluation.discountAmount == 17.9
    assert evaluation.finalAmount == 161.1


def test_evaluate_does_not_touch_usage(db, evaluator):
    make_promo(db, "SAVE10", discountType="percentage", discountValue=10, usageLimit=5)
    user_id = make_user(db)

    evaluator.evaluate("SAVE10", user_id, "premium", 179)
    evaluator.evaluate("SAVE10", user_id, "premium", 179)

    doc = db[PROMO_CODES_COLLECTION].find_one({"code": "SAVE10"})
    assert doc["usageCount"] == 0
    assert doc["usedBy"] == []


def test_unknown_code_is_not_found(db, evaluator):
    evaluation = evaluator.evaluate("NOPE", make_user(db), "monthly", 79)
    assert evaluation.valid is False
    assert evaluation.notFound is True
    assert evaluation.reason == "Invalid promo code"


@pytest.mark.parametrize(
    "fields, plan_id, base, reason",
    [
        ({"active": False}, "monthly", 79, "This promo code is no longer active"),
        ({"validFrom": datetime(2026, 2, 1)}, "monthly", 79, "This promo code is not yet valid"),
        ({"validUntil": datetime(2026, 1, 1)}, "monthly", 79, "This promo code has expired"),
        ({"usageLimit": 3, "usageCount": 3}, "monthly", 79, "This promo code has reached its usage limit"),
        ({"applicablePlans": ["yearly"]}, "monthly", 79, "This promo code is not applicable to the selected plan"),
        ({"minPurchaseAmount": 100}, "monthly", 79, "Minimum purchase amount of ₹100 required"),
    ],
)
def test_rejection_reasons(db, evaluator, fields, plan_id, base, reason):
    make_promo(db, "CODE", **fields)
    evaluation = evaluator.evaluate("CODE", make_user(db), plan_id, base)
    assert evaluation.valid is False
    assert evaluation.notFound is False
    assert evaluation.reason == reason


def test_first_failing_check_wins(db, evaluator):
    # Inactive, expired and capped at once: inactivity is reported
    make_promo(db, "CODE", active=False, validUntil=datetime(2025, 1, 1), usageLimit=1, usageCount=1)
    evaluation = evaluator.evaluate("CODE", make_user(db), "monthly", 79)
    assert evaluation.reason == "This promo code is no longer active"


def test_per_user_limit(db, evaluator):
    user_id = make_user(db)
    other_id = make_user(db, email="other@example.com")
    make_promo(db, "ONCE", usedBy=[{
        "userId": user_id,
        "usedAt": datetime(2026, 1, 10),
        "orderId": "order_old",
        "discountApplied": 10,
    }], usageCount=1)

    assert evaluator.evaluate("ONCE", user_id, "monthly", 79).reason == "You have already used this promo code"
    assert evaluator.evaluate("ONCE", other_id, "monthly", 79).valid is True


def test_validity_window_boundaries_are_inclusive(db, evaluator, clock):
    make_promo(db, "WINDOW", validFrom=clock.now, validUntil=clock.now)
    assert evaluator.evaluate("WINDOW", make_user(db), "monthly", 79).valid is True

    clock.now = clock.now + timedelta(seconds=1)
    assert evaluator.evaluate("WINDOW", make_user(db, email="b@example.com"), "monthly", 79).valid is False


def test_raise_for_evaluation_maps_status(db, evaluator):
    make_promo(db, "OFF", active=False)
    user_id = make_user(db)

    with pytest.raises(HTTPException) as not_found:
        raise_for_evaluation(evaluator.evaluate("MISSING", user_id, "monthly", 79))
    assert not_found.value.status_code == 404

    with pytest.raises(HTTPException) as rejected:
        raise_for_evaluation(evaluator.evaluate("OFF", user_id, "monthly", 79))
    assert rejected.value.status_code == 400
    assert rejected.value.detail == {"valid": False, "message": "This promo code is no longer active"}


def test_preview_prices_against_full_plan_price(db, evaluator):
    make_promo(db, "SAVE10", discountType="percentage", discountValue=10, description="10% off")

    response = evaluator.preview("SAVE10", make_user(db), "premium")

    assert response.valid is True
    assert response.promoCode.code == "SAVE10"
    assert response.pricing.originalAmount == 179
    assert response.pricing.discountAmount == 17.9
    assert response.pricing.finalAmount == 161.1


@pytest.mark.parametrize(
    "code, plan_id, message",
    [
        (None, "monthly", "Promo code is required"),
        ("  ", "monthly", "Promo code is required"),
        ("SAVE10", None, "Plan ID is required"),
        ("SAVE10", "platinum", "Invalid plan ID"),
    ],
)
def test_preview_input_errors(db, evaluator, code, plan_id, message):
    with pytest.raises(HTTPException) as exc:
        evaluator.preview(code, make_user(db), plan_id)
    assert exc.value.status_code == 400
    assert exc.value.detail["message"] == message


def test_record_usage_respects_global_limit(db):
    make_promo(db, "TWICE", usageLimit=2, perUserLimit=5)

    assert record_usage("twice", "u1", "order_1", 10) is True
    assert record_usage("TWICE", "u2", "order_2", 10) is True
    assert record_usage("TWICE", "u3", "order_3", 10) is False

    doc = db[PROMO_CODES_COLLECTION].find_one({"code": "TWICE"})
    assert doc["usageCount"] == 2
    assert [usage["orderId"] for usage in doc["usedBy"]] == ["order_1", "order_2"]


def test_record_usage_unknown_code(db):
    assert record_usage("GHOST", "u1", "order_1", 10) is False


def test_record_usage_respects_per_user_limit(db):
    make_promo(db, "TWICEEACH", perUserLimit=2)

    assert record_usage("TWICEEACH", "u1", "order_1", 10) is True
    assert record_usage("TWICEEACH", "u1", "order_2", 10) is True
    assert record_usage("TWICEEACH", "u1", "order_3", 10) is False
    assert record_usage("TWICEEACH", "u2", "order_4", 10) is True

    doc = db[PROMO_CODES_COLLECTION].find_one({"code": "TWICEEACH"})
    assert doc["usageCount"] == 3
    assert [usage["orderId"] for usage in doc["usedBy"]] == ["order_1", "order_2", "order_4"]
