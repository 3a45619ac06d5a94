"""
Shared fixtures: an in-memory MongoDB (mongomock), a fake Razorpay client,
a controllable clock and a ready-made ledger.
"""
import os
import sys
from datetime import datetime
from pathlib import Path

# Settings are read at import time
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ.pop("REDIS_HOST", None)
os.environ.pop("MONGODB_URI", None)

# Ensure project root is importable when run directly
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import mongomock
import pytest
from bson import ObjectId

from app.core.plans import default_catalog
from app.db import mongodb
from app.db.mongodb import USERS_COLLECTION, PROMO_CODES_COLLECTION
from app.models.subscription import inert_subscription
from app.services.notification_service import NotificationService
from app.services.payment_gateway import RazorpayGateway, compute_signature
from app.services.promo_service import PromoEvaluator
from app.services.subscription_service import SubscriptionLedger

RAZORPAY_SECRET = "rzp_test_secret"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeOrders:
    def __init__(self):
        self.created = []

    def create(self, data=None, **kwargs):
        self.created.append({"data": data, **kwargs})
        return {
            "id": f"order_test_{len(self.created)}",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "status": "created",
        }


class FakeRazorpayClient:
    def __init__(self):
        self.order = FakeOrders()


def sign(order_id: str, payment_id: str) -> str:
    return compute_signature(RAZORPAY_SECRET, order_id, payment_id)


@pytest.fixture
def db(monkeypatch):
    database = mongomock.MongoClient().prepvio
    monkeypatch.setattr(mongodb, "mongodb_db", database)
    return database


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 15, 10, 0, 0))


@pytest.fixture
def razorpay_client():
    return FakeRazorpayClient()


@pytest.fixture
def gateway(razorpay_client):
    return RazorpayGateway("rzp_test_key", RAZORPAY_SECRET, currency="INR", timeout=10, client=razorpay_client)


@pytest.fixture
def notifier(db):
    return NotificationService(realtime=False)


@pytest.fixture
def evaluator(db, clock):
    return PromoEvaluator(default_catalog, clock=clock)


@pytest.fixture
def ledger(db, evaluator, gateway, notifier, clock):
    return SubscriptionLedger(default_catalog, evaluator, gateway, notifier, clock=clock)


def make_user(db, email="candidate@example.com", subscription=None, roles=None, **fields) -> str:
    doc = {
        "name": "Test Candidate",
        "email": email,
        "hashedPassword": "",
        "isActive": True,
        "isVerified": True,
        "roles": roles or ["user"],
        "subscription": dict(inert_subscription(), **(subscription or {})),
        "payments": [],
        "interviewAttempts": [],
    }
    doc.update(fields)
    return str(db[USERS_COLLECTION].insert_one(doc).inserted_id)


def make_promo(db, code, **fields) -> dict:
    doc = {
        "code": code.upper(),
        "description": None,
        "discountType": "flat",
        "discountValue": 10,
        "maxDiscount": None,
        "minPurchaseAmount": 0,
        "applicablePlans": [],
        "usageLimit": None,
        "usageCount": 0,
        "perUserLimit": 1,
        "validFrom": None,
        "validUntil": None,
        "active": True,
        "usedBy": [],
        "createdAt": datetime(2026, 1, 1),
    }
    doc.update(fields)
    db[PROMO_CODES_COLLECTION].insert_one(doc)
    return doc


def get_user(db, user_id: str) -> dict:
    return db[USERS_COLLECTION].find_one({"_id": ObjectId(user_id)})


def purchase(ledger, user_id, plan_id, promo_code=None, payment_id="pay_test"):
    """Full create-order -> verify cycle; returns (order intent, redemption)"""
    intent = ledger.create_order(user_id, plan_id, promo_code)
    redemption = ledger.verify_and_redeem(user_id, intent.orderId, payment_id, sign(intent.orderId, payment_id))
    return intent, redemption
