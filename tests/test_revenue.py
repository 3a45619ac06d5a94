"""
Admin revenue reporting over redeemed payments and active subscriptions.
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_revenue_report
from app.core.plans import default_catalog
from app.main import app
from app.services.revenue_service import RevenueReport
from app.utils.jwt import create_access_token

from conftest import make_promo, make_user, purchase


@pytest.fixture
def report(db, clock):
    return RevenueReport(default_catalog, clock=clock)


@pytest.fixture
def client(db, report):
    app.dependency_overrides[get_revenue_report] = lambda: report
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sales(db, ledger, clock):
    """January: A buys monthly. February: B buys premium with SAVE10, then A upgrades to premium."""
    make_promo(db, "SAVE10", discountType="percentage", discountValue=10)
    alice = make_user(db, email="alice@example.com", name="Alice")
    bob = make_user(db, email="bob@example.com", name="Bob")
    make_user(db, email="idle@example.com")

    purchase(ledger, alice, "monthly", payment_id="pay_jan")
    clock.now = datetime(2026, 2, 3, 9, 0)
    purchase(ledger, bob, "premium", "SAVE10", payment_id="pay_bob")
    clock.now = clock.now + timedelta(hours=1)
    purchase(ledger, alice, "premium", payment_id="pay_upgrade")
    ledger.create_order(bob, "yearly")  # never paid
    return {"alice": alice, "bob": bob}


def _admin_headers(db) -> dict:
    admin_id = make_user(db, email="admin@example.com", roles=["admin"])
    return {"Authorization": f"Bearer {create_access_token({'sub': admin_id})}"}


def test_overview(report, sales):
    overview = report.overview()

    assert overview.totalRevenue == 340.1
    assert overview.totalTransactions == 3
    assert overview.monthRevenue == 261.1
    assert overview.monthTransactions == 2
    assert overview.activeSubscriptions == 2


def test_analytics_by_plan_and_month(report, sales):
    analytics = report.analytics()

    assert [(p.planId, p.planName, p.revenue, p.transactions) for p in analytics.byPlan] == [
        ("premium", "Pro Access", 261.1, 2),
        ("monthly", "Basic Plan", 79, 1),
    ]
    assert [(m.month, m.revenue, m.transactions) for m in analytics.byMonth] == [
        ("2026-01", 79, 1),
        ("2026-02", 261.1, 2),
    ]


def test_invoices_newest_first_with_user(report, sales):
    invoices = report.invoices().invoices

    assert [invoice.paymentId for invoice in invoices] == ["pay_upgrade", "pay_bob", "pay_jan"]
    assert invoices[0].userEmail == "alice@example.com"
    assert invoices[0].upgradeDiscount == 79
    assert invoices[1].userName == "Bob"
    assert invoices[1].promoCode == "SAVE10"
    assert invoices[1].discountAmount == 17.9


def test_active_subscriptions(report, sales):
    response = report.active_subscriptions()

    assert response.count == 2
    assert {sub.email for sub in response.subscriptions} == {"alice@example.com", "bob@example.com"}
    assert all(sub.planId == "premium" for sub in response.subscriptions)


def test_empty_ledger(report):
    overview = report.overview()
    assert overview.totalRevenue == 0
    assert overview.activeSubscriptions == 0
    assert report.analytics().byPlan == []
    assert report.invoices().invoices == []


def test_admin_revenue_routes(client, db, sales):
    headers = _admin_headers(db)

    overview = client.get("/api/revenue/overview", headers=headers)
    assert overview.status_code == 200, overview.text
    assert overview.json()["totalTransactions"] == 3

    analytics = client.get("/api/revenue/analytics", headers=headers).json()
    assert analytics["byMonth"][0]["month"] == "2026-01"

    invoices = client.get("/api/revenue/invoices", params={"limit": 1}, headers=headers).json()
    assert [invoice["paymentId"] for invoice in invoices["invoices"]] == ["pay_upgrade"]

    active = client.get("/api/revenue/active-subscriptions", headers=headers).json()
    assert active["count"] == 2


@pytest.mark.parametrize(
    "path",
    ["/api/revenue/overview", "/api/revenue/analytics", "/api/revenue/invoices", "/api/revenue/active-subscriptions"],
)
def test_admin_revenue_routes_forbidden_for_users(client, db, path):
    user_id = make_user(db)
    response = client.get(path, headers={"Authorization": f"Bearer {create_access_token({'sub': user_id})}"})
    assert response.status_code == 403
