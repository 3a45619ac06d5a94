"""
Notification storage, duplicate suppression and the Redis real-time channel.
"""
import json
from datetime import datetime, timedelta

import pytest
import redis

from app.core.config import settings
from app.db.mongodb import NOTIFICATIONS_COLLECTION
from app.services.notification_service import NotificationService
from app.utils import redis_utils


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    def publish(self, channel, message):
        if self.fail:
            raise redis.ConnectionError("connection reset")
        self.published.append((channel, json.loads(message)))
        return 1

    def ping(self):
        return True


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(settings, "REDIS_HOST", "localhost")
    monkeypatch.setattr(redis_utils, "_redis_client", client)
    return client


def test_notification_is_stored(db):
    stored = NotificationService(realtime=False).notify("u1", "Hello", "World", metadata={"a": 1})

    doc = db[NOTIFICATIONS_COLLECTION].find_one({"userId": "u1"})
    assert stored["_id"] == doc["_id"]
    assert doc["type"] == "general"
    assert doc["isRead"] is False
    assert doc["metadata"] == {"a": 1}


def test_duplicate_within_window_is_suppressed(db):
    notifier = NotificationService(realtime=False)

    first = notifier.notify("u1", "Hello", "World")
    second = notifier.notify("u1", "Hello", "World")
    notifier.notify("u1", "Hello", "Something else")

    assert second["_id"] == first["_id"]
    assert db[NOTIFICATIONS_COLLECTION].count_documents({"userId": "u1"}) == 2


def test_duplicate_outside_window_is_stored(db):
    notifier = NotificationService(dedup_window=timedelta(minutes=5), realtime=False)
    notifier.notify("u1", "Hello", "World")
    db[NOTIFICATIONS_COLLECTION].update_many({}, {"$set": {"createdAt": datetime.utcnow() - timedelta(minutes=10)}})

    notifier.notify("u1", "Hello", "World")

    assert db[NOTIFICATIONS_COLLECTION].count_documents({"userId": "u1"}) == 2


def test_notification_published_on_user_channel(db, fake_redis):
    NotificationService().subscription_activated("u42", "Pro Access", {"planId": "premium"})

    channel, payload = fake_redis.published[0]
    assert channel == "notifications:u42"
    assert payload["title"] == "Subscription Activated"
    assert payload["type"] == "payment"
    assert isinstance(payload["_id"], str)


def test_publish_failure_keeps_stored_notification(db, fake_redis):
    fake_redis.fail = True

    stored = NotificationService().credits_exhausted("u7")

    assert stored is not None
    assert db[NOTIFICATIONS_COLLECTION].count_documents({"userId": "u7"}) == 1


def test_database_unavailable_returns_none(monkeypatch):
    from app.db import mongodb
    monkeypatch.setattr(mongodb, "mongodb_db", None)

    assert NotificationService(realtime=False).notify("u1", "Hello", "World") is None
