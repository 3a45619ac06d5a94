"""
Notification service - best-effort user notifications

Notifications are stored in MongoDB and pushed on the user's Redis channel for
real-time delivery. Every failure is logged and swallowed: callers dispatch
notifications after their own work has been committed.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from app.core.config import settings
from app.db.mongodb import get_collection, NOTIFICATIONS_COLLECTION
from app.utils.redis_utils import publish_notification

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, dedup_window: Optional[timedelta] = None, realtime: bool = True):
        self.dedup_window = dedup_window or timedelta(minutes=settings.NOTIFICATION_DEDUP_MINUTES)
        self.realtime = realtime

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: str = "general",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[dict]:
        """
        Store and push a notification. Returns the stored document, the existing
        duplicate if an identical one was sent within the dedup window, or None on failure.
        """
        try:
            collection = get_collection(NOTIFICATIONS_COLLECTION)
            if collection is None:
                logger.warning(f"Notification for user {user_id} dropped: database unavailable")
                return None

            now = datetime.utcnow()
            existing = collection.find_one({
                "userId": user_id,
                "title": title,
                "message": message,
                "type": notification_type,
                "createdAt": {"$gt": now - self.dedup_window},
            })
            if existing:
                logger.debug(f"Blocked duplicate notification for user {user_id}: {title}")
                return existing

            notification = {
                "userId": user_id,
                "title": title,
                "message": message,
                "type": notification_type,
                "isRead": False,
                "metadata": metadata or {},
                "createdAt": now,
            }
            result = collection.insert_one(notification)
            notification["_id"] = result.inserted_id
        except Exception as e:
            logger.error(f"Error storing notification for user {user_id}: {e}", exc_info=True)
            return None

        if self.realtime and settings.REDIS_HOST:
            try:
                payload = dict(notification, _id=str(notification["_id"]))
                publish_notification(user_id, payload)
            except Exception as e:
                logger.warning(f"Real-time push failed for user {user_id}: {e}")

        return notification

    def subscription_activated(self, user_id: str, plan_name: str, metadata: Dict[str, Any]) -> Optional[dict]:
        return self.notify(
            user_id,
            "Subscription Activated",
            f"Your {plan_name} subscription has been successfully activated. Enjoy your interview prep!",
            notification_type="payment",
            metadata=metadata,
        )

    def credits_exhausted(self, user_id: str) -> Optional[dict]:
        return self.notify(
            user_id,
            "Interview Credits Used",
            "You've used all your interview credits. Upgrade your plan to unlock more "
            "AI-powered mock interviews and continue your preparation journey!",
            notification_type="warning",
            metadata={"action": "credits_exhausted", "requiresUpgrade": True},
        )
