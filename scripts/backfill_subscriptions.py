#!/usr/bin/env python3
"""
Backfill subscription state on existing users.

This script:
1. Gives users without a subscription document the inert (inactive, zero-credit) one
2. Makes sure every user has a payments list
3. Repairs subscriptions whose interviewsTotal != interviewsUsed + interviewsRemaining
   by recomputing interviewsTotal

Usage:
    python scripts/backfill_subscriptions.py [--dry-run]
"""

import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import datetime
import logging

from app.db.mongodb import connect_to_mongodb, close_mongodb_connection, get_collection, USERS_COLLECTION
from app.models.subscription import inert_subscription

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def backfill_subscriptions(dry_run: bool = False) -> bool:
    collection = get_collection(USERS_COLLECTION)
    if collection is None:
        logger.error("Failed to access users collection")
        return False

    now = datetime.utcnow()

    missing = collection.count_documents({"subscription": {"$exists": False}})
    logger.info(f"Users without a subscription: {missing}")
    if missing and not dry_run:
        result = collection.update_many(
            {"subscription": {"$exists": False}},
            {"$set": {"subscription": inert_subscription(), "dateUpdated": now}},
        )
        logger.info(f"Initialized subscription on {result.modified_count} users")

    no_payments = collection.count_documents({"payments": {"$exists": False}})
    logger.info(f"Users without a payments list: {no_payments}")
    if no_payments and not dry_run:
        collection.update_many({"payments": {"$exists": False}}, {"$set": {"payments": []}})

    repaired = 0
    for user in collection.find({"subscription": {"$exists": True}}, {"email": 1, "subscription": 1}):
        subscription = user.get("subscription") or {}
        used = subscription.get("interviewsUsed", 0) or 0
        remaining = subscription.get("interviewsRemaining", 0) or 0
        total = subscription.get("interviewsTotal", 0) or 0
        if total == used + remaining:
            continue

        logger.warning(
            f"User {user.get('email', user['_id'])}: total={total} used={used} remaining={remaining}"
        )
        if not dry_run:
            collection.update_one(
                {"_id": user["_id"]},
                {"$set": {"subscription.interviewsTotal": used + remaining, "dateUpdated": now}},
            )
        repaired += 1

    logger.info(f"{'Would repair' if dry_run else 'Repaired'} {repaired} subscription(s) with inconsistent credits")
    return True


def main() -> int:
    dry_run = "--dry-run" in sys.argv[1:]

    if not connect_to_mongodb():
        logger.error("Failed to connect to MongoDB. Please check your connection settings.")
        return 1

    try:
        return 0 if backfill_subscriptions(dry_run=dry_run) else 1
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    sys.exit(main())
