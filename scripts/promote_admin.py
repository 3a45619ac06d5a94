#!/usr/bin/env python3
"""
Grant the admin role to a user so they can manage promo codes.

Usage:
    python scripts/promote_admin.py <user_email>
"""

import sys
import logging
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db.mongodb import connect_to_mongodb, close_mongodb_connection
from app.services.user_service import promote_to_admin

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    if len(sys.argv) < 2:
        print("Usage: python scripts/promote_admin.py <user_email>")
        return 1

    email = sys.argv[1]
    if not connect_to_mongodb():
        logger.error("Failed to connect to MongoDB. Please check your connection settings.")
        return 1

    try:
        user = promote_to_admin(email)
    finally:
        close_mongodb_connection()

    if user is None:
        logger.error(f"User with email {email} not found.")
        return 1

    logger.info(f"Promoted {user.email} to admin (ID: {user.id}, roles: {user.roles})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
