"""
MongoDB connection module for FastAPI application
"""
import re
import logging
import threading
from pymongo import MongoClient, ASCENDING
from pymongo.errors import ConnectionFailure, ConfigurationError
from fastapi import HTTPException, status
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PROMO_CODES_COLLECTION = "promocodes"
NOTIFICATIONS_COLLECTION = "notifications"

# Global MongoDB client and database instances
mongodb_client: Optional[MongoClient] = None
mongodb_db = None


def connect_to_mongodb() -> bool:
    """
    Connect to MongoDB

    Returns:
        True if connection successful, False otherwise
    """
    global mongodb_client, mongodb_db

    if not settings.MONGODB_URI:
        logger.warning("MONGODB_URI not set. MongoDB connection will not be established.")
        return False

    try:
        mongodb_client = MongoClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=5000,  # 5 second timeout
            connectTimeoutMS=10000,  # 10 second connection timeout
        )

        # Test the connection
        mongodb_client.admin.command("ping")

        # Use database from URI if specified, otherwise use env var
        uri_db_match = re.search(r"mongodb(?:\+srv)?://[^/]+/([^?]+)", settings.MONGODB_URI)
        db_name = uri_db_match.group(1) if uri_db_match else settings.MONGODB_DB_NAME

        mongodb_db = mongodb_client[db_name]
        ensure_indexes()
        logger.info(f"Connected to MongoDB database '{db_name}'")
        return True

    except ConnectionFailure as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
    except ConfigurationError as e:
        logger.error(f"MongoDB configuration error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error connecting to MongoDB: {e}")

    mongodb_client = None
    mongodb_db = None
    return False


def ensure_indexes() -> None:
    """Create the indexes the ledger relies on (idempotent)"""
    if mongodb_db is None:
        return
    mongodb_db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
    mongodb_db[USERS_COLLECTION].create_index([("payments.orderId", ASCENDING)])
    mongodb_db[PROMO_CODES_COLLECTION].create_index([("code", ASCENDING)], unique=True)
    mongodb_db[NOTIFICATIONS_COLLECTION].create_index(
        [("userId", ASCENDING), ("createdAt", ASCENDING)]
    )


def close_mongodb_connection() -> None:
    """Close MongoDB connection - non-blocking to prevent hanging on shutdown"""
    global mongodb_client, mongodb_db

    if mongodb_client is not None:
        # Clear references immediately to allow fast shutdown
        client_to_close = mongodb_client
        mongodb_client = None
        mongodb_db = None

        def close_in_background():
            try:
                client_to_close.close()
                logger.debug("MongoDB connection closed successfully")
            except Exception as e:
                logger.debug(f"MongoDB close error (non-critical): {e}")

        # Daemon thread - won't block shutdown
        threading.Thread(target=close_in_background, daemon=True).start()
        logger.info("MongoDB connection cleanup completed")


def get_database():
    """Get MongoDB database instance"""
    return mongodb_db


def get_collection(collection_name: str = USERS_COLLECTION):
    """
    Get MongoDB collection instance

    Args:
        collection_name: Name of the collection (defaults to users)

    Returns:
        MongoDB collection instance or None if database not initialized
    """
    if mongodb_db is None:
        logger.error("MongoDB database not initialized. Call connect_to_mongodb() first.")
        return None

    logger.debug(f"Accessing collection '{collection_name}' in database '{mongodb_db.name}'")
    return mongodb_db[collection_name]


def require_collection(collection_name: str = USERS_COLLECTION):
    """
    Get a collection or fail the request with 503 when the database is down

    Raises:
        HTTPException: 503 if the database is not initialized
    """
    collection = get_collection(collection_name)
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": f"Failed to access {collection_name} collection"},
        )
    return collection


def is_connected() -> bool:
    """
    Check if MongoDB is connected

    Returns:
        True if connected, False otherwise
    """
    if mongodb_client is None:
        logger.debug("MongoDB client is None - not connected")
        return False

    try:
        mongodb_client.admin.command("ping")
        return True
    except Exception as e:
        logger.debug(f"MongoDB ping failed: {e}")
        return False
