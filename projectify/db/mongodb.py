"""
MongoDB Connection Utility

Collections:
- users: accounts (admin / user)
- projects: projects posted by admins
- applications: user applications to approved projects

The client and database handle are built explicitly by ``create_app`` and kept
on ``app.state``; nothing here caches a module-level connection.
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from projectify.core.config import Settings

logger = logging.getLogger(__name__)


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "projects": "projects",
    "applications": "applications",
}


def create_mongo_client(settings: Settings) -> MongoClient:
    """Build a client for the configured URI (pooling handled by pymongo)."""
    return MongoClient(settings.mongodb_uri, tz_aware=False)


def get_mongo_db(client: MongoClient, settings: Settings) -> Database:
    """Get the configured application database from a client."""
    return client[settings.mongodb_db]


def test_mongo_connection(db: Database) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes(db: Database) -> None:
    """
    Create indexes. Safe to call on every startup.

    The unique (projectId, userId) index is what settles concurrent duplicate
    applications; the service layer maps its DuplicateKeyError to a conflict.
    """
    db[COLLECTIONS["users"]].create_index("email", unique=True)

    db[COLLECTIONS["projects"]].create_index("status")
    db[COLLECTIONS["projects"]].create_index([("createdAt", DESCENDING)])

    applications = db[COLLECTIONS["applications"]]
    applications.create_index(
        [("projectId", ASCENDING), ("userId", ASCENDING)], unique=True
    )
    applications.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
    applications.create_index([("projectId", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("status", ASCENDING), ("createdAt", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
