"""
MongoDB Connection Utility

MongoDB stores every record of the portal:
- users         (credentials, session state, profile)
- companies     (registered by recruiters)
- jobs          (posted by recruiters, reference a company)
- applications  (a student applying to a job)
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection by name (see COLLECTIONS)."""
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "companies": "companies",
    "jobs": "jobs",
    "applications": "applications",
}


def init_mongo_indexes():
    """
    Create indexes. Unique indexes back the duplicate-identity checks,
    so this must run before the API accepts registrations.
    """
    db = get_mongo_db()

    users = db[COLLECTIONS["users"]]
    users.create_index("email", unique=True)
    users.create_index("phone_number", unique=True)
    # Sparse: most users have no pending reset
    users.create_index("reset_password_token", sparse=True)

    db[COLLECTIONS["companies"]].create_index("company_name", unique=True)
    db[COLLECTIONS["companies"]].create_index("user_id")

    db[COLLECTIONS["jobs"]].create_index("created_by")
    db[COLLECTIONS["jobs"]].create_index([("created_at", DESCENDING)])

    # One application per (job, applicant)
    db[COLLECTIONS["applications"]].create_index(
        [("job", ASCENDING), ("applicant", ASCENDING)], unique=True
    )

    logger.info("MongoDB indexes created")
