"""
MongoDB Connection Utility

MongoDB stores:
- students: student principals and their profiles
- startups: startup principals, profiles and posted project ids
- projects: projects with their embedded applicant records

WHY MongoDB for these?
- Applicants are embedded in their project document, no join table
- Legacy applicant shapes coexist with the current one in the same array
"""
import structlog
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.core.config import get_settings

logger = structlog.get_logger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri, tz_aware=True)
    return _client


def get_mongo_db() -> Database:
    """Get the marketplace database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection (see COLLECTIONS)."""
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
    except PyMongoError as e:
        logger.warning("mongo_ping_failed", error=str(e))
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "startups": "startups",
    "projects": "projects",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Email is unique per collection; uniqueness across both kinds
    # is checked by IdentityService before insert
    db[COLLECTIONS["students"]].create_index("email", unique=True)
    db[COLLECTIONS["startups"]].create_index("email", unique=True)

    projects = db[COLLECTIONS["projects"]]
    projects.create_index("startup")
    projects.create_index("applicants.student")
    projects.create_index([("createdAt", DESCENDING)])
    projects.create_index([("startup", ASCENDING), ("createdAt", DESCENDING)])

    logger.info("mongo_indexes_created")
