"""
MongoDB Connection Utility

MongoDB stores every entity of the platform, one collection each:
- students, organizations: principals with hashed credentials
- opportunities: the internship catalog
- applications: the ledger linking students to opportunities
- reviews, resources, forum_posts, email_alerts: community content

The client is created once by the app lifespan (see internhub.main) and
handed to routes through the `get_db` dependency. Nothing here holds a
module-level connection.
"""
import logging

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection

from internhub.core.config import Settings

logger = logging.getLogger(__name__)


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "organizations": "organizations",
    "opportunities": "opportunities",
    "applications": "applications",
    "reviews": "reviews",
    "resources": "resources",
    "forum": "forum_posts",
    "alerts": "email_alerts",
}


def create_mongo_client(settings: Settings) -> MongoClient:
    """Open a client for the configured URI (connection pooling handled by pymongo)."""
    return MongoClient(settings.mongodb_uri, tz_aware=False)


def get_collection(db: Database, name: str) -> Collection:
    """Get a collection by its logical name (a key of COLLECTIONS)."""
    return db[COLLECTIONS[name]]


def get_db(request: Request) -> Database:
    """
    FastAPI dependency - the database opened at startup.

    Usage:
        @router.get("/things")
        def list_things(db: Database = Depends(get_db)):
            ...
    """
    return request.app.state.db


def check_mongo_connection(client: MongoClient) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        # ping command checks connection
        client.admin.command("ping")
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes(db: Database) -> None:
    """
    Create indexes the API relies on.
    Unique indexes back the one-per-pair rules, text indexes back search.
    Call this once during app startup.
    """
    get_collection(db, "students").create_index("email", unique=True)
    get_collection(db, "organizations").create_index("email", unique=True)

    opportunities = get_collection(db, "opportunities")
    opportunities.create_index(
        [("title", TEXT), ("description", TEXT), ("skills", TEXT)],
        name="opportunity_text"
    )
    opportunities.create_index([("location", ASCENDING), ("type", ASCENDING), ("industry", ASCENDING)])
    opportunities.create_index([("organization", ASCENDING), ("createdAt", DESCENDING)])

    # One application per student per opportunity
    applications = get_collection(db, "applications")
    applications.create_index([("opportunity", ASCENDING), ("student", ASCENDING)], unique=True)
    applications.create_index([("student", ASCENDING), ("appliedAt", DESCENDING)])
    applications.create_index("organization")

    # One review per student per opportunity
    reviews = get_collection(db, "reviews")
    reviews.create_index([("opportunity", ASCENDING), ("student", ASCENDING)], unique=True)
    reviews.create_index("organization")

    for name in ("resources", "forum"):
        get_collection(db, name).create_index(
            [("title", TEXT), ("content", TEXT), ("tags", TEXT)],
            name=f"{COLLECTIONS[name]}_text"
        )

    # At most one active alert per student
    get_collection(db, "alerts").create_index(
        "student", unique=True, partialFilterExpression={"isActive": True}, name="one_active_alert_per_student"
    )

    logger.info("MongoDB indexes ensured on %s", db.name)
