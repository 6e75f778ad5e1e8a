"""
Database module - MongoDB connection and collection helpers.
"""
from internhub.db.mongodb import (
    COLLECTIONS,
    create_mongo_client,
    get_collection,
    get_db,
    init_mongo_indexes,
    check_mongo_connection,
)

__all__ = [
    "COLLECTIONS",
    "create_mongo_client",
    "get_collection",
    "get_db",
    "init_mongo_indexes",
    "check_mongo_connection",
]
