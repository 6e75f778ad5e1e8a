"""
MongoDB Service - query helpers shared by every route module.

The collections themselves are plain pymongo collections; these helpers
cover the repeated parts of talking to them:
- ObjectId parsing and JSON serialization
- pagination and sorting
- case-insensitive "contains" filters
- populating referenced documents (one $in query per field)
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from internhub.db.mongodb import get_collection
from internhub.utils.dates import as_utc


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a 24-hex string (or ObjectId), None when invalid."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _to_json(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items() if k != "password"}
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict (password never included)."""
    if doc is None:
        return None
    return _to_json(doc)


def serialize_docs(docs: Iterable[dict]) -> List[dict]:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


# ============================================================
# QUERY BUILDING
# ============================================================

def contains_filter(text: str) -> Dict[str, Any]:
    """Case-insensitive substring match; user input is escaped, never a pattern."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}


def build_sort(sort: str, order: str, allowed: Dict[str, str]) -> List[Tuple[str, int]]:
    """
    Map a public sort key to a stored field.

    `allowed` maps wire names to document paths, e.g. {"salary": "salary.amount"}.
    Unknown keys fall back to createdAt.
    """
    field = allowed.get(sort, "createdAt")
    direction = ASCENDING if order == "asc" else DESCENDING
    sort_keys = [(field, direction)]
    if field != "_id":
        # stable order between equal keys
        sort_keys.append(("_id", direction))
    return sort_keys


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def paginate(
    collection: Collection,
    query: dict,
    page: int = 1,
    limit: int = 10,
    sort: Optional[List[Tuple[str, Any]]] = None,
    projection: Optional[dict] = None,
) -> Tuple[List[dict], int, int]:
    """
    Run a paginated find.

    Returns:
        (docs, total, pages) where pages = ceil(total / limit), 0 when empty
    """
    total = collection.count_documents(query)
    cursor = collection.find(query, projection)
    if sort:
        cursor = cursor.sort(sort)
    docs = list(cursor.skip((page - 1) * limit).limit(limit))
    return docs, total, page_count(total, limit)


# ============================================================
# POPULATE: replace reference ids with projected sub-documents
# ============================================================

def populate(
    db: Database,
    docs: List[dict],
    field: str,
    collection: str,
    projection: List[str],
) -> List[dict]:
    """
    Replace `doc[field]` (an ObjectId) with the referenced document,
    limited to `projection` fields. Missing references become None.

    Args:
        db: database handle
        docs: documents to modify in place (also returned)
        field: reference field name, e.g. "organization"
        collection: logical collection name (key of COLLECTIONS)
        projection: fields to keep on the referenced document
    """
    ids = {doc.get(field) for doc in docs if isinstance(doc.get(field), ObjectId)}
    if not ids:
        return docs

    fields = {name: 1 for name in projection}
    found = {
        ref["_id"]: ref
        for ref in get_collection(db, collection).find({"_id": {"$in": list(ids)}}, fields)
    }
    for doc in docs:
        ref_id = doc.get(field)
        if isinstance(ref_id, ObjectId):
            doc[field] = found.get(ref_id)
    return docs


def populate_one(db: Database, doc: Optional[dict], field: str, collection: str, projection: List[str]) -> Optional[dict]:
    if doc is not None:
        populate(db, [doc], field, collection, projection)
    return doc


def count_by(collection: Collection, match: dict, field: str, limit: Optional[int] = None) -> List[dict]:
    """Group `match`ed documents by `field`: [{_id, count}] sorted by count descending."""
    pipeline = [
        {"$match": match},
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]
    if limit:
        pipeline.append({"$limit": limit})
    return list(collection.aggregate(pipeline))


AUTHOR_FIELDS = {
    "student": ("students", ["firstName", "lastName", "profilePicture"]),
    "organization": ("organizations", ["name", "logo"]),
}


def populate_authors(db: Database, docs: List[dict]) -> List[dict]:
    """Populate `author` on content written by either kind of principal (see `authorKind`)."""
    for kind, (collection, projection) in AUTHOR_FIELDS.items():
        populate(db, [d for d in docs if d.get("authorKind") == kind], "author", collection, projection)
    return docs
