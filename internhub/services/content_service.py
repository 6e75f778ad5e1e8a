"""
Content Service - shared logic for community content (resources, forum posts).

Both collections hold documents written by a student or an organization
(`author` + `authorKind`), searched through a text index, filtered by
category and tags, and counted with atomic view/like counters.
"""

from typing import List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database

from internhub.core.auth import display_name, is_admin
from internhub.db.mongodb import get_collection
from internhub.schemas.schemas import normalize_list
from internhub.services.mongo_service import (
    AUTHOR_FIELDS, build_sort, paginate, parse_object_id, populate_authors, serialize_docs
)


def build_content_query(
    base: dict,
    search: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[str] = None,
) -> dict:
    """Filter for a content search; `tags` is comma-separated and matches any."""
    query = dict(base)
    if search and search.strip():
        query["$text"] = {"$search": search.strip()}
    if category:
        query["category"] = category
    tag_list = normalize_list(tags)
    if tag_list:
        query["tags"] = {"$in": tag_list}
    return query


def list_content(
    db: Database,
    name: str,
    query: dict,
    page: int,
    limit: int,
    sort: str,
    order: str,
    sort_fields: dict,
) -> dict:
    """Paginated listing in the response shape every content route returns."""
    sort_keys = build_sort(sort, order, sort_fields)
    projection = None
    if "$text" in query:
        projection = {"score": {"$meta": "textScore"}}
        sort_keys = [("score", {"$meta": "textScore"})] + sort_keys

    docs, total, pages = paginate(get_collection(db, name), query, page, limit, sort_keys, projection)
    populate_authors(db, docs)
    return {
        "success": True,
        "count": len(docs),
        "total": total,
        "page": page,
        "pages": pages,
        "items": serialize_docs(docs),
    }


def top_authors(db: Database, name: str, match: dict, total_field: str, total_name: str) -> List[dict]:
    """Ten most prolific authors with their post count and summed counter."""
    rows = list(get_collection(db, name).aggregate([
        {"$match": match},
        {"$group": {
            "_id": {"author": "$author", "kind": "$authorKind"},
            "count": {"$sum": 1},
            total_name: {"$sum": f"${total_field}"},
        }},
        {"$sort": {"count": -1}},
        {"$limit": 10},
    ]))

    result = []
    for row in rows:
        author_id, kind = row["_id"].get("author"), row["_id"].get("kind")
        collection, _ = AUTHOR_FIELDS.get(kind, (None, None))
        author = get_collection(db, collection).find_one({"_id": author_id}) if collection else None
        if not author:
            continue
        result.append({
            "_id": str(author_id),
            "authorName": display_name(author, kind),
            "count": row["count"],
            total_name: row[total_name],
        })
    return result


def find_or_404(db: Database, name: str, item_id: str, message: str, extra: Optional[dict] = None) -> dict:
    oid = parse_object_id(item_id)
    doc = None
    if oid is not None:
        doc = get_collection(db, name).find_one({"_id": oid, **(extra or {})})
    if not doc:
        raise HTTPException(status_code=404, detail=message)
    return doc


def increment(
    db: Database, name: str, item_id: str, field: str, message: str, extra: Optional[dict] = None
) -> dict:
    """Atomically add one to a counter and return the updated document."""
    oid = parse_object_id(item_id)
    doc = None
    if oid is not None:
        doc = get_collection(db, name).find_one_and_update(
            {"_id": oid, **(extra or {})},
            {"$inc": {field: 1}},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail=message)
    return doc


def can_edit(doc: dict, principal: dict) -> bool:
    """Authors edit their own content; admins edit anything."""
    if is_admin(principal):
        return True
    return doc.get("author") == principal["id"] and doc.get("authorKind") == principal["kind"]


def author_fields(principal: dict) -> dict:
    return {"author": principal["id"], "authorKind": principal["kind"]}


def author_filter(author_id: str) -> dict:
    oid = parse_object_id(author_id)
    if oid is None:
        # no author can match
        return {"author": ObjectId("0" * 24)}
    return {"author": oid}
