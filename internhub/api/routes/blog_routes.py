"""
Blog Routes (read-only view over published resources)

GET /blog - Published posts, newest first
GET /blog/{slug} - One published post by slug or id
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING
from pymongo.database import Database

from internhub.core.auth import display_name
from internhub.db.mongodb import get_collection, get_db
from internhub.services.mongo_service import (
    AUTHOR_FIELDS, contains_filter, paginate, parse_object_id, populate, populate_authors, serialize_doc
)

router = APIRouter(prefix="/blog", tags=["Blog"])

PUBLISHED = {"isPublished": True}


def _author(doc: dict) -> dict:
    author = doc.get("author")
    if not isinstance(author, dict):
        return {"name": "Admin", "id": None}
    return {
        "name": display_name(author, doc.get("authorKind")) or "Admin",
        "id": author.get("_id"),
        "email": author.get("email"),
    }


def to_post(doc: dict, detail: bool = False) -> dict:
    """Shape a resource as a blog post."""
    author = _author(doc)
    post = {
        "_id": doc["_id"],
        "title": doc.get("title"),
        "slug": doc.get("slug") or str(doc["_id"]),
        "excerpt": doc.get("excerpt") or (doc.get("content") or "")[:200] + "...",
        "content": doc.get("content"),
        "coverImage": doc.get("featuredImage") or None,
        "tags": doc.get("tags", []),
        "author": {"name": author["name"], "id": author["id"]},
        "createdAt": doc.get("createdAt"),
    }
    if detail:
        post["author"]["email"] = author.get("email")
        post["updatedAt"] = doc.get("updatedAt")
    return serialize_doc(post)


@router.get("")
def list_posts(
    search: Optional[str] = Query(None, description="Matches title, content or excerpt"),
    tag: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = dict(PUBLISHED)
    if search and search.strip():
        query["$or"] = [{field: contains_filter(search)} for field in ("title", "content", "excerpt")]
    if tag and tag.strip():
        query["tags"] = tag.strip()

    docs, total, pages = paginate(
        get_collection(db, "resources"), query, page, limit, [("createdAt", DESCENDING), ("_id", DESCENDING)]
    )
    populate_authors(db, docs)
    return {
        "success": True,
        "count": len(docs),
        "total": total,
        "page": page,
        "pages": pages,
        "posts": [to_post(doc) for doc in docs],
    }


@router.get("/{slug}")
def get_post(slug: str, db: Database = Depends(get_db)):
    """Unlike GET /resources/{id}, reading a post here counts no view."""
    match = [{"slug": slug}]
    oid = parse_object_id(slug)
    if oid is not None:
        match.append({"_id": oid})
    doc = get_collection(db, "resources").find_one({**PUBLISHED, "$or": match})
    if not doc:
        raise HTTPException(status_code=404, detail="Blog post not found")
    collection, fields = AUTHOR_FIELDS.get(doc.get("authorKind"), (None, None))
    if collection:
        populate(db, [doc], "author", collection, fields + ["email"])
    return {"success": True, "post": to_post(doc, detail=True)}
