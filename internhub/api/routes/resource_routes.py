"""
Resource Routes (career articles)

GET /resources - Search published resources
GET /resources/featured - Most liked resources
GET /resources/stats - Resource statistics
GET /resources/category/{category} - Resources in one category
GET /resources/author/{id} - Resources by one author
GET /resources/{id} - Resource detail (counts a view)
POST /resources - Write a resource (published right away for admins)
PUT /resources/{id} - Edit (author or admin)
DELETE /resources/{id} - Delete (author or admin)
POST /resources/{id}/like - Like a resource
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from internhub.core.auth import get_current_principal, is_admin
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import ResourceCategory, ResourceCreate, ResourceSort, ResourceUpdate, SortOrder
from internhub.services import content_service
from internhub.services.mongo_service import count_by, populate_authors, serialize_doc, serialize_docs
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/resources", tags=["Resources"])

SORT_FIELDS = {"createdAt": "createdAt", "views": "views", "likes": "likes", "readingTime": "readingTime"}
PUBLISHED = {"isPublished": True}
NOT_FOUND = "Resource not found"


def make_excerpt(content: str) -> str:
    return content[:200] + "..."


def reading_time(content: str) -> int:
    """Minutes at 200 words per minute, at least one."""
    return max(1, math.ceil(len(content.split()) / 200))


def _listing(result: dict, **extra) -> dict:
    result["resources"] = result.pop("items")
    result.update(extra)
    return result


@router.get("")
def search_resources(
    search: Optional[str] = Query(None),
    category: Optional[ResourceCategory] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated, matches any"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: ResourceSort = Query(ResourceSort.created_at),
    order: SortOrder = Query(SortOrder.desc),
    db: Database = Depends(get_db),
):
    query = content_service.build_content_query(
        PUBLISHED, search, category.value if category else None, tags
    )
    return _listing(content_service.list_content(
        db, "resources", query, page, limit, sort.value, order.value, SORT_FIELDS
    ))


@router.get("/featured")
def featured_resources(db: Database = Depends(get_db)):
    docs = list(
        get_collection(db, "resources")
        .find(PUBLISHED)
        .sort([("likes", DESCENDING), ("views", DESCENDING), ("_id", DESCENDING)])
        .limit(6)
    )
    return {"success": True, "resources": serialize_docs(populate_authors(db, docs))}


@router.get("/stats")
def resource_stats(db: Database = Depends(get_db)):
    resources = get_collection(db, "resources")
    return {
        "success": True,
        "stats": {
            "totalResources": resources.count_documents(PUBLISHED),
            "resourcesByCategory": count_by(resources, PUBLISHED, "category"),
            "topAuthors": content_service.top_authors(db, "resources", PUBLISHED, "views", "totalViews"),
        },
    }


@router.get("/category/{category}")
def resources_by_category(
    category: ResourceCategory,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = {**PUBLISHED, "category": category.value}
    result = content_service.list_content(db, "resources", query, page, limit, "createdAt", "desc", SORT_FIELDS)
    return _listing(result, category=category.value)


@router.get("/author/{author_id}")
def resources_by_author(
    author_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = {**PUBLISHED, **content_service.author_filter(author_id)}
    return _listing(content_service.list_content(
        db, "resources", query, page, limit, "createdAt", "desc", SORT_FIELDS
    ))


@router.get("/{resource_id}")
def get_resource(resource_id: str, db: Database = Depends(get_db)):
    """Published resource detail. Every call counts one view."""
    doc = content_service.increment(db, "resources", resource_id, "views", NOT_FOUND, PUBLISHED)
    populate_authors(db, [doc])
    return {"success": True, "resource": serialize_doc(doc)}


@router.post("", status_code=201)
def create_resource(
    data: ResourceCreate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    now = utcnow()
    doc = data.to_document()
    doc.setdefault("excerpt", make_excerpt(data.content))
    doc.setdefault("readingTime", reading_time(data.content))
    doc.update(content_service.author_fields(principal))
    doc.update({
        "featuredImage": "",
        "isPublished": is_admin(principal),
        "views": 0,
        "likes": 0,
        "createdAt": now,
        "updatedAt": now,
    })
    doc["_id"] = get_collection(db, "resources").insert_one(doc).inserted_id
    populate_authors(db, [doc])
    return {"success": True, "message": "Resource created successfully", "resource": serialize_doc(doc)}


@router.put("/{resource_id}")
def update_resource(
    resource_id: str,
    data: ResourceUpdate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = content_service.find_or_404(db, "resources", resource_id, NOT_FOUND)
    if not content_service.can_edit(existing, principal):
        raise HTTPException(status_code=403, detail="Not authorized to edit this resource")

    if "content" in changes:
        changes.setdefault("readingTime", reading_time(changes["content"]))
        changes.setdefault("excerpt", make_excerpt(changes["content"]))
    changes["updatedAt"] = utcnow()

    doc = get_collection(db, "resources").find_one_and_update(
        {"_id": existing["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not doc:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    populate_authors(db, [doc])
    return {"success": True, "message": "Resource updated successfully", "resource": serialize_doc(doc)}


@router.delete("/{resource_id}")
def delete_resource(
    resource_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    existing = content_service.find_or_404(db, "resources", resource_id, NOT_FOUND)
    if not content_service.can_edit(existing, principal):
        raise HTTPException(status_code=403, detail="Not authorized to delete this resource")
    get_collection(db, "resources").delete_one({"_id": existing["_id"]})
    return {"success": True, "message": "Resource deleted successfully"}


@router.post("/{resource_id}/like")
def like_resource(
    resource_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    doc = content_service.increment(db, "resources", resource_id, "likes", NOT_FOUND, PUBLISHED)
    return {"success": True, "message": "Resource liked successfully", "likes": doc["likes"]}
