"""
Opportunity Service - the listing catalog.

Opportunities are published by organizations and searched by students.
Route handlers in api/routes/opportunity_routes.py stay thin and call
these functions with the database handle they got from `get_db`.
"""

import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from fastapi import HTTPException
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from internhub.db.mongodb import get_collection
from internhub.schemas.schemas import OpportunityCreate, OpportunityUpdate
from internhub.services.mongo_service import (
    build_sort, contains_filter, count_by, paginate, parse_object_id, populate, populate_one
)
from internhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

# Owner fields exposed in listings and on the detail page
ORG_LIST_FIELDS = ["name", "logo", "industry", "location"]
ORG_DETAIL_FIELDS = ORG_LIST_FIELDS + ["description", "culture", "socialMedia"]

SORT_FIELDS = {
    "createdAt": "createdAt",
    "applicationDeadline": "applicationDeadline",
    "salary": "salary.amount",
    "views": "views",
}

FEATURED_LIMIT = 6

CAP_BELOW_TAKEN = "maxApplications cannot be lower than the number of applications already received"


def build_opportunity_query(
    search: Optional[str] = None,
    location: Optional[str] = None,
    industry: Optional[str] = None,
    category: Optional[str] = None,
    opportunity_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    salary_min: Optional[float] = None,
    salary_max: Optional[float] = None,
) -> dict:
    """Build the find() filter for a catalog search. Only active listings match."""
    query = {"isActive": True}

    if search and search.strip():
        query["$text"] = {"$search": search.strip()}
    if location and location.strip():
        query["location"] = contains_filter(location)
    if industry and industry.strip():
        query["industry"] = contains_filter(industry)
    if category and category.strip():
        query["category"] = contains_filter(category)
    if opportunity_type:
        query["type"] = opportunity_type
    if experience_level:
        query["experienceLevel"] = experience_level

    salary = {}
    if salary_min is not None:
        salary["$gte"] = salary_min
    if salary_max is not None:
        salary["$lte"] = salary_max
    if salary:
        query["salary.amount"] = salary

    return query


def search_opportunities(
    db: Database,
    query: dict,
    page: int,
    limit: int,
    sort: str = "createdAt",
    order: str = "desc",
) -> Tuple[List[dict], int, int]:
    """Paginated catalog search; text matches are ranked by relevance first."""
    sort_keys = build_sort(sort, order, SORT_FIELDS)
    projection = None
    if "$text" in query:
        projection = {"score": {"$meta": "textScore"}}
        sort_keys = [("score", {"$meta": "textScore"})] + sort_keys

    docs, total, pages = paginate(
        get_collection(db, "opportunities"), query, page, limit, sort_keys, projection
    )
    populate(db, docs, "organization", "organizations", ORG_LIST_FIELDS)
    return docs, total, pages


def featured_opportunities(db: Database) -> List[dict]:
    docs = list(
        get_collection(db, "opportunities")
        .find({"isActive": True, "isFeatured": True})
        .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        .limit(FEATURED_LIMIT)
    )
    return populate(db, docs, "organization", "organizations", ORG_LIST_FIELDS)


def opportunity_stats(db: Database) -> dict:
    """Counts over active opportunities, grouped by type, industry and location."""
    opportunities = get_collection(db, "opportunities")
    active = {"isActive": True}
    return {
        "totalOpportunities": opportunities.count_documents(active),
        "totalApplications": get_collection(db, "applications").count_documents({}),
        "byType": count_by(opportunities, active, "type"),
        "byIndustry": count_by(opportunities, active, "industry", limit=10),
        "byLocation": count_by(opportunities, active, "location", limit=10),
    }


def view_opportunity(db: Database, opportunity_id: str) -> dict:
    """Fetch one opportunity for its detail page, counting the view."""
    oid = parse_object_id(opportunity_id)
    doc = None
    if oid is not None:
        doc = get_collection(db, "opportunities").find_one_and_update(
            {"_id": oid},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail="Opportunity not found")
    return populate_one(db, doc, "organization", "organizations", ORG_DETAIL_FIELDS)


def create_opportunity(db: Database, organization_id: ObjectId, data: OpportunityCreate) -> dict:
    now = utcnow()
    doc = data.to_document()
    doc.update({
        "organization": organization_id,
        "currentApplications": 0,
        "views": 0,
        "createdAt": now,
        "updatedAt": now,
    })
    result = get_collection(db, "opportunities").insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("Opportunity %s created by organization %s", result.inserted_id, organization_id)
    return populate_one(db, doc, "organization", "organizations", ORG_LIST_FIELDS)


def update_opportunity(
    db: Database, organization_id: ObjectId, opportunity_id: str, data: OpportunityUpdate
) -> dict:
    """
    Partial update, owner only. A foreign listing looks exactly like a missing one.

    `maxApplications` can never drop below the applications already taken;
    the check runs inside the update filter so a concurrent apply cannot slip
    between the check and the write.
    """
    if not data.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    opportunities = get_collection(db, "opportunities")
    oid = parse_object_id(opportunity_id)
    owned = {"_id": oid, "organization": organization_id}
    current = opportunities.find_one(owned) if oid is not None else None
    if not current:
        raise HTTPException(status_code=404, detail="Opportunity not found")

    changes = data.to_document(partial=True, current=current)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    query = dict(owned)
    if "maxApplications" in changes:
        query["currentApplications"] = {"$lte": changes["maxApplications"]}
    changes["updatedAt"] = utcnow()
    doc = opportunities.find_one_and_update(query, {"$set": changes}, return_document=ReturnDocument.AFTER)

    if not doc:
        latest = opportunities.find_one(owned, {"currentApplications": 1})
        if not latest:
            raise HTTPException(status_code=404, detail="Opportunity not found")
        raise HTTPException(
            status_code=400,
            detail=f"{CAP_BELOW_TAKEN} ({latest.get('currentApplications', 0)} received)",
        )
    return populate_one(db, doc, "organization", "organizations", ORG_LIST_FIELDS)


def delete_opportunity(db: Database, organization_id: ObjectId, opportunity_id: str) -> None:
    """Hard delete, owner only. Applications keep their (now dangling) reference."""
    oid = parse_object_id(opportunity_id)
    deleted = 0
    if oid is not None:
        deleted = get_collection(db, "opportunities").delete_one(
            {"_id": oid, "organization": organization_id}
        ).deleted_count
    if not deleted:
        raise HTTPException(status_code=404, detail="Opportunity not found")
    logger.info("Opportunity %s deleted by organization %s", oid, organization_id)


def organization_opportunities(db: Database, organization_id: ObjectId) -> List[dict]:
    return list(
        get_collection(db, "opportunities")
        .find({"organization": organization_id})
        .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
    )
