"""
Review Routes

GET /reviews/organization/{id} - Reviews of an organization
GET /reviews/organization/{id}/summary - Rating summary for an organization
GET /reviews/opportunity/{id} - Reviews of one opportunity
GET /reviews/my-reviews - Student's own reviews
POST /reviews - Write a review (student only)
PUT /reviews/{id} - Edit own review
DELETE /reviews/{id} - Delete own review
POST /reviews/{id}/helpful - Vote a review helpful or not
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from internhub.core.auth import get_current_student
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import HelpfulVote, ReviewCreate, ReviewSort, ReviewUpdate, SortOrder
from internhub.services.mongo_service import (
    build_sort, paginate, parse_object_id, populate, serialize_doc, serialize_docs
)
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/reviews", tags=["Reviews"])

SORT_FIELDS = {"createdAt": "createdAt", "rating": "rating", "helpful": "helpful"}
REVIEWER_FIELDS = ["firstName", "lastName", "profilePicture"]
SUB_RATINGS = ("workEnvironment", "mentorship", "learningOpportunities", "compensation")


def _average(values: List[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def _list_reviews(db: Database, field: str, target_id: str, page: int, limit: int, sort: str, order: str) -> dict:
    oid = parse_object_id(target_id)
    if oid is None:
        raise HTTPException(status_code=404, detail="Not found")

    reviews = get_collection(db, "reviews")
    query = {field: oid}
    docs, total, pages = paginate(reviews, query, page, limit, build_sort(sort, order, SORT_FIELDS))
    populate(db, docs, "student", "students", REVIEWER_FIELDS)
    populate(db, docs, "opportunity", "opportunities", ["title"])

    ratings = [r["rating"] for r in reviews.find(query, {"rating": 1})]
    return {
        "success": True,
        "count": len(docs),
        "total": total,
        "page": page,
        "pages": pages,
        "averageRating": sum(ratings) / len(ratings) if ratings else 0,
        "totalReviews": len(ratings),
        "reviews": serialize_docs(docs),
    }


@router.get("/organization/{organization_id}")
def organization_reviews(
    organization_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: ReviewSort = Query(ReviewSort.created_at),
    order: SortOrder = Query(SortOrder.desc),
    db: Database = Depends(get_db),
):
    return _list_reviews(db, "organization", organization_id, page, limit, sort.value, order.value)


@router.get("/organization/{organization_id}/summary")
def organization_summary(organization_id: str, db: Database = Depends(get_db)):
    """Averages rounded to one decimal, recommendation rate in percent."""
    oid = parse_object_id(organization_id)
    reviews = list(get_collection(db, "reviews").find({"organization": oid})) if oid else []

    distribution = {str(star): 0 for star in range(1, 6)}
    for review in reviews:
        distribution[str(review["rating"])] += 1

    summary = {
        "averageRating": _average([r["rating"] for r in reviews]),
        "totalReviews": len(reviews),
        "recommendationRate": (
            round(100 * sum(1 for r in reviews if r.get("wouldRecommend")) / len(reviews)) if reviews else 0
        ),
        "ratingDistribution": distribution,
    }
    for key in SUB_RATINGS:
        name = "average" + key[0].upper() + key[1:]
        summary[name] = _average([r[key] for r in reviews if r.get(key) is not None])

    return {"success": True, "summary": summary}


@router.get("/opportunity/{opportunity_id}")
def opportunity_reviews(
    opportunity_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: ReviewSort = Query(ReviewSort.created_at),
    order: SortOrder = Query(SortOrder.desc),
    db: Database = Depends(get_db),
):
    return _list_reviews(db, "opportunity", opportunity_id, page, limit, sort.value, order.value)


@router.get("/my-reviews")
def my_reviews(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    docs = list(
        get_collection(db, "reviews")
        .find({"student": student["id"]})
        .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
    )
    populate(db, docs, "organization", "organizations", ["name", "logo"])
    populate(db, docs, "opportunity", "opportunities", ["title"])
    return {"success": True, "count": len(docs), "reviews": serialize_docs(docs)}


@router.post("", status_code=201)
def create_review(
    data: ReviewCreate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    """Review an opportunity. One review per student per opportunity."""
    organization_id = parse_object_id(data.organization)
    opportunity_id = parse_object_id(data.opportunity)
    opportunity = get_collection(db, "opportunities").find_one(
        {"_id": opportunity_id, "organization": organization_id}, {"_id": 1}
    )
    if not opportunity:
        raise HTTPException(status_code=404, detail="Opportunity not found for this organization")

    reviews = get_collection(db, "reviews")
    if reviews.find_one({"opportunity": opportunity_id, "student": student["id"]}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="You have already reviewed this opportunity")

    now = utcnow()
    doc = data.to_document()
    doc.update({
        "organization": organization_id,
        "opportunity": opportunity_id,
        "student": student["id"],
        "isVerified": False,
        "helpful": 0,
        "notHelpful": 0,
        "createdAt": now,
        "updatedAt": now,
    })
    try:
        doc["_id"] = reviews.insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="You have already reviewed this opportunity")

    populate(db, [doc], "student", "students", REVIEWER_FIELDS)
    return {"success": True, "message": "Review created successfully", "review": serialize_doc(doc)}


@router.put("/{review_id}")
def update_review(
    review_id: str,
    data: ReviewUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    oid = parse_object_id(review_id)
    doc = None
    if oid is not None:
        changes["updatedAt"] = utcnow()
        doc = get_collection(db, "reviews").find_one_and_update(
            {"_id": oid, "student": student["id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail="Review not found")
    return {"success": True, "message": "Review updated successfully", "review": serialize_doc(doc)}


@router.delete("/{review_id}")
def delete_review(
    review_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(review_id)
    deleted = 0
    if oid is not None:
        deleted = get_collection(db, "reviews").delete_one({"_id": oid, "student": student["id"]}).deleted_count
    if not deleted:
        raise HTTPException(status_code=404, detail="Review not found")
    return {"success": True, "message": "Review deleted successfully"}


@router.post("/{review_id}/helpful")
def vote_helpful(
    review_id: str,
    data: HelpfulVote,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(review_id)
    counter = "helpful" if data.helpful else "notHelpful"
    doc = None
    if oid is not None:
        doc = get_collection(db, "reviews").find_one_and_update(
            {"_id": oid},
            {"$inc": {counter: 1}},
            projection={"helpful": 1, "notHelpful": 1},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail="Review not found")
    return {
        "success": True,
        "message": "Marked as helpful" if data.helpful else "Marked as not helpful",
        "helpful": doc.get("helpful", 0),
        "notHelpful": doc.get("notHelpful", 0),
    }
