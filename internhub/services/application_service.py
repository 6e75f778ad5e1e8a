"""
Application Service - the ledger of student applications.

Apply flow:
1. check_can_apply()  - existence, deadline, duplicate, capacity, resume
2. reserve_slot()     - atomic conditional $inc of currentApplications
3. insert             - unique (opportunity, student) index is the final guard

If the insert fails after a slot was reserved, the slot is released again,
so currentApplications never exceeds maxApplications and only counts
applications that exist.
"""

import logging
from typing import List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from internhub.db.mongodb import get_collection
from internhub.schemas.schemas import ApplicationStatusUpdate
from internhub.services.mongo_service import parse_object_id, populate, populate_one
from internhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Opportunity not found or not available"
DEADLINE_PASSED = "Application deadline has passed"
ALREADY_APPLIED = "You have already applied for this opportunity"
CAP_REACHED = "This opportunity has reached maximum applications"
RESUME_REQUIRED = "Resume is required. Please upload your resume before applying."

# retries when the cap changes between check and reserve
RESERVE_ATTEMPTS = 5


def check_can_apply(db: Database, opportunity_id: str, student: dict) -> dict:
    """
    Run the apply preconditions in order and return the opportunity.
    Each failed check raises its own HTTPException.
    """
    oid = parse_object_id(opportunity_id)
    opportunity = None
    if oid is not None:
        opportunity = get_collection(db, "opportunities").find_one({"_id": oid, "isActive": True})
    if not opportunity:
        raise HTTPException(status_code=404, detail=NOT_AVAILABLE)

    if utcnow() > opportunity["applicationDeadline"]:
        raise HTTPException(status_code=400, detail=DEADLINE_PASSED)

    existing = get_collection(db, "applications").find_one(
        {"opportunity": oid, "student": student["_id"]}, {"_id": 1}
    )
    if existing:
        raise HTTPException(status_code=400, detail=ALREADY_APPLIED)

    if opportunity.get("currentApplications", 0) >= opportunity.get("maxApplications", 100):
        raise HTTPException(status_code=400, detail=CAP_REACHED)

    if not (student.get("resume") or "").strip():
        raise HTTPException(status_code=400, detail=RESUME_REQUIRED)

    return opportunity


def reserve_slot(db: Database, opportunity: dict) -> bool:
    """
    Take one application slot if the listing is still active and below its cap.
    Returns False when another apply took the last slot first.

    The conditional $inc is keyed on the cap it was checked against. When the
    owner changes maxApplications in between, the listing is re-read and the
    reservation retried against the new cap.
    """
    opportunities = get_collection(db, "opportunities")
    current = opportunity
    for _ in range(RESERVE_ATTEMPTS):
        cap = current.get("maxApplications", 100)
        reserved = opportunities.find_one_and_update(
            {
                "_id": opportunity["_id"],
                "isActive": True,
                "maxApplications": cap,
                "currentApplications": {"$lt": cap},
            },
            {"$inc": {"currentApplications": 1}},
            projection={"_id": 1},
        )
        if reserved is not None:
            return True
        current = opportunities.find_one(
            {"_id": opportunity["_id"], "isActive": True},
            {"maxApplications": 1, "currentApplications": 1},
        )
        if not current or current.get("currentApplications", 0) >= current.get("maxApplications", 100):
            return False
    logger.warning("Gave up reserving a slot on %s after %d attempts", opportunity["_id"], RESERVE_ATTEMPTS)
    return False


def release_slot(db: Database, opportunity_id: ObjectId) -> None:
    get_collection(db, "opportunities").update_one(
        {"_id": opportunity_id, "currentApplications": {"$gt": 0}},
        {"$inc": {"currentApplications": -1}},
    )


def apply_to_opportunity(db: Database, opportunity_id: str, student: dict, cover_letter: str) -> tuple:
    """
    Submit an application.

    Returns:
        (application, opportunity) - both raw documents
    """
    opportunity = check_can_apply(db, opportunity_id, student)

    if not reserve_slot(db, opportunity):
        raise HTTPException(status_code=400, detail=CAP_REACHED)

    application = {
        "opportunity": opportunity["_id"],
        "student": student["_id"],
        "organization": opportunity["organization"],
        "coverLetter": cover_letter,
        "resume": student["resume"],
        "status": "pending",
        "appliedAt": utcnow(),
    }
    application["createdAt"] = application["updatedAt"] = application["appliedAt"]

    try:
        result = get_collection(db, "applications").insert_one(application)
    except DuplicateKeyError:
        release_slot(db, opportunity["_id"])
        raise HTTPException(status_code=400, detail=ALREADY_APPLIED)
    except Exception:
        release_slot(db, opportunity["_id"])
        raise

    application["_id"] = result.inserted_id
    logger.info("Student %s applied to opportunity %s", student["_id"], opportunity["_id"])
    return application, opportunity


def student_applications(db: Database, student_id: ObjectId) -> List[dict]:
    docs = list(
        get_collection(db, "applications")
        .find({"student": student_id})
        .sort([("appliedAt", DESCENDING), ("_id", DESCENDING)])
    )
    populate(db, docs, "opportunity", "opportunities",
             ["title", "organization", "location", "type", "applicationDeadline"])
    populate(db, docs, "organization", "organizations", ["name", "logo"])
    return docs


def application_detail(db: Database, application_id: str, principal: dict) -> dict:
    """Full application for the applicant or the receiving organization."""
    oid = parse_object_id(application_id)
    doc = get_collection(db, "applications").find_one({"_id": oid}) if oid else None
    if not doc:
        raise HTTPException(status_code=404, detail="Application not found")

    owner_field = "student" if principal["kind"] == "student" else "organization"
    if doc.get(owner_field) != principal["id"]:
        raise HTTPException(status_code=403, detail="Not authorized to view this application")

    populate_one(db, doc, "opportunity", "opportunities",
                 ["title", "description", "requirements", "responsibilities", "skills"])
    populate_one(db, doc, "student", "students", ["firstName", "lastName", "email", "phone", "resume"])
    populate_one(db, doc, "organization", "organizations", ["name", "logo"])
    return doc


def opportunity_applications(
    db: Database, organization_id: ObjectId, opportunity_id: str, status: Optional[str] = None
) -> List[dict]:
    oid = parse_object_id(opportunity_id)
    if oid is None:
        raise HTTPException(status_code=404, detail="Opportunity not found")

    query = {"opportunity": oid, "organization": organization_id}
    if status:
        query["status"] = status
    docs = list(
        get_collection(db, "applications")
        .find(query)
        .sort([("appliedAt", DESCENDING), ("_id", DESCENDING)])
    )
    return populate(db, docs, "student", "students",
                    ["firstName", "lastName", "email", "phone", "location", "skills", "resume"])


def update_application_status(
    db: Database, organization_id: ObjectId, application_id: str, data: ApplicationStatusUpdate
) -> dict:
    """Move an application to a new status. Owner organization only."""
    oid = parse_object_id(application_id)
    doc = None
    if oid is not None:
        now = utcnow()
        changes = data.to_document(partial=True)
        changes["updatedAt"] = now
        if data.status != "pending":
            changes["reviewedAt"] = now
        doc = get_collection(db, "applications").find_one_and_update(
            {"_id": oid, "organization": organization_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail="Application not found")

    logger.info("Application %s moved to %s by organization %s", oid, doc["status"], organization_id)
    return doc
