"""
Organization Routes

GET /organizations - List verified organizations (public)
GET /organizations/profile - Get own profile
PUT /organizations/profile - Update profile
PUT /organizations/logo - Record uploaded logo reference
GET /organizations/opportunities - Organization's own opportunities
GET /organizations/opportunities/{id}/applications - Applications received for one opportunity
PUT /organizations/applications/{id}/status - Update application status
GET /organizations/{id} - Public organization profile
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pymongo import ReturnDocument
from pymongo.database import Database

from internhub.core.auth import get_current_organization
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import (
    ApplicationListResponse, ApplicationResponse, ApplicationStatus, ApplicationStatusUpdate, CompanySize,
    LogoUpdate, OrganizationProfileUpdate
)
from internhub.services import application_service, opportunity_service
from internhub.services.mongo_service import (
    contains_filter, paginate, parse_object_id, serialize_doc, serialize_docs
)
from internhub.services.notifier import Notifier, get_notifier
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/organizations", tags=["Organizations"])

# Never leaves the server
PRIVATE_FIELDS = {"password": 0}


@router.get("")
def list_organizations(
    search: Optional[str] = Query(None, description="Search name, description and industry"),
    industry: Optional[str] = Query(None),
    size: Optional[CompanySize] = Query(None),
    location: Optional[str] = Query(None, description="City"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Database = Depends(get_db),
):
    """List verified organizations with filters and pagination."""
    query = {"isVerified": True}
    if search and search.strip():
        pattern = contains_filter(search)
        query["$or"] = [{"name": pattern}, {"description": pattern}, {"industry": pattern}]
    if industry and industry.strip():
        query["industry"] = contains_filter(industry)
    if size:
        query["size"] = size.value
    if location and location.strip():
        query["location.city"] = contains_filter(location)

    docs, total, pages = paginate(
        get_collection(db, "organizations"), query, page, limit,
        [("createdAt", -1), ("_id", -1)], PRIVATE_FIELDS
    )
    return {
        "success": True,
        "count": len(docs),
        "total": total,
        "page": page,
        "pages": pages,
        "organizations": serialize_docs(docs),
    }


@router.get("/profile")
def get_profile(organization: dict = Depends(get_current_organization)):
    """Get current organization's profile."""
    return {"success": True, "organization": serialize_doc(organization["doc"])}


@router.put("/profile")
def update_profile(
    data: OrganizationProfileUpdate,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True, current=organization["doc"])
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    changes["updatedAt"] = utcnow()

    doc = get_collection(db, "organizations").find_one_and_update(
        {"_id": organization["id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    return {"success": True, "organization": serialize_doc(doc)}


@router.put("/logo")
def update_logo(
    data: LogoUpdate,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    """Store the reference of a logo already uploaded to the file store."""
    get_collection(db, "organizations").update_one(
        {"_id": organization["id"]},
        {"$set": {"logo": data.logo, "updatedAt": utcnow()}},
    )
    return {"success": True, "message": "Logo uploaded successfully", "logo": data.logo}


@router.get("/opportunities")
def my_opportunities(organization: dict = Depends(get_current_organization), db: Database = Depends(get_db)):
    """All opportunities owned by the organization, active or not."""
    docs = opportunity_service.organization_opportunities(db, organization["id"])
    return {"success": True, "count": len(docs), "opportunities": serialize_docs(docs)}


@router.get("/opportunities/{opportunity_id}/applications", response_model=ApplicationListResponse)
def opportunity_applications(
    opportunity_id: str,
    status: Optional[ApplicationStatus] = Query(None),
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    docs = application_service.opportunity_applications(
        db, organization["id"], opportunity_id, status.value if status else None
    )
    return {"success": True, "count": len(docs), "applications": serialize_docs(docs)}


@router.put("/applications/{application_id}/status", response_model=ApplicationResponse)
def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Move an application through the review workflow.

    The applicant is notified after the response is sent; a failed
    email or push never changes the outcome of this request.
    """
    application = application_service.update_application_status(
        db, organization["id"], application_id, data
    )

    opportunity = get_collection(db, "opportunities").find_one({"_id": application["opportunity"]}) or {}
    student = get_collection(db, "students").find_one({"_id": application["student"]})
    if student:
        background_tasks.add_task(notifier.application_status_changed, application, opportunity, student)

    return {"success": True, "application": serialize_doc(application)}


@router.get("/{organization_id}")
def get_organization(organization_id: str, db: Database = Depends(get_db)):
    oid = parse_object_id(organization_id)
    doc = get_collection(db, "organizations").find_one({"_id": oid}, PRIVATE_FIELDS) if oid else None
    if not doc:
        raise HTTPException(status_code=404, detail="Organization not found")
    return {"success": True, "organization": serialize_doc(doc)}
