"""
Opportunity Routes

GET /opportunities - Search active opportunities with filters
GET /opportunities/featured - Featured opportunities
GET /opportunities/stats - Catalog statistics
GET /opportunities/my-applications - Student's own applications
GET /opportunities/applications/{id} - Application detail (applicant or organization)
POST /opportunities - Create opportunity (organization only)
GET /opportunities/{id} - Opportunity detail (counts a view)
PUT /opportunities/{id} - Update opportunity (owner only)
DELETE /opportunities/{id} - Delete opportunity (owner only)
POST /opportunities/{id}/apply - Apply to opportunity (student only)
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pymongo.database import Database

from internhub.core.auth import get_current_organization, get_current_principal, get_current_student
from internhub.db.mongodb import get_db
from internhub.schemas.schemas import (
    ApplicationListResponse, ApplicationResponse, ApplicationSubmitResponse, ApplyRequest, ExperienceLevel,
    MessageResponse, OpportunityCreate, OpportunityListResponse, OpportunityResponse, OpportunitySort,
    OpportunityType, OpportunityUpdate, SortOrder
)
from internhub.services import application_service, opportunity_service
from internhub.services.mongo_service import serialize_doc, serialize_docs
from internhub.services.notifier import Notifier, get_notifier

router = APIRouter(prefix="/opportunities", tags=["Opportunities"])


@router.get("", response_model=OpportunityListResponse)
def search_opportunities(
    search: Optional[str] = Query(None, description="Full-text search over title, description and skills"),
    location: Optional[str] = Query(None),
    industry: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    opportunity_type: Optional[OpportunityType] = Query(None, alias="type"),
    experience_level: Optional[ExperienceLevel] = Query(None, alias="experienceLevel"),
    salary_min: Optional[float] = Query(None, alias="salaryMin", ge=0),
    salary_max: Optional[float] = Query(None, alias="salaryMax", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: OpportunitySort = Query(OpportunitySort.created_at),
    order: SortOrder = Query(SortOrder.desc),
    db: Database = Depends(get_db),
):
    """List active opportunities with filters and pagination."""
    query = opportunity_service.build_opportunity_query(
        search=search,
        location=location,
        industry=industry,
        category=category,
        opportunity_type=opportunity_type.value if opportunity_type else None,
        experience_level=experience_level.value if experience_level else None,
        salary_min=salary_min,
        salary_max=salary_max,
    )
    docs, total, pages = opportunity_service.search_opportunities(
        db, query, page, limit, sort.value, order.value
    )
    return {
        "success": True,
        "count": len(docs),
        "total": total,
        "page": page,
        "pages": pages,
        "opportunities": serialize_docs(docs),
    }


@router.get("/featured")
def featured_opportunities(db: Database = Depends(get_db)):
    docs = opportunity_service.featured_opportunities(db)
    return {"success": True, "opportunities": serialize_docs(docs)}


@router.get("/stats")
def opportunity_stats(db: Database = Depends(get_db)):
    return {"success": True, "stats": opportunity_service.opportunity_stats(db)}


@router.get("/my-applications", response_model=ApplicationListResponse)
def my_applications(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    """Applications submitted by the logged-in student, newest first."""
    docs = application_service.student_applications(db, student["id"])
    return {"success": True, "count": len(docs), "applications": serialize_docs(docs)}


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: str,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    doc = application_service.application_detail(db, application_id, principal)
    return {"success": True, "application": serialize_doc(doc)}


@router.post("", status_code=201, response_model=OpportunityResponse)
def create_opportunity(
    data: OpportunityCreate,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    """Create a new opportunity. Only organizations can publish."""
    doc = opportunity_service.create_opportunity(db, organization["id"], data)
    return {"success": True, "opportunity": serialize_doc(doc)}


@router.get("/{opportunity_id}", response_model=OpportunityResponse)
def get_opportunity(opportunity_id: str, db: Database = Depends(get_db)):
    """Opportunity detail. Every call counts one view."""
    doc = opportunity_service.view_opportunity(db, opportunity_id)
    return {"success": True, "opportunity": serialize_doc(doc)}


@router.put("/{opportunity_id}", response_model=OpportunityResponse)
def update_opportunity(
    opportunity_id: str,
    data: OpportunityUpdate,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    doc = opportunity_service.update_opportunity(db, organization["id"], opportunity_id, data)
    return {"success": True, "opportunity": serialize_doc(doc)}


@router.delete("/{opportunity_id}", response_model=MessageResponse)
def delete_opportunity(
    opportunity_id: str,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
):
    opportunity_service.delete_opportunity(db, organization["id"], opportunity_id)
    return {"success": True, "message": "Opportunity deleted successfully"}


@router.post("/{opportunity_id}/apply", status_code=201, response_model=ApplicationSubmitResponse)
def apply_to_opportunity(
    opportunity_id: str,
    data: ApplyRequest,
    background_tasks: BackgroundTasks,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Apply to an opportunity.

    Requires an active listing before its deadline, a free slot,
    no earlier application and a resume on the student's profile.
    """
    application, opportunity = application_service.apply_to_opportunity(
        db, opportunity_id, student["doc"], data.cover_letter
    )
    background_tasks.add_task(notifier.application_submitted, application, opportunity, student["doc"])
    return {
        "success": True,
        "message": "Application submitted successfully",
        "application": serialize_doc(application),
    }
