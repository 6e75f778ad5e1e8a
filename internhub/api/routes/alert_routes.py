"""
Email Alert Routes

POST /alerts - Create an alert (one active alert per student)
GET /alerts - Get the student's active alert
PUT /alerts/{id} - Update own alert
DELETE /alerts/{id} - Delete own alert
POST /alerts/send-notifications - Send digests for one frequency (admin)
POST /alerts/application-status - Email an applicant a status note (organization)
"""

from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from internhub.core.auth import get_current_organization, get_current_student, require_admin
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import (
    AlertDispatchRequest, EmailAlertCreate, EmailAlertUpdate, MessageResponse, StatusNotificationRequest
)
from internhub.services import alert_service
from internhub.services.mongo_service import parse_object_id, serialize_doc
from internhub.services.notifier import Notifier, get_notifier
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/alerts", tags=["Email Alerts"])

ACTIVE_EXISTS = "You already have an active email alert. Please update or delete the existing one."
NOT_FOUND = "Email alert not found"


@router.post("", status_code=201)
def create_alert(
    data: EmailAlertCreate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    alerts = get_collection(db, "alerts")
    if alerts.find_one({"student": student["id"], "isActive": True}, {"_id": 1}):
        raise HTTPException(status_code=400, detail=ACTIVE_EXISTS)

    now = utcnow()
    doc = data.to_document()
    doc.update({"student": student["id"], "isActive": True, "createdAt": now, "updatedAt": now})
    try:
        doc["_id"] = alerts.insert_one(doc).inserted_id
    except DuplicateKeyError:
        # unique partial index on active alerts: a concurrent create won
        raise HTTPException(status_code=400, detail=ACTIVE_EXISTS)
    return {"success": True, "message": "Email alert created successfully", "alert": serialize_doc(doc)}


@router.get("")
def get_alert(student: dict = Depends(get_current_student), db: Database = Depends(get_db)):
    """The student's active alert, or null."""
    doc = get_collection(db, "alerts").find_one({"student": student["id"], "isActive": True})
    return {"success": True, "alert": serialize_doc(doc)}


@router.put("/{alert_id}")
def update_alert(
    alert_id: str,
    data: EmailAlertUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    if not data.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    alerts = get_collection(db, "alerts")
    oid = parse_object_id(alert_id)
    owned = {"_id": oid, "student": student["id"]}
    current = alerts.find_one(owned) if oid is not None else None
    if not current:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    changes = data.to_document(partial=True, current=current)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if changes.get("isActive"):
        other = alerts.find_one({"student": student["id"], "isActive": True, "_id": {"$ne": oid}}, {"_id": 1})
        if other:
            raise HTTPException(status_code=400, detail=ACTIVE_EXISTS)

    changes["updatedAt"] = utcnow()
    try:
        doc = alerts.find_one_and_update(owned, {"$set": changes}, return_document=ReturnDocument.AFTER)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=ACTIVE_EXISTS)
    if not doc:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"success": True, "message": "Email alert updated successfully", "alert": serialize_doc(doc)}


@router.delete("/{alert_id}")
def delete_alert(
    alert_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    oid = parse_object_id(alert_id)
    deleted = 0
    if oid is not None:
        deleted = get_collection(db, "alerts").delete_one({"_id": oid, "student": student["id"]}).deleted_count
    if not deleted:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"success": True, "message": "Email alert deleted successfully"}


@router.post("/send-notifications")
def send_notifications(
    data: AlertDispatchRequest,
    admin: dict = Depends(require_admin),
    db: Database = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Send digests to every active alert of the requested frequency."""
    result = alert_service.dispatch_alerts(db, notifier, data.frequency)
    return {"success": True, "message": "Email notifications sent successfully", **result}


@router.post("/application-status", response_model=MessageResponse)
def send_status_notification(
    data: StatusNotificationRequest,
    organization: dict = Depends(get_current_organization),
    db: Database = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Email the applicant a status note written by the organization.

    Only the organization that received the application may send it.
    The stored application is not changed.
    """
    oid = parse_object_id(data.application_id)
    application = get_collection(db, "applications").find_one({"_id": oid}) if oid else None
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    if application.get("organization") != organization["id"]:
        raise HTTPException(status_code=403, detail="Not authorized to send notification for this application")

    student = get_collection(db, "students").find_one({"_id": application["student"]})
    if not student:
        raise HTTPException(status_code=404, detail="Applicant not found")
    opportunity = get_collection(db, "opportunities").find_one({"_id": application["opportunity"]}) or {}

    sent = notifier.application_status_message(
        application, opportunity, organization["doc"], student, data.status, data.message
    )
    if not sent:
        raise HTTPException(status_code=500, detail="Failed to send notification")
    return MessageResponse(message="Status notification sent successfully")
