"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update profile
PUT /students/resume - Record uploaded resume reference
PUT /students/profile-picture - Record uploaded profile picture reference
POST /students/education - Add education entry
PUT /students/education/{entry_id} - Update education entry
DELETE /students/education/{entry_id} - Remove education entry
POST /students/experience - Add experience entry
PUT /students/experience/{entry_id} - Update experience entry
DELETE /students/experience/{entry_id} - Remove experience entry
PUT /students/preferences - Update job preferences
"""

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.database import Database

from internhub.core.auth import get_current_student
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import (
    ApiModel, EducationEntry, EducationUpdate, ExperienceEntry, ExperienceUpdate,
    PreferencesUpdate, ProfilePictureUpdate, ResumeUpdate, StudentProfileUpdate
)
from internhub.services.mongo_service import parse_object_id, serialize_doc
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/students", tags=["Students"])


def _update_student(db: Database, student_id: ObjectId, update: dict) -> dict:
    update.setdefault("$set", {})["updatedAt"] = utcnow()
    return get_collection(db, "students").find_one_and_update(
        {"_id": student_id}, update, return_document=ReturnDocument.AFTER
    )


def _add_entry(db: Database, student_id: ObjectId, field: str, entry: ApiModel) -> dict:
    item = entry.to_document()
    item["_id"] = ObjectId()
    return _update_student(db, student_id, {"$push": {field: item}})


def _update_entry(db: Database, student_id: ObjectId, field: str, entry_id: str, entry: ApiModel) -> dict:
    changes = entry.to_document(partial=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    oid = parse_object_id(entry_id)
    doc = None
    if oid is not None:
        doc = get_collection(db, "students").find_one_and_update(
            {"_id": student_id, f"{field}._id": oid},
            {"$set": {f"{field}.$.{key}": value for key, value in changes.items()}},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail=f"{field.capitalize()} entry not found")
    return doc


def _remove_entry(db: Database, student_id: ObjectId, field: str, entry_id: str) -> dict:
    oid = parse_object_id(entry_id)
    doc = None
    if oid is not None:
        doc = get_collection(db, "students").find_one_and_update(
            {"_id": student_id, f"{field}._id": oid},
            {"$pull": {field: {"_id": oid}}},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise HTTPException(status_code=404, detail=f"{field.capitalize()} entry not found")
    return doc


@router.get("/profile")
def get_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile."""
    return {"success": True, "user": serialize_doc(student["doc"])}


@router.put("/profile")
def update_profile(
    data: StudentProfileUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    doc = _update_student(db, student["id"], {"$set": changes})
    return {"success": True, "user": serialize_doc(doc)}


@router.put("/resume")
def update_resume(
    data: ResumeUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    """Store the reference of a resume already uploaded to the file store."""
    _update_student(db, student["id"], {"$set": {"resume": data.resume}})
    return {"success": True, "message": "Resume uploaded successfully", "resume": data.resume}


@router.put("/profile-picture")
def update_profile_picture(
    data: ProfilePictureUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    _update_student(db, student["id"], {"$set": {"profilePicture": data.profile_picture}})
    return {
        "success": True,
        "message": "Profile picture uploaded successfully",
        "profilePicture": data.profile_picture,
    }


@router.post("/education", status_code=201)
def add_education(
    data: EducationEntry,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _add_entry(db, student["id"], "education", data)
    return {"success": True, "education": serialize_doc(doc)["education"]}


@router.put("/education/{entry_id}")
def update_education(
    entry_id: str,
    data: EducationUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _update_entry(db, student["id"], "education", entry_id, data)
    return {"success": True, "education": serialize_doc(doc)["education"]}


@router.delete("/education/{entry_id}")
def delete_education(
    entry_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _remove_entry(db, student["id"], "education", entry_id)
    return {"success": True, "education": serialize_doc(doc)["education"]}


@router.post("/experience", status_code=201)
def add_experience(
    data: ExperienceEntry,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _add_entry(db, student["id"], "experience", data)
    return {"success": True, "experience": serialize_doc(doc)["experience"]}


@router.put("/experience/{entry_id}")
def update_experience(
    entry_id: str,
    data: ExperienceUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _update_entry(db, student["id"], "experience", entry_id, data)
    return {"success": True, "experience": serialize_doc(doc)["experience"]}


@router.delete("/experience/{entry_id}")
def delete_experience(
    entry_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    doc = _remove_entry(db, student["id"], "experience", entry_id)
    return {"success": True, "experience": serialize_doc(doc)["experience"]}


@router.put("/preferences")
def update_preferences(
    data: PreferencesUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_db),
):
    changes = data.to_document(partial=True, current=student["doc"].get("preferences"))
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    doc = _update_student(db, student["id"], {"$set": {f"preferences.{key}": value for key, value in changes.items()}})
    return {"success": True, "preferences": serialize_doc(doc).get("preferences", {})}
