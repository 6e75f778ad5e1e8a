"""
Authentication Routes

POST /auth/register - Register a student account
POST /auth/register-company - Register an organization account
POST /auth/login - Login and get JWT token
GET /auth/me - Get current principal info
PUT /auth/password - Change password
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from internhub.core.auth import (
    ORGANIZATION, STUDENT, display_name, get_current_principal, hash_password, token_for,
    verify_password
)
from internhub.core.config import Settings, get_app_settings
from internhub.db.mongodb import get_collection, get_db
from internhub.schemas.schemas import (
    LoginRequest, MessageResponse, OrganizationRegister, PasswordUpdate, StudentRegister
)
from internhub.services.mongo_service import serialize_doc
from internhub.utils.dates import utcnow

router = APIRouter(prefix="/auth", tags=["Authentication"])

EMAIL_TAKEN = "User already exists with this email"


def _user_summary(doc: dict, kind: str) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": display_name(doc, kind),
        "email": doc["email"],
        "role": doc.get("role"),
        "userType": kind,
    }


@router.post("/register", status_code=201)
def register(
    request: StudentRegister,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new student account. New accounts are always interns."""
    students = get_collection(db, "students")
    email = request.email.lower()
    if students.find_one({"email": email}, {"_id": 1}):
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN)

    now = utcnow()
    doc = {
        "firstName": request.first_name,
        "lastName": request.last_name,
        "email": email,
        "password": hash_password(request.password),
        "phone": "",
        "location": "",
        "bio": "",
        "profilePicture": "",
        "resume": "",
        "skills": [],
        "education": [],
        "experience": [],
        "preferences": {"industries": [], "types": [], "locations": []},
        "emailNotifications": True,
        "role": "intern",
        "isVerified": False,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        doc["_id"] = students.insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=EMAIL_TAKEN)

    return {
        "success": True,
        "token": token_for(doc["_id"], STUDENT, settings),
        "user": _user_summary(doc, STUDENT),
    }


@router.post("/register-company", status_code=201)
def register_company(
    request: OrganizationRegister,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new organization account."""
    organizations = get_collection(db, "organizations")
    email = request.email.lower()
    if organizations.find_one({"email": email}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Company already exists with this email")

    now = utcnow()
    doc = {
        "name": request.name,
        "email": email,
        "password": hash_password(request.password),
        "industry": request.industry,
        "website": request.website or "",
        "phone": request.phone or "",
        "logo": "",
        "isVerified": False,
        "role": "company",
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        doc["_id"] = organizations.insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Company already exists with this email")

    return {
        "success": True,
        "token": token_for(doc["_id"], ORGANIZATION, settings),
        "organization": _user_summary(doc, ORGANIZATION),
    }


@router.post("/login")
def login(
    request: LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    kind = ORGANIZATION if request.user_type == "company" else STUDENT
    collection = get_collection(db, "organizations" if kind == ORGANIZATION else "students")

    doc = collection.find_one({"email": request.email.lower()})
    if not doc or not verify_password(request.password, doc["password"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return {
        "success": True,
        "token": token_for(doc["_id"], kind, settings),
        "user": _user_summary(doc, kind),
    }


@router.get("/me")
def get_me(principal: dict = Depends(get_current_principal)):
    """Get current principal's full record (password excluded)."""
    return {"success": True, "user": serialize_doc(principal["doc"]), "userType": principal["kind"]}


@router.put("/password", response_model=MessageResponse)
def change_password(
    request: PasswordUpdate,
    principal: dict = Depends(get_current_principal),
    db: Database = Depends(get_db),
):
    if not verify_password(request.current_password, principal["doc"]["password"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

    collection = get_collection(db, "students" if principal["kind"] == STUDENT else "organizations")
    collection.update_one(
        {"_id": principal["id"]},
        {"$set": {"password": hash_password(request.new_password), "updatedAt": utcnow()}},
    )
    return MessageResponse(message="Password updated successfully")
