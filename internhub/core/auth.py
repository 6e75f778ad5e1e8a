"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes

Two kinds of principal exist, stored in separate collections:
students (role intern or admin) and organizations (role company).
The token's `kind` claim says which collection `sub` points into.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from internhub.core.config import Settings, get_app_settings
from internhub.db.mongodb import get_collection, get_db
from internhub.services.mongo_service import parse_object_id

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor (missing header handled below as 401)
bearer_scheme = HTTPBearer(auto_error=False)

STUDENT = "student"
ORGANIZATION = "organization"

_PRINCIPAL_COLLECTIONS = {STUDENT: "students", ORGANIZATION: "organizations"}


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def token_for(principal_id, kind: str, settings: Settings) -> str:
    return create_access_token({"sub": str(principal_id), "kind": kind}, settings)


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def display_name(doc: dict, kind: str) -> str:
    if kind == STUDENT:
        return f"{doc.get('firstName', '')} {doc.get('lastName', '')}".strip()
    return doc.get("name", "")


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """
    FastAPI dependency - Get current authenticated student or organization.

    Usage:
        @router.get("/protected")
        def route(principal: dict = Depends(get_current_principal)):
            return principal["id"], principal["kind"]
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized, invalid or missing token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials, settings)
    if not payload:
        raise credentials_exception

    kind = payload.get("kind")
    principal_id = parse_object_id(payload.get("sub"))
    if kind not in _PRINCIPAL_COLLECTIONS or principal_id is None:
        raise credentials_exception

    # Verify principal still exists
    doc = get_collection(db, _PRINCIPAL_COLLECTIONS[kind]).find_one({"_id": principal_id})
    if not doc:
        raise credentials_exception

    return {
        "id": doc["_id"],
        "kind": kind,
        "role": doc.get("role", "company" if kind == ORGANIZATION else "intern"),
        "email": doc.get("email"),
        "name": display_name(doc, kind),
        "doc": doc,
    }


def get_current_student(principal: dict = Depends(get_current_principal)) -> dict:
    """Dependency - Require a student token."""
    if principal["kind"] != STUDENT:
        raise HTTPException(status_code=403, detail="Students only")
    return principal


def get_current_organization(principal: dict = Depends(get_current_principal)) -> dict:
    """Dependency - Require an organization token."""
    if principal["kind"] != ORGANIZATION:
        raise HTTPException(status_code=403, detail="Organizations only")
    return principal


def is_admin(principal: dict) -> bool:
    return principal["kind"] == STUDENT and principal["role"] == "admin"


def require_admin(principal: dict = Depends(get_current_principal)) -> dict:
    """Dependency - Require an admin account."""
    if not is_admin(principal):
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
