"""
Pydantic Schemas - Request Validation and Response Shapes

All API schemas in one file for simplicity.

Wire names are camelCase (`coverLetter`, `applicationDeadline`, ...);
Python attributes are snake_case and the alias generator maps between them.
Bodies are strict: unknown fields are rejected, list fields accept either a
JSON list or one comma-separated string.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from internhub.utils.dates import to_naive_utc


# ============================================================
# HELPERS
# ============================================================

def normalize_list(value: Union[str, List[str], None]) -> List[str]:
    """
    Turn a comma-separated string or a list into a clean list of strings.

        normalize_list("a, b,,c ")   -> ["a", "b", "c"]
        normalize_list([" a", ""])   -> ["a"]
        normalize_list(None)         -> []
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        if not all(isinstance(item, str) for item in value):
            raise ValueError("must be a list of strings or a comma-separated string")
        parts = value
    else:
        raise ValueError("must be a list of strings or a comma-separated string")
    return [part.strip() for part in parts if part.strip()]


def _object_id_string(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("must be a valid id")
    return value


Rating = Annotated[int, Field(ge=1, le=5)]


class ApiModel(BaseModel):
    """Base for request bodies: camelCase aliases, trimmed strings, no extra keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=True,
    )

    def to_document(self, partial: bool = False, current: Optional[dict] = None) -> dict:
        """
        Dump with wire names, ready to store.

        `partial` keeps only the fields the client sent. A nested object the
        client sent is laid over its stored value in `current` (and that over
        the nested defaults), so sending `{"salary": {"amount": 1200}}` keeps
        the stored currency and period.
        """
        if not partial:
            return self.model_dump(by_alias=True, exclude_none=True)

        doc = self.model_dump(by_alias=True, exclude_none=True, include=self.model_fields_set)
        for name in self.model_fields_set:
            value = getattr(self, name)
            if not isinstance(value, ApiModel):
                continue
            key = next(iter(self.model_dump(by_alias=True, include={name})))
            stored = (current or {}).get(key)
            doc[key] = {
                **value.to_document(),
                **(stored if isinstance(stored, dict) else {}),
                **value.to_document(partial=True),
            }
        return doc


# ============================================================
# ENUMS
# ============================================================

class UserType(str, Enum):
    student = "student"
    company = "company"


class StudentRole(str, Enum):
    intern = "intern"
    admin = "admin"


class OpportunityType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    remote = "remote"
    hybrid = "hybrid"


class ExperienceLevel(str, Enum):
    entry_level = "entry-level"
    intermediate = "intermediate"
    advanced = "advanced"


class SalaryPeriod(str, Enum):
    hourly = "hourly"
    monthly = "monthly"
    stipend = "stipend"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    interviewed = "interviewed"
    accepted = "accepted"
    rejected = "rejected"


class CompanySize(str, Enum):
    xs = "1-10"
    small = "11-50"
    medium = "51-200"
    large = "201-500"
    xl = "501-1000"
    enterprise = "1000+"


class ResourceCategory(str, Enum):
    resume = "resume"
    interview = "interview"
    career = "career"
    networking = "networking"
    skills = "skills"
    general = "general"


class ForumCategory(str, Enum):
    general = "general"
    job_search = "job-search"
    interview_prep = "interview-prep"
    networking = "networking"
    experience_sharing = "experience-sharing"
    questions = "questions"


class AlertFrequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class OpportunitySort(str, Enum):
    created_at = "createdAt"
    application_deadline = "applicationDeadline"
    salary = "salary"
    views = "views"


class ReviewSort(str, Enum):
    created_at = "createdAt"
    rating = "rating"
    helpful = "helpful"


class ResourceSort(str, Enum):
    created_at = "createdAt"
    views = "views"
    likes = "likes"
    reading_time = "readingTime"


class ForumSort(str, Enum):
    created_at = "createdAt"
    views = "views"
    likes = "likes"
    replies = "replies"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class StudentRegister(ApiModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be blank")
        return v.strip()


class OrganizationRegister(ApiModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    industry: str = Field(..., min_length=1)
    website: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", "industry")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be blank")
        return v.strip()


class LoginRequest(ApiModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    email: EmailStr
    password: str = Field(..., min_length=1)
    user_type: UserType = UserType.student


class PasswordUpdate(ApiModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class StudentProfileUpdate(ApiModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    skills: Optional[List[str]] = None

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v):
        return normalize_list(v)


class ResumeUpdate(ApiModel):
    resume: str = Field(..., min_length=1, description="Reference returned by the file store")


class ProfilePictureUpdate(ApiModel):
    profile_picture: str = Field(..., min_length=1, description="Reference returned by the file store")


class EducationEntry(ApiModel):
    institution: str = Field(..., min_length=1)
    degree: str = Field(..., min_length=1)
    field_of_study: str = Field(..., min_length=1)
    start_date: datetime
    end_date: Optional[datetime] = None
    current: bool = False

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


class EducationUpdate(ApiModel):
    institution: Optional[str] = Field(None, min_length=1)
    degree: Optional[str] = Field(None, min_length=1)
    field_of_study: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current: Optional[bool] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


class ExperienceEntry(ApiModel):
    company: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    start_date: datetime
    end_date: Optional[datetime] = None
    current: bool = False
    description: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


class ExperienceUpdate(ApiModel):
    company: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


class SalaryRange(ApiModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)


class PreferencesUpdate(ApiModel):
    industries: Optional[List[str]] = None
    types: Optional[List[OpportunityType]] = None
    locations: Optional[List[str]] = None
    salary_range: Optional[SalaryRange] = None

    @field_validator("industries", "types", "locations", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


# ============================================================
# ORGANIZATION SCHEMAS
# ============================================================

class OrganizationLocation(ApiModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class Culture(ApiModel):
    values: List[str] = []
    benefits: List[str] = []
    work_environment: Optional[str] = None

    @field_validator("values", "benefits", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


class SocialMedia(ApiModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None


class OrganizationProfileUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    website: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    industry: Optional[str] = Field(None, min_length=1)
    size: Optional[CompanySize] = None
    location: Optional[OrganizationLocation] = None
    culture: Optional[Culture] = None
    social_media: Optional[SocialMedia] = None


class LogoUpdate(ApiModel):
    logo: str = Field(..., min_length=1)


# ============================================================
# OPPORTUNITY SCHEMAS
# ============================================================

OPPORTUNITY_LIST_FIELDS = ("requirements", "responsibilities", "skills", "benefits", "tags")


class SalaryInfo(ApiModel):
    amount: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    period: SalaryPeriod = SalaryPeriod.monthly


class OpportunityCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    requirements: List[str] = []
    responsibilities: List[str] = []
    skills: List[str] = []
    location: str = Field(..., min_length=1)
    opportunity_type: OpportunityType = Field(..., alias="type")
    duration: str = Field(..., min_length=1)
    start_date: datetime
    end_date: datetime
    application_deadline: datetime
    salary: Optional[SalaryInfo] = None
    benefits: List[str] = []
    category: str = Field(..., min_length=1)
    industry: str = Field(..., min_length=1)
    experience_level: ExperienceLevel = ExperienceLevel.entry_level
    max_applications: int = Field(100, ge=1)
    is_active: bool = True
    is_featured: bool = False
    tags: List[str] = []

    @field_validator(*OPPORTUNITY_LIST_FIELDS, mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)

    @field_validator("start_date", "end_date", "application_deadline")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


class OpportunityUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[List[str]] = None
    responsibilities: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    location: Optional[str] = Field(None, min_length=1)
    opportunity_type: Optional[OpportunityType] = Field(None, alias="type")
    duration: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    application_deadline: Optional[datetime] = None
    salary: Optional[SalaryInfo] = None
    benefits: Optional[List[str]] = None
    category: Optional[str] = Field(None, min_length=1)
    industry: Optional[str] = Field(None, min_length=1)
    experience_level: Optional[ExperienceLevel] = None
    max_applications: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator(*OPPORTUNITY_LIST_FIELDS, mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)

    @field_validator("start_date", "end_date", "application_deadline")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplyRequest(ApiModel):
    cover_letter: str = Field(..., min_length=1)


class ApplicationStatusUpdate(ApiModel):
    status: ApplicationStatus
    notes: Optional[str] = None
    feedback: Optional[str] = None
    interview_scheduled: Optional[datetime] = None

    @field_validator("interview_scheduled")
    @classmethod
    def as_utc(cls, v):
        return to_naive_utc(v)


# ============================================================
# REVIEW SCHEMAS
# ============================================================

class ReviewCreate(ApiModel):
    organization: str
    opportunity: str
    rating: Rating
    title: str = Field(..., min_length=1)
    review: str = Field(..., min_length=1, max_length=1000)
    pros: List[str] = []
    cons: List[str] = []
    work_environment: Optional[Rating] = None
    mentorship: Optional[Rating] = None
    learning_opportunities: Optional[Rating] = None
    compensation: Optional[Rating] = None
    would_recommend: bool = True

    @field_validator("organization", "opportunity")
    @classmethod
    def valid_id(cls, v: str) -> str:
        return _object_id_string(v)

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


class ReviewUpdate(ApiModel):
    rating: Optional[Rating] = None
    title: Optional[str] = Field(None, min_length=1)
    review: Optional[str] = Field(None, min_length=1, max_length=1000)
    pros: Optional[List[str]] = None
    cons: Optional[List[str]] = None
    work_environment: Optional[Rating] = None
    mentorship: Optional[Rating] = None
    learning_opportunities: Optional[Rating] = None
    compensation: Optional[Rating] = None
    would_recommend: Optional[bool] = None

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


class HelpfulVote(ApiModel):
    helpful: bool


# ============================================================
# RESOURCE SCHEMAS
# ============================================================

class ResourceCreate(ApiModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: ResourceCategory
    tags: List[str] = []
    reading_time: Optional[int] = Field(None, ge=1)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return normalize_list(v)


class ResourceUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: Optional[ResourceCategory] = None
    tags: Optional[List[str]] = None
    reading_time: Optional[int] = Field(None, ge=1)
    featured_image: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return normalize_list(v)


# ============================================================
# FORUM SCHEMAS
# ============================================================

class ForumPostCreate(ApiModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: ForumCategory
    tags: List[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return normalize_list(v)


class ForumPostUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[ForumCategory] = None
    tags: Optional[List[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return normalize_list(v)


class ForumReplyCreate(ApiModel):
    content: str = Field(..., min_length=1)


# ============================================================
# EMAIL ALERT SCHEMAS
# ============================================================

class EmailAlertCreate(ApiModel):
    keywords: List[str] = []
    locations: List[str] = []
    industries: List[str] = []
    types: List[OpportunityType] = []
    salary_range: Optional[SalaryRange] = None
    frequency: AlertFrequency = AlertFrequency.weekly

    @field_validator("keywords", "locations", "industries", "types", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


class EmailAlertUpdate(ApiModel):
    keywords: Optional[List[str]] = None
    locations: Optional[List[str]] = None
    industries: Optional[List[str]] = None
    types: Optional[List[OpportunityType]] = None
    salary_range: Optional[SalaryRange] = None
    frequency: Optional[AlertFrequency] = None
    is_active: Optional[bool] = None

    @field_validator("keywords", "locations", "industries", "types", mode="before")
    @classmethod
    def split_lists(cls, v):
        return normalize_list(v)


class AlertDispatchRequest(ApiModel):
    frequency: AlertFrequency = AlertFrequency.weekly


class StatusNotificationRequest(ApiModel):
    """Hand-written status email an organization sends to one applicant."""
    application_id: str = Field(..., min_length=1)
    status: ApplicationStatus
    message: Optional[str] = Field(None, max_length=2000)


# ============================================================
# CONTACT SCHEMAS
# ============================================================

class ContactMessage(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


# ============================================================
# RESPONSE SCHEMAS
# ============================================================
# Stored documents are passed through as serialized dicts.

class OpportunityResponse(BaseModel):
    success: bool = True
    opportunity: Dict[str, Any]


class OpportunityListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    opportunities: List[Dict[str, Any]]


class ApplicationResponse(BaseModel):
    success: bool = True
    application: Dict[str, Any]


class ApplicationSubmitResponse(ApplicationResponse):
    message: str


class ApplicationListResponse(BaseModel):
    success: bool = True
    count: int
    applications: List[Dict[str, Any]]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
