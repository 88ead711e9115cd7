"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Fields are snake_case in Python and camelCase on the wire.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PASSWORD_MIN = 6
PASSWORD_MAX = 14


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    recruiter = "recruiter"


class ApplicationStatus(str, Enum):
    pending = "pending"
    rejected = "rejected"
    accepted = "accepted"
    interview = "interview"
    selected = "selected"


class LanguageProficiency(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"
    native = "Native"


class PreferredJobType(str, Enum):
    full_time = "Full-time"
    part_time = "Part-time"
    contract = "Contract"
    internship = "Internship"
    remote = "Remote"


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class ApiResponse(CamelModel, Generic[T]):
    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = True


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: list = []


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class Location(CamelModel):
    city: str = ""
    country: str = ""
    address: str = ""


class Education(CamelModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current: bool = False
    description: Optional[str] = None


class Experience(CamelModel):
    company: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current: bool = False
    description: Optional[str] = None


class Language(CamelModel):
    language: Optional[str] = None
    proficiency: Optional[LanguageProficiency] = None


class Certification(CamelModel):
    name: Optional[str] = None
    issuer: Optional[str] = None
    date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None


class SocialLinks(CamelModel):
    linkedin: str = ""
    github: str = ""
    portfolio: str = ""
    twitter: str = ""


class ExpectedSalary(CamelModel):
    amount: Optional[float] = None
    currency: str = "USD"


class Profile(CamelModel):
    bio: str = ""
    skills: List[str] = []
    resume: str = ""
    resume_original_name: Optional[str] = None
    company: Optional[str] = None
    avatar: str = ""
    cover_image: str = ""
    location: Location = Location()
    education: List[Education] = []
    experience: List[Experience] = []
    languages: List[Language] = []
    certifications: List[Certification] = []
    social_links: SocialLinks = SocialLinks()
    interests: List[str] = []
    preferred_job_types: List[PreferredJobType] = []
    expected_salary: ExpectedSalary = ExpectedSalary()


# ============================================================
# AUTH SCHEMAS
# ============================================================

def _check_phone(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Please provide a valid phone number")
    return value


class RegisterRequest(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)
    phone_number: str
    role: UserRole
    bio: str = ""

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please add a name")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)


class LoginRequest(CamelModel):
    identifier: str = Field(..., min_length=1, description="Email or phone number")
    password: str = Field(..., min_length=1)
    role: UserRole


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)


class UserResponse(CamelModel):
    id: str = Field(..., alias="_id")
    full_name: str
    email: str
    phone_number: str
    role: UserRole
    profile: Profile = Profile()
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class AuthPayload(TokenPairResponse):
    user: UserResponse


class ValidTokenResponse(CamelModel):
    valid: bool = True


class AccountUpdate(CamelModel):
    """Validated form of PATCH /user/update-account (structured fields arrive JSON-encoded)."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    location: Optional[Location] = None
    education: Optional[List[Education]] = None
    experience: Optional[List[Experience]] = None
    languages: Optional[List[Language]] = None
    certifications: Optional[List[Certification]] = None
    social_links: Optional[SocialLinks] = None
    interests: Optional[List[str]] = None
    preferred_job_types: Optional[List[PreferredJobType]] = None
    expected_salary: Optional[ExpectedSalary] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v) if v else v


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanyCreate(CamelModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    website: Optional[str] = None
    location: str = Field(..., min_length=1)

    @field_validator("company_name", "location")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CompanyResponse(CamelModel):
    id: str = Field(..., alias="_id")
    company_name: str
    description: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    logo: Optional[str] = None
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

def _split_csv(value: Union[str, List[str], None]) -> Optional[List[str]]:
    """'a, b' and ['a', 'b'] both become ['a', 'b']."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


class JobCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    requirements: List[str]
    salary: float = Field(..., gt=0)
    location: List[str]
    job_type: str = Field(..., min_length=1)
    experience: int = Field(0, ge=0)
    position: int = Field(..., ge=1)
    company_id: str

    @field_validator("requirements", "location", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_csv(v)

    @field_validator("location")
    @classmethod
    def require_location(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("Please add a job location")
        return v


class JobUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[List[str]] = None
    salary: Optional[float] = Field(None, gt=0)
    location: Optional[List[str]] = None
    job_type: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    position: Optional[int] = Field(None, ge=1)
    company_id: Optional[str] = None

    @field_validator("requirements", "location", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_csv(v)


class ApplicationSummary(CamelModel):
    id: str = Field(..., alias="_id")
    job: str
    applicant: Union[UserResponse, str]
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobResponse(CamelModel):
    id: str = Field(..., alias="_id")
    title: str
    description: str
    requirements: List[str] = []
    salary: float
    location: List[str] = []
    job_type: str
    experience: int = 0
    position: int
    company: Union[CompanyResponse, str, None] = None
    created_by: str
    applications: List[Union[ApplicationSummary, str]] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationResponse(CamelModel):
    id: str = Field(..., alias="_id")
    job: Union[JobResponse, str]
    applicant: str
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationStatusUpdate(CamelModel):
    status: ApplicationStatus

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


# ============================================================
# DASHBOARD SCHEMAS
# ============================================================

class UserStatsResponse(CamelModel):
    total_applied_jobs: int
    total_interviews: int
    total_pending: int
    total_rejected: int
    total_selected: int
    total_jobs: int
    profile_score: int


class TrendPoint(CamelModel):
    month: str
    count: int


class SkillLevel(CamelModel):
    name: str
    level: int = 80


class GlobalStatsResponse(CamelModel):
    total_jobs: int
    total_users: int
    total_applications: int
    total_companies: int
    average_profile_score: float
