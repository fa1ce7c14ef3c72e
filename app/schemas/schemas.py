"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

import json
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, EmailStr, Field, StrictFloat, StrictInt, field_validator


# ============================================================
# ENUMS
# ============================================================

class PrincipalKind(str, Enum):
    student = "student"
    startup = "startup"


class ProjectStatus(str, Enum):
    open = "open"
    in_progress = "in-progress"
    completed = "completed"


class ApplicantStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


# Stipend is a JSON number; "5000" or true are rejected rather than coerced
Stipend = Union[StrictInt, StrictFloat]

WEBSITE_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _trimmed_required(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} cannot be empty")
    return value


def _future_deadline(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value < datetime.now(timezone.utc):
        raise ValueError("Deadline must be in the future")
    return value


def _non_negative_stipend(value):
    if value is not None and value < 0:
        raise ValueError("Stipend cannot be negative")
    return value


def _website(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not WEBSITE_PATTERN.match(value):
        raise ValueError("Website must be a valid URL")
    return value


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class StudentRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., max_length=100)
    year: int = Field(..., ge=1, le=4)
    department: str
    skills: List[str] = []
    about: Optional[str] = None
    education: Optional[List[Any]] = None
    semester: Optional[int] = Field(None, ge=1, le=8)
    batch: Optional[str] = None
    mobileNumber: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Name")

    @field_validator("department")
    @classmethod
    def department_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Department")

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, v: Any) -> Any:
        # Form clients send skills as a JSON array string or a single skill
        if v is None:
            return []
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except ValueError:
                return [v]
            return parsed if isinstance(parsed, list) else [v]
        return v


class StartupRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., max_length=200)
    founderName: str
    description: str = Field(..., max_length=500)
    website: Optional[str] = None
    domain: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Name")

    @field_validator("founderName")
    @classmethod
    def founder_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Founder name")

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Description")

    @field_validator("website")
    @classmethod
    def website_shape(cls, v: Optional[str]) -> Optional[str]:
        return _website(v)


# ============================================================
# PROFILE SCHEMAS (whitelisted patch fields)
# ============================================================

class StudentProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[str]] = None
    about: Optional[str] = None
    education: Optional[List[Any]] = None
    department: Optional[str] = None
    year: Optional[StrictInt] = Field(None, ge=1, le=4)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _trimmed_required(v, "Name")


class StartupProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    founderName: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = None
    domain: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _trimmed_required(v, "Name")

    @field_validator("founderName")
    @classmethod
    def founder_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _trimmed_required(v, "Founder name")

    @field_validator("website")
    @classmethod
    def website_shape(cls, v: Optional[str]) -> Optional[str]:
        return _website(v)


# ============================================================
# PROJECT SCHEMAS
# ============================================================

class ProjectCreate(BaseModel):
    title: str
    description: str
    requiredSkills: List[str] = []
    stipend: Stipend
    duration: Optional[str] = None
    deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Title")

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        return _trimmed_required(v, "Description")

    @field_validator("requiredSkills", mode="before")
    @classmethod
    def skills_default(cls, v: Any) -> Any:
        # null is treated as absent
        return [] if v is None else v

    @field_validator("duration")
    @classmethod
    def trim_duration(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else (v.strip() or None)

    @field_validator("stipend")
    @classmethod
    def stipend_not_negative(cls, v):
        return _non_negative_stipend(v)

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(v)


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    requiredSkills: Optional[List[str]] = None
    stipend: Optional[Stipend] = None
    duration: Optional[str] = None
    deadline: Optional[datetime] = None
    status: Optional[ProjectStatus] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _trimmed_required(v, "Title")

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _trimmed_required(v, "Description")

    @field_validator("duration")
    @classmethod
    def trim_duration(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else (v.strip() or None)

    @field_validator("stipend")
    @classmethod
    def stipend_not_negative(cls, v):
        return _non_negative_stipend(v)

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(v)

    def to_patch(self) -> dict:
        """Fields actually supplied; null counts as not supplied."""
        patch = self.model_dump(exclude_none=True)
        if "status" in patch:
            patch["status"] = patch["status"].value
        return patch


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class ApiResponse(BaseModel):
    statusCode: int = 200
    data: Any = None
    message: str = "Success"
    success: bool = True
