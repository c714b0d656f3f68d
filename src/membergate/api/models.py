"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from membergate.domain.signup import SignupRecord


class SignupRequest(BaseModel):
    """Request model for a membership signup request."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100, description="Given name (min 2 characters)")
    surname: str | None = Field(default=None, max_length=100)


class SignupResponse(BaseModel):
    """Response model for a submitted signup request."""

    message: str
    signup_id: str


class ReviewResponse(BaseModel):
    """Response model for approval and rejection. Carries no identifiers."""

    message: str


class SignupSummary(BaseModel):
    """Admin view of a signup record."""

    id: str
    email: str
    name: str
    surname: str | None
    token: str
    status: str
    created_at: datetime
    approved_at: datetime | None
    approved_by: str | None
    rejected_at: datetime | None
    rejected_by: str | None
    ip_address: str | None
    user_agent: str | None
    token_used_at: datetime | None

    @classmethod
    def from_record(cls, record: SignupRecord) -> "SignupSummary":
        return cls.model_validate(record.to_primitives())


class SignupListResponse(BaseModel):
    """Paginated list of signup records."""

    signups: list[SignupSummary]
    total: int
    limit: int
    offset: int


class CountResponse(BaseModel):
    count: int


class PurgeResponse(BaseModel):
    deleted: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
