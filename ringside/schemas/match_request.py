"""Match request schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from .connection import Pagination


class MatchRequestCreate(BaseModel):
    """Schema for proposing a bout on behalf of ``requester_profile_id``."""
    requester_profile_id: str
    target_profile_id: str
    message: Optional[str] = Field(default=None, max_length=1000)
    proposed_date: Optional[datetime] = None
    proposed_venue: Optional[str] = Field(default=None, max_length=255)

    @field_validator('proposed_venue')
    @classmethod
    def strip_venue(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class MatchRequestAnswer(BaseModel):
    """Body for accept/decline; ``profile_id`` is the target acting."""
    profile_id: str
    response_message: Optional[str] = Field(default=None, max_length=1000)


class MatchRequestCancel(BaseModel):
    profile_id: str


class MatchRequestResponse(BaseModel):
    """Schema for match request response."""
    id: str
    requester_profile_id: str
    target_profile_id: str
    status: str
    message: Optional[str] = None
    response_message: Optional[str] = None
    proposed_date: Optional[datetime] = None
    proposed_venue: Optional[str] = None
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchRequestListResponse(BaseModel):
    items: List[MatchRequestResponse]
    pagination: Pagination


class MatchRequestCounts(BaseModel):
    pending: int = 0
    accepted: int = 0
    declined: int = 0
    cancelled: int = 0
    expired: int = 0
    total: int = 0


class MatchRequestStatsResponse(BaseModel):
    incoming: MatchRequestCounts
    outgoing: MatchRequestCounts


class ExpireResponse(BaseModel):
    expired: int
