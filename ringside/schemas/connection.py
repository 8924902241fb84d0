"""Connection request and connection schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ConnectionRequestCreate(BaseModel):
    """Schema for sending a connection request."""
    target_profile_id: str
    message: Optional[str] = Field(default=None, max_length=500)


class ConnectionRequestResponse(BaseModel):
    """Schema for connection request response."""
    id: str
    requester_profile_id: str
    target_profile_id: str
    status: str
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConnectionRequestListResponse(BaseModel):
    items: List[ConnectionRequestResponse]
    pagination: Pagination


class ConnectionResponse(BaseModel):
    """A stored connection. ``profile_a_id`` is always the smaller id."""
    id: str
    profile_a_id: str
    profile_b_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConnectedProfile(BaseModel):
    """One row of a profile's connection list: the other participant."""
    connection_id: str
    profile_id: str
    connected_at: Optional[datetime] = None


class ConnectionListResponse(BaseModel):
    items: List[ConnectedProfile]
    pagination: Pagination


class ConnectionStatusResponse(BaseModel):
    """Relationship between the caller's profile and another profile."""
    status: str  # connected | pending_sent | pending_received | none
    connection_id: Optional[str] = None
    request_id: Optional[str] = None
