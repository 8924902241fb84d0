"""Pydantic schemas for API validation."""

from .connection import (
    Pagination,
    ConnectionRequestCreate,
    ConnectionRequestResponse,
    ConnectionRequestListResponse,
    ConnectionResponse,
    ConnectedProfile,
    ConnectionListResponse,
    ConnectionStatusResponse,
)
from .match_request import (
    MatchRequestCreate,
    MatchRequestAnswer,
    MatchRequestCancel,
    MatchRequestResponse,
    MatchRequestListResponse,
    MatchRequestCounts,
    MatchRequestStatsResponse,
    ExpireResponse,
)

__all__ = [
    "Pagination",
    "ConnectionRequestCreate",
    "ConnectionRequestResponse",
    "ConnectionRequestListResponse",
    "ConnectionResponse",
    "ConnectedProfile",
    "ConnectionListResponse",
    "ConnectionStatusResponse",
    "MatchRequestCreate",
    "MatchRequestAnswer",
    "MatchRequestCancel",
    "MatchRequestResponse",
    "MatchRequestListResponse",
    "MatchRequestCounts",
    "MatchRequestStatsResponse",
    "ExpireResponse",
]
