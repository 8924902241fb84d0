"""Connection requests, connections and match requests.

A Connection is symmetric and stored once per pair: ``profile_a_id`` is
always the smaller id in code-point order (see ``normalize_pair``), and the
unique constraint on the pair rejects a second row regardless of who
initiated.
"""

import enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from ..database import Base


class ConnectionRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"


class MatchRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class ConnectionRequest(Base):
    """Directed proposal to connect two athlete profiles."""

    __tablename__ = "connection_requests"
    __table_args__ = (
        Index("ix_connection_requests_pair_status", "requester_profile_id", "target_profile_id", "status"),
        Index("ix_connection_requests_target", "target_profile_id"),
    )

    id = Column(String(50), primary_key=True)
    requester_profile_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_profile_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(String(20), nullable=False, default=ConnectionRequestStatus.PENDING.value)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Connection(Base):
    """Accepted, undirected link between two profiles."""

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("profile_a_id", "profile_b_id", name="uq_connections_pair"),
        Index("ix_connections_profile_b", "profile_b_id"),
    )

    id = Column(String(50), primary_key=True)
    profile_a_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    profile_b_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class MatchRequest(Base):
    """Directed bout proposal with an expiration deadline."""

    __tablename__ = "match_requests"
    __table_args__ = (
        Index("ix_match_requests_pair_status", "requester_profile_id", "target_profile_id", "status"),
        Index("ix_match_requests_target", "target_profile_id"),
        # Serves the expiration sweep.
        Index("ix_match_requests_status_expires", "status", "expires_at"),
    )

    id = Column(String(50), primary_key=True)
    requester_profile_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_profile_id = Column(
        String(50), ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(String(20), nullable=False, default=MatchRequestStatus.PENDING.value)
    message = Column(Text, nullable=True)
    response_message = Column(Text, nullable=True)
    proposed_date = Column(DateTime(timezone=True), nullable=True)
    proposed_venue = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
