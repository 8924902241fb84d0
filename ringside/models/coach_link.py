"""Coach-to-athlete permission links, coach club assignments and athlete availability."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text, Time
from sqlalchemy.sql import func

from ..database import Base


class CoachLink(Base):
    """Scope a coach holds over one athlete profile.

    The composite primary key enforces at most one link per (coach, profile).
    ``scope`` is a ``CoachScope`` value; FULL_ACCESS is the wildcard.
    """

    __tablename__ = "coach_links"

    coach_user_id = Column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    profile_id = Column(
        String(50),
        ForeignKey("athlete_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    scope = Column(String(30), nullable=False, default="VIEW_PROFILE")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Availability(Base):
    """A slot an athlete is available to spar or fight."""

    __tablename__ = "availability"

    id = Column(String(50), primary_key=True)
    profile_id = Column(
        String(50),
        ForeignKey("athlete_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ClubCoach(Base):
    """A coach's assignment to a club. A coach belongs to at most one club."""

    __tablename__ = "club_coaches"

    club_id = Column(
        String(50),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    coach_user_id = Column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
        unique=True,
    )
    is_head = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
