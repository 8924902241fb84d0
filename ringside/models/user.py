"""User, Club and AthleteProfile models.

Only the columns the authorization engine and the matching rules read are
modelled here; the full profile and club records live with their CRUD
screens.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    """Account with exactly one role.

    Roles: ATHLETE, COACH, GYM_OWNER, ADMIN (see ``permissions.tokens.Role``).
    """

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=True)
    role = Column(String(20), nullable=False, default="ATHLETE")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Club(Base):
    """Gym/club with zero or one owning GYM_OWNER account."""

    __tablename__ = "clubs"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    region = Column(String(100), nullable=True)
    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("AthleteProfile", back_populates="club")


class AthleteProfile(Base):
    """Athlete profile owned by one account, optionally affiliated with one club."""

    __tablename__ = "athlete_profiles"

    id = Column(String(50), primary_key=True)
    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True)
    club_id = Column(String(50), ForeignKey("clubs.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)

    # Matching inputs
    weight_kg = Column(Float, nullable=True)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    draws = Column(Integer, nullable=False, default=0)
    is_searchable = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    club = relationship("Club", back_populates="members")

    @property
    def total_fights(self) -> int:
        return (self.wins or 0) + (self.losses or 0) + (self.draws or 0)
