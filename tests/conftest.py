"""Shared test fixtures for the Ringside test suite.

Each test gets a fresh in-memory SQLite database (``StaticPool`` keeps the
single connection alive for the session) with foreign keys enabled, and a
fresh in-process permission cache.
"""

import os

# Configure the app before any ringside imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["LOG_FORMAT"] = "text"
os.environ["ENVIRONMENT"] = "development"

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ringside import models
from ringside.cache import InMemoryPermissionCache, NullPermissionCache, PermissionCache
from ringside.core.auth import get_permission_cache
from ringside.core.config import settings
from ringside.core.token_factory import create_token
from ringside.database import Base, get_db
from ringside.main import app
from ringside.permissions import CoachScope, Role
from ringside.services.cache_invalidation import PermissionCacheInvalidator

_ids = itertools.count(1)


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    """Per-test database session."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture()
def cache() -> InMemoryPermissionCache:
    return InMemoryPermissionCache()


@pytest.fixture()
def invalidator(cache) -> PermissionCacheInvalidator:
    return PermissionCacheInvalidator(cache)


class CountingCache(PermissionCache):
    """Wraps a cache and records hits, misses and writes."""

    def __init__(self, inner: PermissionCache):
        self.inner = inner
        self.hits = 0
        self.misses = 0
        self.writes = 0

    def get(self, key):
        value = self.inner.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def set(self, key, value, ttl_seconds):
        self.writes += 1
        return self.inner.set(key, value, ttl_seconds)

    def delete(self, key):
        return self.inner.delete(key)

    def delete_pattern(self, pattern):
        return self.inner.delete_pattern(pattern)


class QueryCounter:
    """Counts SELECT statements issued on an engine while active."""

    def __init__(self, engine):
        self.engine = engine
        self.count = 0

    def _on_execute(self, conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT"):
            self.count += 1

    def __enter__(self):
        event.listen(self.engine, "before_cursor_execute", self._on_execute)
        return self

    def __exit__(self, *exc):
        event.remove(self.engine, "before_cursor_execute", self._on_execute)


@pytest.fixture()
def counting_cache(cache) -> CountingCache:
    return CountingCache(cache)


@pytest.fixture()
def null_cache() -> NullPermissionCache:
    return NullPermissionCache()


@pytest.fixture()
def count_queries(engine):
    return lambda: QueryCounter(engine)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_user(db, role=Role.ATHLETE, is_active=True, user_id=None) -> models.User:
    n = next(_ids)
    user = models.User(
        user_id=user_id or f"user-{n:04d}",
        display_name=f"User {n}",
        email=f"user{n}@example.com",
        role=Role(role).value,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    return user


def make_club(db, owner=None, name=None) -> models.Club:
    n = next(_ids)
    club = models.Club(
        id=f"club-{n:04d}",
        name=name or f"Club {n}",
        owner_id=owner.user_id if owner is not None else None,
    )
    db.add(club)
    db.commit()
    return club


def make_profile(
    db,
    owner=None,
    club=None,
    weight_kg=75.0,
    wins=0,
    losses=0,
    draws=0,
    is_searchable=True,
    profile_id=None,
) -> models.AthleteProfile:
    n = next(_ids)
    if owner is None:
        owner = make_user(db, Role.ATHLETE)
    profile = models.AthleteProfile(
        id=profile_id or f"profile-{n:04d}",
        owner_id=owner.user_id,
        club_id=club.id if club is not None else None,
        name=f"Athlete {n}",
        weight_kg=weight_kg,
        wins=wins,
        losses=losses,
        draws=draws,
        is_searchable=is_searchable,
    )
    db.add(profile)
    db.commit()
    return profile


def make_link(db, coach, profile, scope=CoachScope.VIEW_PROFILE) -> models.CoachLink:
    link = models.CoachLink(coach_user_id=coach.user_id, profile_id=profile.id, scope=CoachScope(scope).value)
    db.add(link)
    db.commit()
    return link


def make_availability(db, profile) -> models.Availability:
    n = next(_ids)
    slot = models.Availability(
        id=f"avail-{n:04d}",
        profile_id=profile.id,
        date=(datetime.now(timezone.utc) + timedelta(days=3)).date(),
    )
    db.add(slot)
    db.commit()
    return slot


def make_match_request(db, requester, target, status="PENDING", expires_at=None) -> models.MatchRequest:
    n = next(_ids)
    request = models.MatchRequest(
        id=f"match-{n:04d}",
        requester_profile_id=requester.id,
        target_profile_id=target.id,
        status=status,
        expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=7),
    )
    db.add(request)
    db.commit()
    return request


def auth_headers_for(user) -> dict:
    token = create_token(subject=user.user_id, role=user.role, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(db, cache):
    """TestClient bound to the test session and the test cache."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_permission_cache] = lambda: cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
