"""Tests for the cached ownership resolvers."""

from ringside.permissions import CoachScope, Role
from ringside.services.ownership import (
    OwnershipResolver,
    club_member_key,
    club_owner_key,
    coach_link_key,
    profile_owner_key,
)
from tests.conftest import make_club, make_link, make_profile, make_user


class TestKeys:

    def test_key_layout(self):
        assert profile_owner_key("u1", "p1") == "perm:resource:profile:u1:p1"
        assert club_owner_key("u1", "c1") == "perm:club-owner:u1:c1"
        assert club_member_key("u1", "p1") == "perm:club-member:u1:p1"
        assert coach_link_key("c1", "p1", CoachScope.EDIT_PROFILE) == "perm:coach-link:c1:p1:EDIT_PROFILE"


class TestProfileOwner:

    def test_owner_true(self, db, cache):
        owner = make_user(db)
        profile = make_profile(db, owner=owner)
        assert OwnershipResolver(db, cache).is_profile_owner(owner.user_id, profile.id)

    def test_non_owner_false(self, db, cache):
        profile = make_profile(db)
        stranger = make_user(db)
        assert not OwnershipResolver(db, cache).is_profile_owner(stranger.user_id, profile.id)

    def test_missing_profile_is_false_not_error(self, db, cache):
        user = make_user(db)
        assert not OwnershipResolver(db, cache).is_profile_owner(user.user_id, "no-such-profile")

    def test_result_cached_with_ttl(self, db, cache):
        owner = make_user(db)
        profile = make_profile(db, owner=owner)
        OwnershipResolver(db, cache).is_profile_owner(owner.user_id, profile.id)
        assert cache.get(profile_owner_key(owner.user_id, profile.id)) is True

    def test_second_call_served_from_cache(self, db, counting_cache, count_queries):
        owner = make_user(db)
        profile = make_profile(db, owner=owner)
        uid, pid = owner.user_id, profile.id
        resolver = OwnershipResolver(db, counting_cache)

        with count_queries() as first:
            assert resolver.is_profile_owner(uid, pid)
        with count_queries() as second:
            assert resolver.is_profile_owner(uid, pid)

        assert first.count == 1
        assert second.count == 0
        assert counting_cache.hits == 1
        assert counting_cache.writes == 1

    def test_negative_result_also_cached(self, db, counting_cache, count_queries):
        stranger = make_user(db)
        profile = make_profile(db)
        uid, pid = stranger.user_id, profile.id
        resolver = OwnershipResolver(db, counting_cache)
        resolver.is_profile_owner(uid, pid)

        with count_queries() as q:
            assert not resolver.is_profile_owner(uid, pid)
        assert q.count == 0


class TestClubOwnership:

    def test_club_owner(self, db, cache):
        gym_owner = make_user(db, Role.GYM_OWNER)
        club = make_club(db, owner=gym_owner)
        resolver = OwnershipResolver(db, cache)
        assert resolver.is_club_owner(gym_owner.user_id, club.id)
        assert not resolver.is_club_owner("someone-else", club.id)

    def test_unowned_club(self, db, cache):
        club = make_club(db)
        user = make_user(db, Role.GYM_OWNER)
        assert not OwnershipResolver(db, cache).is_club_owner(user.user_id, club.id)

    def test_profile_in_owned_club(self, db, cache):
        gym_owner = make_user(db, Role.GYM_OWNER)
        club = make_club(db, owner=gym_owner)
        member = make_profile(db, club=club)
        outsider = make_profile(db)
        resolver = OwnershipResolver(db, cache)

        assert resolver.is_profile_in_club_owned_by(gym_owner.user_id, member.id)
        assert not resolver.is_profile_in_club_owned_by(gym_owner.user_id, outsider.id)

    def test_profile_in_unowned_club(self, db, cache):
        club = make_club(db)
        member = make_profile(db, club=club)
        gym_owner = make_user(db, Role.GYM_OWNER)
        assert not OwnershipResolver(db, cache).is_profile_in_club_owned_by(gym_owner.user_id, member.id)


class TestCoachLinks:

    def test_exact_scope(self, db, cache):
        coach = make_user(db, Role.COACH)
        profile = make_profile(db)
        make_link(db, coach, profile, CoachScope.MANAGE_AVAILABILITY)
        resolver = OwnershipResolver(db, cache)

        assert resolver.coach_has_link_permission(coach.user_id, profile.id, CoachScope.MANAGE_AVAILABILITY)
        assert not resolver.coach_has_link_permission(coach.user_id, profile.id, CoachScope.EDIT_PROFILE)

    def test_full_access_satisfies_every_scope(self, db, cache):
        coach = make_user(db, Role.COACH)
        profile = make_profile(db)
        make_link(db, coach, profile, CoachScope.FULL_ACCESS)
        resolver = OwnershipResolver(db, cache)

        for scope in CoachScope:
            assert resolver.coach_has_link_permission(coach.user_id, profile.id, scope)

    def test_no_link(self, db, cache):
        coach = make_user(db, Role.COACH)
        profile = make_profile(db)
        assert not OwnershipResolver(db, cache).coach_has_link_permission(
            coach.user_id, profile.id, CoachScope.VIEW_PROFILE
        )

    def test_cached_per_scope(self, db, cache):
        coach = make_user(db, Role.COACH)
        profile = make_profile(db)
        make_link(db, coach, profile, CoachScope.EDIT_PROFILE)
        resolver = OwnershipResolver(db, cache)
        resolver.coach_has_link_permission(coach.user_id, profile.id, CoachScope.EDIT_PROFILE)
        resolver.coach_has_link_permission(coach.user_id, profile.id, CoachScope.VIEW_PROFILE)

        assert cache.get(coach_link_key(coach.user_id, profile.id, CoachScope.EDIT_PROFILE)) is True
        assert cache.get(coach_link_key(coach.user_id, profile.id, CoachScope.VIEW_PROFILE)) is False


class TestCacheDisabled:

    def test_null_cache_reads_store_every_time(self, db, null_cache, count_queries):
        owner = make_user(db)
        profile = make_profile(db, owner=owner)
        uid, pid = owner.user_id, profile.id
        resolver = OwnershipResolver(db, null_cache)

        with count_queries() as q:
            assert resolver.is_profile_owner(uid, pid)
            assert resolver.is_profile_owner(uid, pid)
        assert q.count == 2
