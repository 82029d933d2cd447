"""
Unit tests for the entity services.

Tests cover:
- User validation messages and zero-point creation
- Foreign-key checks leave stores untouched
- Self-follow rejection and follower/following views
- Challenge join (including repeat joins) and its failure order
- Leaderboard ordering
- Shared vs per-entity identifier sequences
"""

import itertools

import pytest

from fitness_tracker.config import IdConfig, IdScope, StorageBackend, StorageConfig
from fitness_tracker.errors import NotFoundError, RecordTooLargeError, ValidationError
from fitness_tracker.models import (
    ActivityPayload,
    ChallengePayload,
    FollowPayload,
    UserPayload,
)
from fitness_tracker.services import (
    CHALLENGE_NOT_FOUND,
    USER_NOT_FOUND,
    build_services,
)
from fitness_tracker.store import create_storage


def make_services(scope=IdScope.SHARED, max_record_size=1024, leaderboard_size=10):
    storage = create_storage(
        StorageConfig(backend=StorageBackend.MEMORY, max_record_size=max_record_size),
        IdConfig(scope=scope),
    )
    ticks = itertools.count(1000)
    return build_services(
        storage, leaderboard_size=leaderboard_size, clock=lambda: next(ticks)
    )


@pytest.fixture
def services():
    return make_services()


def add_user(services, name="Alice"):
    return services.users.create_user(UserPayload(name=name, email=f"{name.lower()}@x.io"))


class TestUserService:
    """Tests for UserService."""

    def test_create_user(self, services):
        user = add_user(services)

        assert user.id == 0
        assert user.points == 0
        assert user.created_at == 1000
        assert services.users.get_user(0) == user

    def test_missing_name(self, services):
        with pytest.raises(ValidationError) as exc_info:
            services.users.create_user(UserPayload(name="", email="a@b.c"))

        assert exc_info.value.message == "Invalid input: Ensure 'name' and 'email' are provided."
        assert exc_info.value.field_name == "name"
        assert services.users.get_users() == []

    def test_missing_email(self, services):
        with pytest.raises(ValidationError) as exc_info:
            services.users.create_user(UserPayload(name="A", email=""))
        assert exc_info.value.field_name == "email"

    def test_email_without_at(self, services):
        with pytest.raises(ValidationError) as exc_info:
            services.users.create_user(UserPayload(name="A", email="nope"))

        assert exc_info.value.message == "Invalid input: Ensure 'email' is a valid email address."

    def test_rejected_user_consumes_no_id(self, services):
        with pytest.raises(ValidationError):
            services.users.create_user(UserPayload(name="A", email="nope"))

        assert add_user(services).id == 0

    def test_unknown_user(self, services):
        with pytest.raises(NotFoundError) as exc_info:
            services.users.get_user(7)

        assert exc_info.value.message == USER_NOT_FOUND
        assert exc_info.value.resource_id == 7

    def test_leaderboard(self, services):
        for i, points in enumerate([5, 0, 100, 100, 3]):
            user = add_user(services, name=f"U{i}")
            user.points = points
            services.users.store.insert(user.id, user)

        board = services.users.get_leaderboard()

        assert [u.points for u in board] == [100, 100, 5, 3, 0]
        assert [u.id for u in board[:2]] == [2, 3]

    def test_leaderboard_size(self):
        services = make_services(leaderboard_size=2)
        for i in range(5):
            add_user(services, name=f"U{i}")

        assert [u.id for u in services.users.get_leaderboard()] == [0, 1]


class TestActivityService:
    """Tests for ActivityService."""

    def test_create_and_filter(self, services):
        alice = add_user(services)
        bob = add_user(services, name="Bob")
        services.activities.create_activity(
            ActivityPayload(user_id=alice.id, type="run", duration=30, date=20240101)
        )
        services.activities.create_activity(
            ActivityPayload(user_id=bob.id, type="swim", duration=45, date=20240102)
        )

        assert len(services.activities.get_activities()) == 2
        mine = services.activities.get_user_activities(alice.id)
        assert [a.type for a in mine] == ["run"]
        assert services.activities.get_user_activities(99) == []

    def test_unknown_user_leaves_store_unchanged(self, services):
        add_user(services)

        with pytest.raises(NotFoundError) as exc_info:
            services.activities.create_activity(
                ActivityPayload(user_id=5, type="run", duration=1, date=1)
            )

        assert exc_info.value.message == USER_NOT_FOUND
        assert services.activities.get_activities() == []
        assert services.storage.ids["activities"].peek() == 1


class TestFollowService:
    """Tests for FollowService."""

    def test_follow_and_views(self, services):
        alice = add_user(services)
        bob = add_user(services, name="Bob")

        follow = services.follows.follow_user(
            FollowPayload(follower_id=bob.id, following_id=alice.id)
        )

        assert services.follows.get_user_followers(alice.id) == [follow]
        assert services.follows.get_user_following(bob.id) == [follow]
        assert services.follows.get_user_followers(bob.id) == []

    def test_self_follow_rejected_before_existence(self, services):
        with pytest.raises(ValidationError) as exc_info:
            services.follows.follow_user(FollowPayload(follower_id=4, following_id=4))

        assert exc_info.value.message == "Invalid input: User cannot follow themselves."
        assert services.follows.get_follows() == []

    def test_unknown_followee(self, services):
        alice = add_user(services)
        with pytest.raises(NotFoundError):
            services.follows.follow_user(FollowPayload(follower_id=alice.id, following_id=9))
        assert services.follows.get_follows() == []

    def test_duplicate_follows_are_kept(self, services):
        alice = add_user(services)
        bob = add_user(services, name="Bob")
        payload = FollowPayload(follower_id=bob.id, following_id=alice.id)

        services.follows.follow_user(payload)
        services.follows.follow_user(payload)

        assert len(services.follows.get_user_followers(alice.id)) == 2


class TestChallengeService:
    """Tests for ChallengeService."""

    def test_create_and_join(self, services):
        alice = add_user(services)
        bob = add_user(services, name="Bob")
        challenge = services.challenges.create_challenge(
            ChallengePayload(creator_id=alice.id, title="10k", description="Run 10k")
        )
        assert challenge.participants == []

        services.challenges.join_challenge(challenge.id, bob.id)
        services.challenges.join_challenge(challenge.id, bob.id)

        stored = services.challenges.get_challenge(challenge.id)
        assert stored.participants == [bob.id, bob.id]
        assert len(services.challenges.get_challenges()) == 1

    def test_unknown_creator(self, services):
        with pytest.raises(NotFoundError):
            services.challenges.create_challenge(
                ChallengePayload(creator_id=0, title="t", description="d")
            )
        assert services.challenges.get_challenges() == []

    def test_unknown_challenge_checked_first(self, services):
        with pytest.raises(NotFoundError) as exc_info:
            services.challenges.join_challenge(3, 99)
        assert exc_info.value.message == CHALLENGE_NOT_FOUND

    def test_unknown_joiner(self, services):
        alice = add_user(services)
        challenge = services.challenges.create_challenge(
            ChallengePayload(creator_id=alice.id, title="t", description="d")
        )

        with pytest.raises(NotFoundError) as exc_info:
            services.challenges.join_challenge(challenge.id, 42)

        assert exc_info.value.message == USER_NOT_FOUND
        assert services.challenges.get_challenge(challenge.id).participants == []

    def test_join_past_size_bound_keeps_stored_record(self):
        services = make_services(max_record_size=160)
        alice = add_user(services)
        challenge = services.challenges.create_challenge(
            ChallengePayload(creator_id=alice.id, title="t", description="d")
        )

        with pytest.raises(RecordTooLargeError):
            for _ in range(100):
                services.challenges.join_challenge(challenge.id, alice.id)

        stored = services.challenges.get_challenge(challenge.id)
        assert 0 < len(stored.participants) < 100
        assert len(stored.to_bytes()) <= 160


class TestOversizedCreate:
    """A record over the size bound is rejected before an id is drawn."""

    def test_user_keeps_counter(self, services):
        with pytest.raises(RecordTooLargeError):
            services.users.create_user(UserPayload(name="x" * 2000, email="a@b.c"))

        assert services.storage.ids["users"].peek() == 0
        assert services.users.get_users() == []
        assert add_user(services).id == 0

    def test_activity_keeps_counter(self, services):
        alice = add_user(services)

        with pytest.raises(RecordTooLargeError):
            services.activities.create_activity(
                ActivityPayload(user_id=alice.id, type="y" * 2000, duration=1, date=1)
            )

        assert services.storage.ids["activities"].peek() == 1
        assert services.activities.get_activities() == []

    def test_challenge_keeps_counter(self, services):
        alice = add_user(services)

        with pytest.raises(RecordTooLargeError):
            services.challenges.create_challenge(
                ChallengePayload(creator_id=alice.id, title="t", description="d" * 2000)
            )

        assert services.storage.ids["challenges"].peek() == 1
        assert services.challenges.get_challenges() == []

    def test_bound_is_checked_against_longest_id(self):
        """A record that would only fit with a short id is still rejected."""
        services = make_services(max_record_size=100)
        base = len(
            b'{"id":0,"name":"","email":"a@b.c","points":0,"created_at":1000}'
        )
        name = "n" * (100 - base)

        with pytest.raises(RecordTooLargeError):
            services.users.create_user(UserPayload(name=name, email="a@b.c"))

        assert services.storage.ids["users"].peek() == 0


class TestIdScope:
    """Identifier sequences across entity kinds."""

    def test_shared_sequence(self):
        services = make_services(scope=IdScope.SHARED)
        alice = add_user(services)
        activity = services.activities.create_activity(
            ActivityPayload(user_id=alice.id, type="run", duration=1, date=1)
        )
        bob = add_user(services, name="Bob")

        assert (alice.id, activity.id, bob.id) == (0, 1, 2)

    def test_per_entity_sequences(self):
        services = make_services(scope=IdScope.PER_ENTITY)
        alice = add_user(services)
        activity = services.activities.create_activity(
            ActivityPayload(user_id=alice.id, type="run", duration=1, date=1)
        )
        bob = add_user(services, name="Bob")

        assert (alice.id, activity.id, bob.id) == (0, 0, 1)
