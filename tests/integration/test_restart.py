"""
Integration tests for durability across restarts.

Tests cover:
- Id counters resume where they stopped
- Records survive reopening the database file
- Per-entity and shared counters coexist in one file
"""

import tempfile

import pytest

from fitness_tracker.config import IdConfig, IdScope, StorageBackend, StorageConfig
from fitness_tracker.models import ActivityPayload, FollowPayload, UserPayload
from fitness_tracker.services import build_services
from fitness_tracker.store import create_storage


class TestRestart:
    """Reopen the same SQLite file as a fresh process would."""

    @pytest.fixture
    def data_dir(self):
        """Create temporary data directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    def open_services(self, data_dir, scope=IdScope.SHARED):
        storage = create_storage(
            StorageConfig(backend=StorageBackend.SQLITE, data_dir=data_dir),
            IdConfig(scope=scope),
        )
        return build_services(storage)

    def test_ids_resume_after_restart(self, data_dir):
        before = self.open_services(data_dir)
        alice = before.users.create_user(UserPayload(name="Alice", email="a@x.io"))
        bob = before.users.create_user(UserPayload(name="Bob", email="b@x.io"))

        after = self.open_services(data_dir)
        carol = after.users.create_user(UserPayload(name="Carol", email="c@x.io"))

        assert (alice.id, bob.id, carol.id) == (0, 1, 2)
        assert [u.name for u in after.users.get_users()] == ["Alice", "Bob", "Carol"]

    def test_records_survive_restart(self, data_dir):
        before = self.open_services(data_dir)
        alice = before.users.create_user(UserPayload(name="Alice", email="a@x.io"))
        bob = before.users.create_user(UserPayload(name="Bob", email="b@x.io"))
        follow = before.follows.follow_user(
            FollowPayload(follower_id=bob.id, following_id=alice.id)
        )
        activity = before.activities.create_activity(
            ActivityPayload(user_id=alice.id, type="run", duration=30, date=20240101)
        )

        after = self.open_services(data_dir)

        assert after.users.get_user(alice.id) == alice
        assert after.follows.get_user_followers(alice.id) == [follow]
        assert after.activities.get_user_activities(alice.id) == [activity]
        assert after.storage.counts() == {
            "users": 2,
            "activities": 1,
            "challenges": 0,
            "follows": 1,
        }

    def test_scope_switch_keeps_existing_records(self, data_dir):
        shared = self.open_services(data_dir, scope=IdScope.SHARED)
        shared.users.create_user(UserPayload(name="Alice", email="a@x.io"))
        shared.users.create_user(UserPayload(name="Bob", email="b@x.io"))

        per_entity = self.open_services(data_dir, scope=IdScope.PER_ENTITY)

        assert len(per_entity.users.get_users()) == 2
        # The per-entity counter starts fresh; the shared counter is untouched
        assert per_entity.storage.ids["users"].peek() == 0
        assert self.open_services(data_dir).storage.ids["users"].peek() == 2
