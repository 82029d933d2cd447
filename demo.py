#!/usr/bin/env python3
"""
Fitness Tracker Demo - Shows registrations, follows and a restart.

This demo drives the services directly against a temporary SQLite file,
then reopens the file to show that records and id counters survive.
"""

import json
import tempfile

from fitness_tracker.config import IdConfig, StorageBackend, StorageConfig
from fitness_tracker.errors import NotFoundError
from fitness_tracker.models import (
    ActivityPayload,
    ChallengePayload,
    FollowPayload,
    UserPayload,
)
from fitness_tracker.services import build_services
from fitness_tracker.store import create_storage


def open_services(data_dir):
    storage = create_storage(
        StorageConfig(backend=StorageBackend.SQLITE, data_dir=data_dir, wal_mode=False),
        IdConfig(),
    )
    return build_services(storage)


def main():
    print("=" * 60)
    print("Fitness Tracker Demo")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as data_dir:
        print(f"[Setup] Using data directory: {data_dir}")
        services = open_services(data_dir)

        # 1. Register users
        print("\n[Step 1] Creating users...")
        alice = services.users.create_user(UserPayload(name="Alice", email="alice@example.com"))
        bob = services.users.create_user(UserPayload(name="Bob", email="bob@example.com"))
        for user in (alice, bob):
            print(f"  - {user.name}: id={user.id}")

        # 2. Follow and log activity
        print("\n[Step 2] Bob follows Alice, Alice logs a run...")
        services.follows.follow_user(FollowPayload(follower_id=bob.id, following_id=alice.id))
        services.activities.create_activity(
            ActivityPayload(user_id=alice.id, type="run", duration=30, date=20240101)
        )
        followers = services.follows.get_user_followers(alice.id)
        print(f"  - Alice has {len(followers)} follower(s)")

        # 3. Challenge
        print("\n[Step 3] Creating and joining a challenge...")
        challenge = services.challenges.create_challenge(
            ChallengePayload(creator_id=alice.id, title="10k", description="Run 10k this week")
        )
        challenge = services.challenges.join_challenge(challenge.id, bob.id)
        print(f"  - {challenge.title}: participants={challenge.participants}")

        # 4. Rejected write
        print("\n[Step 4] Logging an activity for an unknown user...")
        try:
            services.activities.create_activity(
                ActivityPayload(user_id=999, type="swim", duration=10, date=20240102)
            )
        except NotFoundError as e:
            print(f"  - Rejected: {e.message}")

        # 5. Restart
        print("\n[Step 5] Reopening the database...")
        services = open_services(data_dir)
        carol = services.users.create_user(UserPayload(name="Carol", email="carol@example.com"))
        print(f"  - Carol: id={carol.id} (counter resumed)")
        print(f"  - Counts: {json.dumps(services.storage.counts())}")

    print("\n" + "=" * 60)
    print("Demo complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
