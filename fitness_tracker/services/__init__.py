"""
Entity services for the Fitness Tracker server.

Each service owns the record store for its entity kind and draws ids from
the generator the Storage assigns to that kind. Validation, foreign-key
checks and the size check run before any id is issued, so a rejected request
never mutates a store.

Invariants:
    - Foreign-key existence is checked through UserService.get_user()
    - Reads are scan-then-filter; no service keeps derived state
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..store import ACTIVITIES, CHALLENGES, FOLLOWS, USERS, Storage
from .activities import ActivityService
from .challenges import CHALLENGE_NOT_FOUND, ChallengeService
from .follows import FollowService
from .users import USER_NOT_FOUND, UserService


@dataclass
class Services:
    """The four entity services sharing one Storage."""

    storage: Storage
    users: UserService
    activities: ActivityService
    challenges: ChallengeService
    follows: FollowService


def build_services(
    storage: Storage,
    leaderboard_size: int = 10,
    clock: Callable[[], int] = time.time_ns,
) -> Services:
    """Wire the entity services onto a Storage.

    Args:
        storage: Stores and id generators
        leaderboard_size: Maximum users on the leaderboard
        clock: Source of creation timestamps (Unix ns)
    """
    users = UserService(
        storage.users, storage.ids[USERS], clock=clock, leaderboard_size=leaderboard_size
    )
    return Services(
        storage=storage,
        users=users,
        activities=ActivityService(storage.activities, storage.ids[ACTIVITIES], users, clock),
        challenges=ChallengeService(storage.challenges, storage.ids[CHALLENGES], users, clock),
        follows=FollowService(storage.follows, storage.ids[FOLLOWS], users, clock),
    )


__all__ = [
    "Services",
    "build_services",
    "UserService",
    "ActivityService",
    "ChallengeService",
    "FollowService",
    "USER_NOT_FOUND",
    "CHALLENGE_NOT_FOUND",
]
