"""
Follow service: directed follow relationships between users.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ..errors import ValidationError
from ..models import Follow, FollowPayload
from ..store import MAX_ID, IdGenerator, RecordStore
from ..views import filter_by
from .users import UserService

logger = logging.getLogger(__name__)


class FollowService:
    def __init__(
        self,
        store: RecordStore[Follow],
        ids: IdGenerator,
        users: UserService,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.store = store
        self.ids = ids
        self.users = users
        self._clock = clock

    def follow_user(self, payload: FollowPayload) -> Follow:
        """Record that ``follower_id`` follows ``following_id``.

        Duplicate follows are not rejected.

        Raises:
            ValidationError: If a user tries to follow themselves
            NotFoundError: If either user is unknown
        """
        if payload.follower_id == payload.following_id:
            raise ValidationError(
                "Invalid input: User cannot follow themselves.",
                field_name="following_id",
            )
        self.users.get_user(payload.follower_id)
        self.users.get_user(payload.following_id)

        candidate = Follow(
            id=MAX_ID,
            follower_id=payload.follower_id,
            following_id=payload.following_id,
            created_at=self._clock(),
        )
        self.store.check_size(candidate)

        follow_id = self.ids.next_id()
        follow = replace(candidate, id=follow_id)
        self.store.insert(follow_id, follow)

        logger.info(
            "Created follow",
            extra={
                "follow_id": follow_id,
                "follower_id": payload.follower_id,
                "following_id": payload.following_id,
            },
        )
        return follow

    def get_follows(self) -> list[Follow]:
        return [follow for _, follow in self.store.scan()]

    def get_user_followers(self, user_id: int) -> list[Follow]:
        """Follows pointing at ``user_id``."""
        return filter_by(self.get_follows(), "following_id", user_id)

    def get_user_following(self, user_id: int) -> list[Follow]:
        """Follows made by ``user_id``."""
        return filter_by(self.get_follows(), "follower_id", user_id)
