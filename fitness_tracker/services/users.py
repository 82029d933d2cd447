"""
User service: registration, lookup and the points leaderboard.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ..errors import NotFoundError, ValidationError
from ..models import User, UserPayload
from ..store import MAX_ID, IdGenerator, RecordStore
from ..views import top_by

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User with the given ID does not exist."


class UserService:
    """Creates and reads users.

    Attributes:
        store: User record store
        ids: Identifier generator for new users
        leaderboard_size: Maximum users returned by get_leaderboard()
    """

    def __init__(
        self,
        store: RecordStore[User],
        ids: IdGenerator,
        clock: Callable[[], int] = time.time_ns,
        leaderboard_size: int = 10,
    ) -> None:
        self.store = store
        self.ids = ids
        self.leaderboard_size = leaderboard_size
        self._clock = clock

    def create_user(self, payload: UserPayload) -> User:
        """Register a user with zero points.

        Raises:
            ValidationError: If name or email is empty, or email has no '@'
            RecordTooLargeError: If the user would not fit the size bound; no
                id is consumed
        """
        if not payload.name or not payload.email:
            raise ValidationError(
                "Invalid input: Ensure 'name' and 'email' are provided.",
                field_name="name" if not payload.name else "email",
            )
        if "@" not in payload.email:
            raise ValidationError(
                "Invalid input: Ensure 'email' is a valid email address.",
                field_name="email",
            )

        candidate = User(
            id=MAX_ID,
            name=payload.name,
            email=payload.email,
            points=0,
            created_at=self._clock(),
        )
        self.store.check_size(candidate)

        user_id = self.ids.next_id()
        user = replace(candidate, id=user_id)
        self.store.insert(user_id, user)

        logger.info("Created user", extra={"user_id": user_id})
        return user

    def get_user(self, user_id: int) -> User:
        """Return the user or raise NotFoundError."""
        user = self.store.lookup(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND, resource_type="user", resource_id=user_id)
        return user

    def get_users(self) -> list[User]:
        return [user for _, user in self.store.scan()]

    def get_leaderboard(self) -> list[User]:
        """Users by points descending, ties in id order, at most leaderboard_size."""
        return top_by(self.get_users(), "points", self.leaderboard_size)
