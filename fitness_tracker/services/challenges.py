"""
Challenge service: creating challenges and joining them.

Joining is read-modify-reinsert: the challenge is read, the user id is
appended to ``participants`` in memory, and the whole record is inserted
again under its own id. The same user may join more than once.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ..errors import NotFoundError
from ..models import Challenge, ChallengePayload
from ..store import MAX_ID, IdGenerator, RecordStore
from .users import UserService

logger = logging.getLogger(__name__)

CHALLENGE_NOT_FOUND = "Challenge not found."


class ChallengeService:
    def __init__(
        self,
        store: RecordStore[Challenge],
        ids: IdGenerator,
        users: UserService,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.store = store
        self.ids = ids
        self.users = users
        self._clock = clock

    def create_challenge(self, payload: ChallengePayload) -> Challenge:
        """Create a challenge with no participants.

        Raises:
            NotFoundError: If the creator is not a known user
        """
        self.users.get_user(payload.creator_id)

        candidate = Challenge(
            id=MAX_ID,
            creator_id=payload.creator_id,
            title=payload.title,
            description=payload.description,
            participants=[],
            created_at=self._clock(),
        )
        self.store.check_size(candidate)

        challenge_id = self.ids.next_id()
        challenge = replace(candidate, id=challenge_id)
        self.store.insert(challenge_id, challenge)

        logger.info(
            "Created challenge",
            extra={"challenge_id": challenge_id, "creator_id": payload.creator_id},
        )
        return challenge

    def get_challenge(self, challenge_id: int) -> Challenge:
        """Return the challenge or raise NotFoundError."""
        challenge = self.store.lookup(challenge_id)
        if challenge is None:
            raise NotFoundError(
                CHALLENGE_NOT_FOUND, resource_type="challenge", resource_id=challenge_id
            )
        return challenge

    def join_challenge(self, challenge_id: int, user_id: int) -> Challenge:
        """Append ``user_id`` to the challenge's participants.

        Raises:
            NotFoundError: If the challenge, then the user, is unknown
            RecordTooLargeError: If the grown record no longer fits; the
                stored challenge is left unchanged
        """
        challenge = self.get_challenge(challenge_id)
        self.users.get_user(user_id)

        challenge.participants.append(user_id)
        self.store.insert(challenge_id, challenge)

        logger.info(
            "User joined challenge",
            extra={
                "challenge_id": challenge_id,
                "user_id": user_id,
                "participants": len(challenge.participants),
            },
        )
        return challenge

    def get_challenges(self) -> list[Challenge]:
        return [challenge for _, challenge in self.store.scan()]
