"""
Activity service: logging workouts against existing users.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ..models import Activity, ActivityPayload
from ..store import MAX_ID, IdGenerator, RecordStore
from ..views import filter_by
from .users import UserService

logger = logging.getLogger(__name__)


class ActivityService:
    def __init__(
        self,
        store: RecordStore[Activity],
        ids: IdGenerator,
        users: UserService,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.store = store
        self.ids = ids
        self.users = users
        self._clock = clock

    def create_activity(self, payload: ActivityPayload) -> Activity:
        """Log an activity.

        Raises:
            NotFoundError: If ``payload.user_id`` is not a known user
        """
        self.users.get_user(payload.user_id)

        candidate = Activity(
            id=MAX_ID,
            user_id=payload.user_id,
            type=payload.type,
            duration=payload.duration,
            date=payload.date,
            created_at=self._clock(),
        )
        self.store.check_size(candidate)

        activity_id = self.ids.next_id()
        activity = replace(candidate, id=activity_id)
        self.store.insert(activity_id, activity)

        logger.info(
            "Created activity",
            extra={"activity_id": activity_id, "user_id": payload.user_id},
        )
        return activity

    def get_activities(self) -> list[Activity]:
        return [activity for _, activity in self.store.scan()]

    def get_user_activities(self, user_id: int) -> list[Activity]:
        return filter_by(self.get_activities(), "user_id", user_id)
