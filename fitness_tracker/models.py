"""
Record and payload types for the Fitness Tracker server.

Every stored record type satisfies the storable-record capability used by
the record store: a stable ``id`` attribute plus ``to_bytes()`` and
``from_bytes()``. The wire format is compact UTF-8 JSON of ``to_dict()``.

Invariants:
    - from_bytes(r.to_bytes()) == r for every valid record
    - ``id`` equals the key the record is stored under
    - ``created_at`` is a nanosecond Unix timestamp set once at creation

How to change safely:
    - Add new fields with defaults in from_dict so old bytes still decode
    - Never rename a serialized key; stored records keep the old name
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from .errors import SerializationError

R = TypeVar("R", bound="JsonRecord")


class JsonRecord:
    """Mixin giving a dataclass record its byte encoding.

    Subclasses provide ``to_dict()`` and ``from_dict()``.
    """

    record_type: ClassVar[str] = "record"

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_dict(cls: type[R], data: dict[str, Any]) -> R:
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        """Encode as compact UTF-8 JSON.

        Raises:
            SerializationError: If a field value is not JSON-encodable
        """
        try:
            return json.dumps(
                self.to_dict(), separators=(",", ":"), ensure_ascii=False
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to encode {self.record_type}: {e}", record_type=self.record_type
            ) from e

    @classmethod
    def from_bytes(cls: type[R], data: bytes) -> R:
        """Decode bytes produced by ``to_bytes()``.

        Raises:
            SerializationError: If the bytes are not a valid encoding
        """
        try:
            return cls.from_dict(json.loads(data.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise SerializationError(
                f"Failed to decode {cls.record_type}: {e}", record_type=cls.record_type
            ) from e


@dataclass
class User(JsonRecord):
    """A registered user.

    Attributes:
        id: Identifier the user is stored under
        name: Display name
        email: Email address (contains '@')
        points: Leaderboard score, 0 on creation
        created_at: Creation timestamp (Unix ns)
    """

    record_type: ClassVar[str] = "user"

    id: int
    name: str
    email: str
    points: int
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "points": self.points,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            points=data["points"],
            created_at=data["created_at"],
        )


@dataclass
class Activity(JsonRecord):
    """A logged workout.

    Attributes:
        id: Identifier the activity is stored under
        user_id: Owning user
        type: Free-form activity kind ("run", "swim", ...)
        duration: Duration in minutes
        date: Caller-supplied date of the activity
        created_at: Creation timestamp (Unix ns)
    """

    record_type: ClassVar[str] = "activity"

    id: int
    user_id: int
    type: str
    duration: int
    date: int
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "duration": self.duration,
            "date": self.date,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Activity:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            type=data["type"],
            duration=data["duration"],
            date=data["date"],
            created_at=data["created_at"],
        )


@dataclass
class Challenge(JsonRecord):
    """A challenge users can join.

    ``participants`` is the only field mutated after creation; joining
    re-inserts the whole record under the same id.
    """

    record_type: ClassVar[str] = "challenge"

    id: int
    creator_id: int
    title: str
    description: str
    participants: list[int]
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creator_id": self.creator_id,
            "title": self.title,
            "description": self.description,
            "participants": list(self.participants),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Challenge:
        return cls(
            id=data["id"],
            creator_id=data["creator_id"],
            title=data["title"],
            description=data["description"],
            participants=list(data["participants"]),
            created_at=data["created_at"],
        )


@dataclass
class Follow(JsonRecord):
    """A directed follow relationship between two users."""

    record_type: ClassVar[str] = "follow"

    id: int
    follower_id: int
    following_id: int
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "follower_id": self.follower_id,
            "following_id": self.following_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Follow:
        return cls(
            id=data["id"],
            follower_id=data["follower_id"],
            following_id=data["following_id"],
            created_at=data["created_at"],
        )


# --- Creation payloads ---


@dataclass(frozen=True)
class UserPayload:
    name: str
    email: str


@dataclass(frozen=True)
class ActivityPayload:
    user_id: int
    type: str
    duration: int
    date: int


@dataclass(frozen=True)
class ChallengePayload:
    creator_id: int
    title: str
    description: str


@dataclass(frozen=True)
class FollowPayload:
    follower_id: int
    following_id: int
