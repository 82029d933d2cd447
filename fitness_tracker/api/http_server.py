"""
HTTP server implementation for the Fitness Tracker.

This module exposes every entity service operation as a JSON endpoint.

Invariants:
    - Requests are handled one at a time (one application-wide lock)
    - Request bodies are validated before any service call
    - Service errors map to fixed status codes: validation 400, not found 404,
      oversized record 413, storage faults 500

How to change safely:
    - Add endpoints, don't change the shape of existing responses
    - Keep every handler inside the request lock; the core takes no locks
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

import pydantic
from aiohttp import web
from pydantic import BaseModel, Field

from ..errors import FitnessTrackerError, NotFoundError, RecordTooLargeError, ValidationError
from ..models import ActivityPayload, ChallengePayload, FollowPayload, UserPayload
from ..services import Services
from ..store import ENTITY_KINDS, MAX_ID

logger = logging.getLogger(__name__)

SERVICES_KEY = web.AppKey("services", Services)
REQUEST_LOCK_KEY = web.AppKey("request_lock", asyncio.Lock)


# --- Request models ---


class CreateUserRequest(BaseModel):
    """Request to register a user."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")


class CreateActivityRequest(BaseModel):
    """Request to log an activity."""

    user_id: int = Field(..., ge=0, le=MAX_ID, description="Owning user ID")
    type: str = Field(..., description="Activity kind")
    duration: int = Field(..., ge=0, le=MAX_ID, description="Duration in minutes")
    date: int = Field(..., ge=0, le=MAX_ID, description="Activity date")


class CreateChallengeRequest(BaseModel):
    """Request to create a challenge."""

    creator_id: int = Field(..., ge=0, le=MAX_ID, description="Creating user ID")
    title: str = Field(..., description="Challenge title")
    description: str = Field(..., description="Challenge description")


class JoinChallengeRequest(BaseModel):
    """Request to join a challenge."""

    user_id: int = Field(..., ge=0, le=MAX_ID, description="Joining user ID")


class FollowRequest(BaseModel):
    """Request to follow a user."""

    follower_id: int = Field(..., ge=0, le=MAX_ID, description="Following user ID")
    following_id: int = Field(..., ge=0, le=MAX_ID, description="Followed user ID")


def create_http_app(services: Services) -> web.Application:
    """Create an HTTP application for the Fitness Tracker.

    Args:
        services: Entity services to expose

    Returns:
        aiohttp Application instance
    """
    app = web.Application(middlewares=[error_middleware, serialize_middleware])
    app[SERVICES_KEY] = services
    app[REQUEST_LOCK_KEY] = asyncio.Lock()

    app.router.add_post("/v1/users", handle_create_user)
    app.router.add_get("/v1/users", handle_get_users)
    app.router.add_get(r"/v1/users/{user_id:\d+}", handle_get_user)
    app.router.add_get(r"/v1/users/{user_id:\d+}/activities", handle_get_user_activities)
    app.router.add_get(r"/v1/users/{user_id:\d+}/followers", handle_get_user_followers)
    app.router.add_get(r"/v1/users/{user_id:\d+}/following", handle_get_user_following)
    app.router.add_post("/v1/activities", handle_create_activity)
    app.router.add_get("/v1/activities", handle_get_activities)
    app.router.add_post("/v1/challenges", handle_create_challenge)
    app.router.add_get("/v1/challenges", handle_get_challenges)
    app.router.add_get(r"/v1/challenges/{challenge_id:\d+}", handle_get_challenge)
    app.router.add_post(r"/v1/challenges/{challenge_id:\d+}/join", handle_join_challenge)
    app.router.add_post("/v1/follows", handle_follow_user)
    app.router.add_get("/v1/leaderboard", handle_get_leaderboard)
    app.router.add_get("/v1/health", handle_health)

    return app


def _error_response(status: int, body: dict[str, Any]) -> web.Response:
    return web.json_response(body, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ValidationError as e:
        return _error_response(400, e.to_dict())
    except NotFoundError as e:
        return _error_response(404, e.to_dict())
    except RecordTooLargeError as e:
        logger.warning(f"Rejected oversized record on {request.path}: {e}")
        return _error_response(413, e.to_dict())
    except FitnessTrackerError as e:
        logger.error(f"Storage fault handling {request.path}: {e}", exc_info=True)
        return _error_response(500, e.to_dict())
    except Exception as e:
        logger.error(f"HTTP handler error: {e}", exc_info=True)
        return _error_response(500, {"error": str(e), "error_code": "INTERNAL", "details": {}})


@web.middleware
async def serialize_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    async with request.app[REQUEST_LOCK_KEY]:
        return await handler(request)


async def _parse_body(request: web.Request, model: type[BaseModel]) -> Any:
    """Parse and validate a JSON body.

    Raises:
        ValidationError: If the body is not JSON or fails the model
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON body")

    try:
        return model.model_validate(body)
    except pydantic.ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        first = e.errors()[0]["loc"] if e.errors() else ()
        raise ValidationError(
            f"Invalid request body: {'; '.join(errors)}",
            field_name=str(first[0]) if first else None,
        )


def _services(request: web.Request) -> Services:
    return request.app[SERVICES_KEY]


def _path_id(request: web.Request, name: str) -> int:
    return int(request.match_info[name])


async def handle_create_user(request: web.Request) -> web.Response:
    """Handle POST /v1/users - Register a user."""
    body = await _parse_body(request, CreateUserRequest)
    user = _services(request).users.create_user(UserPayload(name=body.name, email=body.email))
    return web.json_response(user.to_dict(), status=201)


async def handle_get_users(request: web.Request) -> web.Response:
    """Handle GET /v1/users - List all users."""
    users = _services(request).users.get_users()
    return web.json_response({"users": [user.to_dict() for user in users]})


async def handle_get_user(request: web.Request) -> web.Response:
    """Handle GET /v1/users/{user_id} - Get user by ID."""
    user = _services(request).users.get_user(_path_id(request, "user_id"))
    return web.json_response(user.to_dict())


async def handle_get_user_activities(request: web.Request) -> web.Response:
    """Handle GET /v1/users/{user_id}/activities - Activities logged by a user."""
    activities = _services(request).activities.get_user_activities(_path_id(request, "user_id"))
    return web.json_response({"activities": [a.to_dict() for a in activities]})


async def handle_get_user_followers(request: web.Request) -> web.Response:
    """Handle GET /v1/users/{user_id}/followers - Follows pointing at a user."""
    follows = _services(request).follows.get_user_followers(_path_id(request, "user_id"))
    return web.json_response({"follows": [f.to_dict() for f in follows]})


async def handle_get_user_following(request: web.Request) -> web.Response:
    """Handle GET /v1/users/{user_id}/following - Follows made by a user."""
    follows = _services(request).follows.get_user_following(_path_id(request, "user_id"))
    return web.json_response({"follows": [f.to_dict() for f in follows]})


async def handle_create_activity(request: web.Request) -> web.Response:
    """Handle POST /v1/activities - Log an activity."""
    body = await _parse_body(request, CreateActivityRequest)
    activity = _services(request).activities.create_activity(
        ActivityPayload(
            user_id=body.user_id,
            type=body.type,
            duration=body.duration,
            date=body.date,
        )
    )
    return web.json_response(activity.to_dict(), status=201)


async def handle_get_activities(request: web.Request) -> web.Response:
    """Handle GET /v1/activities - List all activities."""
    activities = _services(request).activities.get_activities()
    return web.json_response({"activities": [a.to_dict() for a in activities]})


async def handle_create_challenge(request: web.Request) -> web.Response:
    """Handle POST /v1/challenges - Create a challenge."""
    body = await _parse_body(request, CreateChallengeRequest)
    challenge = _services(request).challenges.create_challenge(
        ChallengePayload(
            creator_id=body.creator_id,
            title=body.title,
            description=body.description,
        )
    )
    return web.json_response(challenge.to_dict(), status=201)


async def handle_get_challenges(request: web.Request) -> web.Response:
    """Handle GET /v1/challenges - List all challenges."""
    challenges = _services(request).challenges.get_challenges()
    return web.json_response({"challenges": [c.to_dict() for c in challenges]})


async def handle_get_challenge(request: web.Request) -> web.Response:
    """Handle GET /v1/challenges/{challenge_id} - Get challenge by ID."""
    challenge = _services(request).challenges.get_challenge(_path_id(request, "challenge_id"))
    return web.json_response(challenge.to_dict())


async def handle_join_challenge(request: web.Request) -> web.Response:
    """Handle POST /v1/challenges/{challenge_id}/join - Join a challenge."""
    body = await _parse_body(request, JoinChallengeRequest)
    challenge = _services(request).challenges.join_challenge(
        _path_id(request, "challenge_id"), body.user_id
    )
    return web.json_response(challenge.to_dict())


async def handle_follow_user(request: web.Request) -> web.Response:
    """Handle POST /v1/follows - Follow a user."""
    body = await _parse_body(request, FollowRequest)
    follow = _services(request).follows.follow_user(
        FollowPayload(follower_id=body.follower_id, following_id=body.following_id)
    )
    return web.json_response(follow.to_dict(), status=201)


async def handle_get_leaderboard(request: web.Request) -> web.Response:
    """Handle GET /v1/leaderboard - Top users by points."""
    users = _services(request).users.get_leaderboard()
    return web.json_response({"users": [user.to_dict() for user in users]})


async def handle_health(request: web.Request) -> web.Response:
    """Handle GET /v1/health - Health check."""
    storage = _services(request).storage
    try:
        counts = storage.counts()
        next_ids = {kind: storage.ids[kind].peek() for kind in ENTITY_KINDS}
    except FitnessTrackerError as e:
        logger.warning(f"Health check failed: {e}")
        return web.json_response({"healthy": False, "error": e.message}, status=503)
    return web.json_response({"healthy": True, "counts": counts, "next_ids": next_ids})
