"""
Session Store

Server-side sessions kept in Redis. A login creates an opaque token that the
client presents as a Bearer token or in the session cookie. Redis holds only
the token's SHA-256 hash as the key, mapping to the session principal:

    session:<sha256(token)> -> {"user_id": ..., "username": ..., "role": ...}

Keys expire after SESSION_TTL_SECONDS; logout deletes the key.
"""

import json
import logging
from dataclasses import asdict, dataclass
from uuid import UUID

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from admission_portal.core.config import settings
from admission_portal.core.exceptions import SessionStoreUnavailableError
from admission_portal.core.security import generate_session_token, hash_token

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize the Redis connection.

    Call this on application startup.
    """
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


async def get_redis() -> Redis | None:
    """FastAPI dependency returning the Redis client, or None if not connected."""
    return redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


@dataclass(frozen=True)
class SessionData:
    """The principal bound to a session."""

    user_id: UUID
    username: str
    role: str

    def to_json(self) -> str:
        data = asdict(self)
        data["user_id"] = str(self.user_id)
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "SessionData":
        data = json.loads(raw)
        return cls(user_id=UUID(data["user_id"]), username=data["username"], role=data["role"])


def _session_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}{hash_token(token)}"


def _require_client(redis: Redis | None) -> Redis:
    if redis is None:
        logger.error("Session store requested but Redis is not connected")
        raise SessionStoreUnavailableError()
    return redis


async def create_session(redis: Redis | None, session: SessionData) -> str:
    """
    Store a new session and return the plain token for the client.

    Raises:
        SessionStoreUnavailableError: If Redis is unavailable
    """
    client = _require_client(redis)
    token = generate_session_token()
    try:
        await client.set(_session_key(token), session.to_json(), ex=settings.session_ttl_seconds)
    except RedisError as e:
        logger.error(f"Failed to create session for user {session.user_id}: {e}")
        raise SessionStoreUnavailableError() from e
    return token


async def load_session(redis: Redis | None, token: str) -> SessionData | None:
    """
    Resolve a token to its session, or None if unknown or expired.

    Raises:
        SessionStoreUnavailableError: If Redis is unavailable
    """
    client = _require_client(redis)
    try:
        raw = await client.get(_session_key(token))
    except RedisError as e:
        logger.error(f"Failed to read session: {e}")
        raise SessionStoreUnavailableError() from e

    if raw is None:
        return None

    try:
        return SessionData.from_json(raw)
    except (ValueError, KeyError, TypeError):
        logger.warning("Discarding malformed session payload")
        return None


async def delete_session(redis: Redis | None, token: str) -> None:
    """Remove a session. Deleting an unknown token is a no-op."""
    client = _require_client(redis)
    try:
        await client.delete(_session_key(token))
    except RedisError as e:
        logger.error(f"Failed to delete session: {e}")
        raise SessionStoreUnavailableError() from e
