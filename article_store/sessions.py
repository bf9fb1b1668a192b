import asyncio
import logging

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError

from article_store.config import settings
from article_store.errors import AuthResolutionError
from article_store.schemas import SessionUser

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Read-only view of the session hash maintained by the login service.

    Each session token maps to a Redis hash; the caller identity is stored as
    JSON under ``settings.SESSION_INFO_FIELD``.  Every lookup is bounded by
    ``settings.SESSION_LOOKUP_TIMEOUT`` and every failure mode (no
    connection, missing entry, timeout, malformed JSON) surfaces as
    ``AuthResolutionError``.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._lookups: int = 0
        self._failures: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=settings.SESSION_LOOKUP_TIMEOUT,
            socket_timeout=settings.SESSION_LOOKUP_TIMEOUT,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, session lookups will fail: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Identity resolution
    # ------------------------------------------------------------------

    async def get_identity(self, token: str | None) -> SessionUser:
        """
        Resolve the identity stored under *token*.

        Raises ``AuthResolutionError`` when the identity cannot be produced.
        """
        self._lookups += 1
        try:
            return await self._lookup(token)
        except AuthResolutionError as exc:
            self._failures += 1
            logger.info("Session lookup failed: %s", exc.detail)
            raise

    async def find_identity(self, token: str | None) -> SessionUser | None:
        """Like ``get_identity`` but returns None instead of raising."""
        if not token:
            return None
        try:
            return await self.get_identity(token)
        except AuthResolutionError:
            return None

    async def _lookup(self, token: str | None) -> SessionUser:
        if not token:
            raise AuthResolutionError("Missing session token")
        if self._redis is None:
            raise AuthResolutionError("Session store unavailable")

        try:
            raw = await asyncio.wait_for(
                self._redis.hget(token, settings.SESSION_INFO_FIELD),
                timeout=settings.SESSION_LOOKUP_TIMEOUT,
            )
        except asyncio.TimeoutError:
            raise AuthResolutionError("Session lookup timed out")
        except redis.RedisError as exc:
            raise AuthResolutionError(f"Session lookup error: {exc}")

        if raw is None:
            raise AuthResolutionError("Session not found")

        try:
            return SessionUser.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise AuthResolutionError(f"Malformed session identity: {exc.error_count()} error(s)")

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of lookup/failure counters for the metrics endpoint."""
        return {
            "lookups": self._lookups,
            "failures": self._failures,
            "connected": self._redis is not None,
        }


# Module-level singleton shared across all request handlers.
sessions = SessionStore()
