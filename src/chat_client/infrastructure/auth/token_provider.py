from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

import jwt

from chat_client.config import settings

logger = logging.getLogger(__name__)

TokenFetcher = Callable[[], Awaitable[str]]


class StaticTokenProvider:
    """Implements application.ports.auth.TokenProvider with a fixed token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str:
        return self._token


class RefreshingTokenProvider:
    """Caches a bearer JWT and re-fetches it shortly before ``exp``.

    The token is only inspected, never verified: verification is the
    server's job.
    """

    def __init__(self, fetch: TokenFetcher, *, skew_seconds: int | None = None) -> None:
        self._fetch = fetch
        self._skew = skew_seconds if skew_seconds is not None else settings.TOKEN_REFRESH_SKEW_SECONDS
        self._token: str | None = None
        self._expires_at: float | None = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        async with self._lock:
            if self._token is None or self._is_expiring():
                self._token = await self._fetch()
                self._expires_at = _read_exp(self._token)
                logger.debug("Bearer token refreshed (exp=%s)", self._expires_at)
            return self._token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = None

    def _is_expiring(self) -> bool:
        if self._expires_at is None:
            return False
        return time.time() >= self._expires_at - self._skew


def _read_exp(token: str) -> float | None:
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        logger.debug("Bearer token is not a decodable JWT; caching until invalidated")
        return None
    exp = claims.get("exp")
    return float(exp) if isinstance(exp, (int, float)) else None
