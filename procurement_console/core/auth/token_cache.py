"""Bearer token cache for the CRM client.

One TokenCache is constructed per process and handed to whatever issues CRM
calls. The cached value is an immutable CachedToken replaced by a single
attribute assignment, so concurrent misses can each log in without
corrupting state: the last successful login wins.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from procurement_console.core.domain.errors import AuthenticationError
from procurement_console.core.domain.types import LoginResult

LOGGER = logging.getLogger(__name__)

# Six hours minus ten minutes: shorter than the CRM session lifetime so a
# token never expires in the middle of a request.
DEFAULT_TOKEN_TTL_S = (6 * 60 - 10) * 60


@dataclass(frozen=True, slots=True)
class CachedToken:
    value: str
    expires_at: float


class TokenCache:
    """Lazily acquires and caches a CRM bearer token.

    Contract:
    - get_token() on a hit performs zero login calls.
    - get_token() on a miss or after expiry performs exactly one login call.
    - login failures propagate as AuthenticationError and are never retried here.
    """

    def __init__(
        self,
        *,
        login: Callable[[], LoginResult],
        clock: Callable[[], float] = time.time,
        default_ttl_s: float = DEFAULT_TOKEN_TTL_S,
    ) -> None:
        if default_ttl_s <= 0:
            raise ValueError("default_ttl_s must be positive")

        self._login = login
        self._clock = clock
        self._default_ttl_s = float(default_ttl_s)
        self._cached: CachedToken | None = None

    def get_token(self) -> str:
        """Return a valid bearer token, logging in on a miss."""
        cached = self._cached
        if cached is not None and self._clock() < cached.expires_at:
            return cached.value

        return self._refresh()

    def invalidate(self) -> None:
        """Forget the cached token; the next get_token() logs in again."""
        self._cached = None

    @property
    def cached(self) -> CachedToken | None:
        return self._cached

    def _refresh(self) -> str:
        try:
            result = self._login()
        except AuthenticationError:
            LOGGER.error("crm_login_failed")
            raise

        if not result.token:
            raise AuthenticationError("CRM login response did not contain a token")

        ttl_s = result.ttl_s if result.ttl_s and result.ttl_s > 0 else self._default_ttl_s
        self._cached = CachedToken(value=result.token, expires_at=self._clock() + ttl_s)

        LOGGER.info("crm_token_refreshed", extra={"ttl_s": ttl_s})
        return result.token
