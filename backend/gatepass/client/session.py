from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .api import GatePassApi
from .cache import DestinationCache, resolve_cache_key
from .errors import ApiError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionIdentity:
    """Who is signed in. Passed explicitly to every operation that needs it."""
    email: str
    token: Optional[str] = None
    name: Optional[str] = None
    user_id: Optional[int] = None

    @property
    def cache_key(self) -> str:
        return resolve_cache_key(self)


class SessionBoundary:
    """Owns the current identity and the bearer token installed on the API."""

    def __init__(self, api: GatePassApi, cache: DestinationCache):
        self.api = api
        self.cache = cache
        self.identity: Optional[SessionIdentity] = None

    async def login(self, email: str, password: str) -> SessionIdentity:
        """Authenticate and install the returned token. ApiError on bad credentials."""
        body = await self.api.login(email, password)
        user = body.get("user") or {}
        token = body.get("token")
        if not token:
            raise ApiError("Login response did not include a session token")

        identity = SessionIdentity(
            email=user.get("email") or email.strip().lower(),
            token=token,
            name=user.get("name"),
            user_id=user.get("id"),
        )
        self.restore(identity)
        logger.info("Signed in as %s", identity.email)
        return identity

    def restore(self, identity: SessionIdentity) -> None:
        self.identity = identity
        self.api.set_token(identity.token)

    async def logout(self, identity: Optional[SessionIdentity] = None) -> None:
        """
        End the session.

        The server-side revoke is best-effort: local state is cleared and
        the destination cache invalidated even when the server is
        unreachable or already considers the token dead.
        """
        if self.api.token:
            try:
                await self.api.logout()
            except ApiError as e:
                logger.warning("Server logout failed, clearing local session anyway: %s", e)

        identities = [i for i in (identity, self.identity) if i is not None]
        self.cache.invalidate(*identities)
        self.api.clear_token()
        self.identity = None
