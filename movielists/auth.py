"""Process-wide authenticated-user flag and page access checks."""

from __future__ import annotations

import logging
from typing import Protocol

from .errors import ApiError
from .models import AuthUser

logger = logging.getLogger(__name__)

LANDING_ROUTE = "/"


class AuthApi(Protocol):
    async def resolve(self, credential: str | None) -> AuthUser: ...

    async def sign_out(self, credential: str | None) -> None: ...


class AuthGate:
    """Holds who is signed in for the current client session."""

    def __init__(self, api: AuthApi, user: AuthUser | None = None):
        self._api = api
        self._user = user or AuthUser.anonymous()
        self._credential: str | None = None

    @property
    def user(self) -> AuthUser:
        return self._user

    @property
    def auth(self) -> bool:
        return self._user.auth

    async def refresh(self, credential: str | None) -> AuthUser:
        """Resolve the user for a navigation; failures count as anonymous."""

        self._credential = credential
        try:
            self._user = await self._api.resolve(credential)
        except ApiError as exc:
            logger.warning("Auth resolution failed, continuing anonymously: %s", exc.message)
            self._user = AuthUser.anonymous()
        return self._user

    async def sign_out(self) -> None:
        """Sign out remotely and clear the local flag even if that call fails."""

        credential = self._credential
        self._user = AuthUser.anonymous()
        self._credential = None
        await self._api.sign_out(credential)

    def guard(self, restricted: bool = True) -> str | None:
        """Return the redirect target if the current user may not see the page.

        Restricted pages require a signed-in user; unrestricted guarded pages
        (sign-in) require an anonymous one.
        """

        if restricted and not self.auth:
            return LANDING_ROUTE
        if not restricted and self.auth:
            return LANDING_ROUTE
        return None
