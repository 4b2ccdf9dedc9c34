"""Client resolving the signed-in user from a forwarded session cookie."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError
from starlette.requests import cookie_parser

from ..errors import ApiError
from ..models import AuthUser

logger = logging.getLogger(__name__)


class AuthApiClient:
    """Wrapper around the account API's session endpoints."""

    def __init__(self, http_client: httpx.AsyncClient, cookie_name: str = "jwt"):
        self._client = http_client
        self._cookie_name = cookie_name

    def has_session(self, credential: str | None) -> bool:
        """Return whether the cookie header carries a session cookie at all."""

        if not credential:
            return False
        return bool(cookie_parser(credential).get(self._cookie_name))

    async def resolve(self, credential: str | None) -> AuthUser:
        """Return the user owning ``credential``, the request's cookie header.

        A request without a session cookie is anonymous and never reaches the
        network.
        """

        if not self.has_session(credential):
            return AuthUser.anonymous()

        try:
            response = await self._client.get("/auth", headers={"cookie": credential or ""})
        except httpx.HTTPError as exc:
            logger.warning("Auth lookup failed: %s", exc)
            raise ApiError.from_exception(exc) from exc

        if response.status_code in (401, 403):
            return AuthUser.anonymous()
        if response.status_code >= 400:
            logger.warning("Auth lookup returned %s", response.status_code)
            raise ApiError.from_response(response)

        try:
            return AuthUser.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ApiError(response.status_code, "Unexpected auth response") from exc

    async def sign_out(self, credential: str | None) -> None:
        headers = {"cookie": credential} if credential else {}
        try:
            response = await self._client.post("/auth/signout", headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Sign-out request failed: %s", exc)
            raise ApiError.from_exception(exc) from exc
        if response.status_code >= 400:
            raise ApiError.from_response(response)
