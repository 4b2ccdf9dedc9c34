"""Client for the account API that persists a user's named lists."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..errors import ApiError
from ..models import ListItem, UserList

logger = logging.getLogger(__name__)


def _list_path(slug: str) -> str:
    return f"/lists/{quote(slug, safe='')}"


class ListsApiClient:
    """CRUD over lists and list membership.

    Requests carry the user's session cookie; the server decides ownership.
    """

    def __init__(self, http_client: httpx.AsyncClient, cookie: str | None = None):
        self._client = http_client
        self._cookie = cookie

    def with_cookie(self, cookie: str | None) -> "ListsApiClient":
        """Return a client forwarding ``cookie`` on every request."""

        return ListsApiClient(self._client, cookie)

    async def get_all(self, cookie: str | None = None) -> list[UserList]:
        payload = await self._request("GET", "/lists", cookie=cookie)
        if isinstance(payload, dict):
            payload = payload.get("lists")
        if not isinstance(payload, list):
            raise ApiError(None, "Unexpected lists response structure")
        return [self._list(entry) for entry in payload if isinstance(entry, dict)]

    async def create(self, name: str) -> UserList:
        payload = await self._request("POST", "/lists", json={"name": name})
        return self._list(payload)

    async def update(self, slug: str, name: str) -> UserList:
        payload = await self._request("PUT", _list_path(slug), json={"name": name})
        return self._list(payload)

    async def delete(self, slug: str) -> None:
        await self._request("DELETE", _list_path(slug))

    async def add_item(self, slug: str, item: ListItem) -> UserList:
        payload = await self._request(
            "POST", f"{_list_path(slug)}/items", json=item.to_payload()
        )
        return self._list(payload)

    async def remove_item(self, slug: str, item: ListItem) -> UserList:
        payload = await self._request(
            "DELETE", f"{_list_path(slug)}/items/{item.type}/{item.tmdb_id}"
        )
        return self._list(payload)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        cookie: str | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        resolved_cookie = cookie or self._cookie
        if resolved_cookie:
            headers["cookie"] = resolved_cookie

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Lists API %s %s failed: %s", method, path, exc)
            raise ApiError.from_exception(exc) from exc

        if response.status_code >= 400:
            logger.warning(
                "Lists API %s %s returned %s", method, path, response.status_code
            )
            raise ApiError.from_response(response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, "Unexpected non-JSON lists response") from exc

    @staticmethod
    def _list(payload: Any) -> UserList:
        if isinstance(payload, dict) and isinstance(payload.get("list"), dict):
            payload = payload["list"]
        if not isinstance(payload, dict):
            raise ApiError(None, "Unexpected list response structure")
        try:
            return UserList.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(None, "Malformed list in response") from exc
