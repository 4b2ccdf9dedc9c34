"""Tests for the account list API client."""

from __future__ import annotations

import json

import httpx
import pytest

from movielists.errors import ApiError
from movielists.models import ListItem
from movielists.services.lists_api import ListsApiClient

FAVORITES = {
    "id": 12,
    "slug": "favorites",
    "name": "Favorites",
    "items": [{"tmdbId": 550, "type": "movie", "title": "Fight Club", "poster": "/fc.jpg"}],
}


@pytest.mark.anyio("asyncio")
async def test_get_all_forwards_cookie_and_parses_lists() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[FAVORITES])

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client)
        lists = await client.get_all("jwt=abc")

    assert seen[0].url.path == "/lists"
    assert seen[0].headers["cookie"] == "jwt=abc"
    assert lists[0].slug == "favorites"
    assert lists[0].items[0].tmdb_id == 550


@pytest.mark.anyio("asyncio")
async def test_add_item_posts_item_payload() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=FAVORITES)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client).with_cookie("jwt=abc")
        updated = await client.add_item(
            "favorites", ListItem(tmdb_id=550, type="movie", title="Fight Club", poster="/fc.jpg")
        )

    assert bodies == [{"tmdbId": 550, "type": "movie", "title": "Fight Club", "poster": "/fc.jpg"}]
    assert [item.tmdb_id for item in updated.items] == [550]


@pytest.mark.anyio("asyncio")
async def test_delete_accepts_empty_response() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(f"{request.method} {request.url.path}")
        return httpx.Response(204)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client)
        assert await client.delete("favorites") is None

    assert methods == ["DELETE /lists/favorites"]


@pytest.mark.anyio("asyncio")
async def test_error_response_raises_api_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"error": "A list with that name already exists"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client)
        with pytest.raises(ApiError) as excinfo:
            await client.create("Favorites")

    assert excinfo.value.status == 409
    assert excinfo.value.message == "A list with that name already exists"


@pytest.mark.anyio("asyncio")
async def test_malformed_list_raises_api_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "missing slug and id"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client)
        with pytest.raises(ApiError):
            await client.update("favorites", "Faves")


@pytest.mark.anyio("asyncio")
async def test_slugs_are_escaped_in_paths() -> None:
    paths: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.raw_path)
        if request.method == "DELETE" and b"/items/" not in request.url.raw_path:
            return httpx.Response(204)
        return httpx.Response(200, json=FAVORITES)

    fight_club = ListItem(tmdb_id=550, type="movie", title="Fight Club")
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://api.example.com") as http_client:
        client = ListsApiClient(http_client)
        await client.update("a/b c?", "Renamed")
        await client.add_item("a/b c?", fight_club)
        await client.remove_item("a/b c?", fight_club)
        await client.delete("a/b c?")

    assert paths == [
        b"/lists/a%2Fb%20c%3F",
        b"/lists/a%2Fb%20c%3F/items",
        b"/lists/a%2Fb%20c%3F/items/movie/550",
        b"/lists/a%2Fb%20c%3F",
    ]
