"""Tests for the server-rendered page endpoints."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

import httpx
from fastapi.testclient import TestClient

from movielists.config import Settings
from movielists.main import create_app

TMDB_HOST = "tmdb.example.com"
ACCOUNT_HOST = "account.example.com"

Handler = Callable[[httpx.Request], httpx.Response]


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        TMDB_API_KEY="tmdb-key",
        TMDB_API_URL=f"https://{TMDB_HOST}/3",
        LISTS_API_URL=f"https://{ACCOUNT_HOST}/api",
    )  # type: ignore[call-arg]


def _default_tmdb(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/3/trending/all/day":
        return httpx.Response(
            200,
            json={
                "page": 1,
                "total_pages": 1000,
                "results": [
                    {"id": 550, "media_type": "movie", "title": "Fight Club"},
                    {"id": 10, "media_type": "collection", "name": "Box set"},
                ],
            },
        )
    if path == "/3/search/movie":
        page = int(request.url.params["page"])
        return httpx.Response(
            200,
            json={
                "page": page,
                "total_pages": 5,
                "results": [{"id": 268 + page, "title": f"Batman {page}"}],
            },
        )
    if path == "/3/movie/550":
        return httpx.Response(200, json={"id": 550, "title": "Fight Club", "poster_path": "/fc.jpg"})
    if path == "/3/movie/550/credits":
        cast = [{"id": index, "name": f"Actor {index}", "character": "Someone"} for index in range(1, 15)]
        return httpx.Response(200, json={"cast": cast})
    if path == "/3/person/287":
        return httpx.Response(200, json={"id": 287, "name": "Brad Pitt"})
    if path == "/3/person/287/combined_credits":
        return httpx.Response(503, json={"status_message": "Service unavailable"})
    return httpx.Response(404, json={"status_message": "Not found"})


def _default_account(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    signed_in = "jwt=" in (request.headers.get("cookie") or "")
    if path == "/api/auth":
        if not signed_in:
            return httpx.Response(401, json={"message": "Unauthorised"})
        return httpx.Response(
            200,
            json={"auth": True, "user": {"id": 1, "email": "t@example.com", "name": "Tyler"}},
        )
    if path == "/api/lists":
        return httpx.Response(200, json=[{"id": 1, "slug": "favorites", "name": "Favorites", "items": []}])
    return httpx.Response(404)


@contextmanager
def _client(tmdb: Handler = _default_tmdb, account: Handler = _default_account) -> Iterator[TestClient]:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == TMDB_HOST:
            return tmdb(request)
        return account(request)

    app = create_app(_settings(), transport=httpx.MockTransport(handler))
    with TestClient(app, follow_redirects=False) as client:
        yield client


def test_healthcheck() -> None:
    with _client() as client:
        assert client.get("/healthz").json() == {"status": "ok"}


def test_index_without_query_renders_trending() -> None:
    with _client() as client:
        response = client.get("/", params={"tab": "person", "page": "3"})

    payload = response.json()
    assert response.status_code == 200
    assert payload["user"] == {"auth": False, "user": None}
    assert payload["results"]["status"] == "resolved"
    assert payload["formattedResults"] == [{"tmdbId": 550, "type": "movie", "title": "Fight Club"}]
    assert payload["pagination"] is None
    assert payload["error"] is None


def test_index_search_includes_pagination() -> None:
    with _client() as client:
        payload = client.get("/", params={"search": "batman", "tab": "movie", "page": "2"}).json()

    assert payload["intent"] == {"query": "batman", "tab": "movie", "page": 2}
    assert payload["formattedResults"][0]["title"] == "Batman 2"
    assert payload["pagination"]["pages"] == [1, 3, 4, 5]


def test_index_upstream_failure_is_inline_error() -> None:
    def failing(_: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"status_message": "Internal error"})

    with _client(tmdb=failing) as client:
        response = client.get("/", params={"search": "batman"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["results"] == {
        "status": "rejected",
        "error": {"status": 500, "message": "Internal error"},
    }
    assert payload["formattedResults"] == []
    assert payload["error"] == {"status": 500, "message": "Internal error"}


def test_lists_page_redirects_anonymous_users() -> None:
    with _client() as client:
        response = client.get("/lists")

    assert response.status_code == 307
    assert response.headers["location"] == "/"


def test_lists_page_returns_lists_for_signed_in_user() -> None:
    with _client() as client:
        client.cookies.set("jwt", "token")
        payload = client.get("/lists").json()

    assert payload["user"]["auth"] is True
    assert [entry["slug"] for entry in payload["lists"]] == ["favorites"]


def test_signin_page_redirects_signed_in_user() -> None:
    with _client() as client:
        assert client.get("/signin").status_code == 200
        client.cookies.set("jwt", "token")
        assert client.get("/signin").status_code == 307


def test_movie_page_limits_cast() -> None:
    with _client() as client:
        payload = client.get("/movie/550").json()

    assert payload["item"] == {"tmdbId": 550, "type": "movie", "title": "Fight Club", "poster": "/fc.jpg"}
    assert len(payload["cast"]) == 8
    assert payload["cast"][0]["subTitle"] == "Someone"


def test_detail_pages_redirect_on_missing_records() -> None:
    with _client() as client:
        for path in ("/movie/abc", "/movie/0", "/tv/999", "/person/-1"):
            response = client.get(path)
            assert response.status_code == 307, path
            assert response.headers["location"] == "/"


def test_person_page_survives_credit_failure() -> None:
    with _client() as client:
        payload = client.get("/person/287").json()

    assert payload["item"]["title"] == "Brad Pitt"
    assert payload["credits"] is None
