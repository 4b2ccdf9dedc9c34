"""Client for the search and detail endpoints of The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import ApiError
from ..models import ResultPage

logger = logging.getLogger(__name__)


class TMDBClient:
    """Thin async wrapper around the TMDB v3 API.

    Every method raises :class:`ApiError` when TMDB cannot be reached or
    answers with a non-success status.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def search_multi(self, query: str, page: int = 1) -> ResultPage:
        return await self._search("/search/multi", query, page)

    async def search_movie(self, query: str, page: int = 1) -> ResultPage:
        return await self._search("/search/movie", query, page)

    async def search_tv(self, query: str, page: int = 1) -> ResultPage:
        return await self._search("/search/tv", query, page)

    async def search_person(self, query: str, page: int = 1) -> ResultPage:
        return await self._search("/search/person", query, page)

    async def trending(self) -> ResultPage:
        """Return today's (or this week's) trending titles and people."""

        payload = await self._get(f"/trending/all/{self._settings.trending_window}")
        return self._page(payload)

    async def get_movie(self, movie_id: int) -> dict[str, Any]:
        return await self._get(f"/movie/{movie_id}")

    async def get_movie_credits(self, movie_id: int) -> dict[str, Any]:
        return await self._get(f"/movie/{movie_id}/credits")

    async def get_tv(self, tv_id: int) -> dict[str, Any]:
        return await self._get(f"/tv/{tv_id}")

    async def get_tv_credits(self, tv_id: int) -> dict[str, Any]:
        return await self._get(f"/tv/{tv_id}/credits")

    async def get_person(self, person_id: int) -> dict[str, Any]:
        return await self._get(f"/person/{person_id}")

    async def get_person_credits(self, person_id: int) -> dict[str, Any]:
        return await self._get(f"/person/{person_id}/combined_credits")

    async def _search(self, endpoint: str, query: str, page: int) -> ResultPage:
        payload = await self._get(
            endpoint,
            {"query": query, "page": max(int(page), 1), "include_adult": "false"},
        )
        return self._page(payload)

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "language": self._settings.tmdb_language,
            "api_key": self._settings.tmdb_api_key,
        }
        if params:
            request_params.update(params)

        try:
            response = await self._client.get(endpoint, params=request_params)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", endpoint, exc)
            raise ApiError.from_exception(exc) from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                endpoint,
                response.status_code,
                response.text[:200],
            )
            raise ApiError.from_response(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, "Unexpected non-JSON TMDB response") from exc
        if not isinstance(data, dict):
            raise ApiError(response.status_code, "Unexpected TMDB response structure")
        return data

    @staticmethod
    def _page(payload: dict[str, Any]) -> ResultPage:
        results = payload.get("results")
        if not isinstance(results, list):
            results = []
        return ResultPage.model_validate(
            {
                "results": [entry for entry in results if isinstance(entry, dict)],
                "page": payload.get("page") or 1,
                "total_pages": payload.get("total_pages") or 1,
                "total_results": payload.get("total_results") or 0,
            }
        )
