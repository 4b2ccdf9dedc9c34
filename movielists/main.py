"""FastAPI application serving the server-rendered state of each page."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Awaitable, Callable

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from .auth import LANDING_ROUTE, AuthGate
from .config import Settings, settings
from .envelope import ResultEnvelope
from .errors import ApiError
from .formatting import format_cast, format_movie, format_person, format_person_credits, format_tv_show
from .models import ListItem, ResultPage, SearchIntent
from .search import SearchOrchestrator, fetch_intent
from .services.auth_api import AuthApiClient
from .services.lists_api import ListsApiClient
from .services.tmdb import TMDBClient
from .session import ClientSession

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


def _build_lifespan(
    app_settings: Settings, transport: httpx.AsyncBaseTransport | None
):
    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        exit_stack = AsyncExitStack()
        timeout = httpx.Timeout(app_settings.http_timeout_seconds, connect=5.0)
        client_kwargs: dict[str, Any] = {"timeout": timeout}
        if transport is not None:
            client_kwargs["transport"] = transport

        tmdb_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(base_url=app_settings.tmdb_base_url, **client_kwargs)
        )
        account_http = await exit_stack.enter_async_context(
            httpx.AsyncClient(base_url=app_settings.lists_base_url, **client_kwargs)
        )

        fastapi_app.state.tmdb = TMDBClient(app_settings, tmdb_http)
        fastapi_app.state.lists_api = ListsApiClient(account_http)
        fastapi_app.state.auth_api = AuthApiClient(
            account_http, app_settings.auth_cookie_name
        )

        try:
            yield
        finally:  # pragma: no cover - teardown path exercised at runtime
            await exit_stack.aclose()

    return lifespan


def create_app(
    app_settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    resolved_settings = app_settings or settings
    fastapi_app = FastAPI(
        title=resolved_settings.app_name,
        description="Movie, TV and person search with user-curated lists",
        version="1.0.0",
        lifespan=_build_lifespan(resolved_settings, transport),
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    fastapi_app.state.settings = resolved_settings
    register_routes(fastapi_app)
    return fastapi_app


def get_tmdb(fastapi_app: FastAPI) -> TMDBClient:
    client = getattr(fastapi_app.state, "tmdb", None)
    if not isinstance(client, TMDBClient):
        raise RuntimeError("TMDB client not initialised")
    return client


def _redirect_home() -> RedirectResponse:
    return RedirectResponse(LANDING_ROUTE, status_code=307)


def _parse_id(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def register_routes(fastapi_app: FastAPI) -> None:
    def _session(request: Request) -> ClientSession:
        cookie = request.headers.get("cookie")
        return ClientSession(
            fastapi_app.state.auth_api,
            fastapi_app.state.lists_api.with_cookie(cookie),
        )

    async def _current_user(request: Request) -> dict[str, Any]:
        gate = AuthGate(fastapi_app.state.auth_api)
        user = await gate.refresh(request.headers.get("cookie"))
        return user.model_dump(mode="json")

    async def _detail_page(
        request: Request,
        raw_id: str,
        fetch: Callable[[int], Awaitable[dict[str, Any]]],
        fetch_credits: Callable[[int], Awaitable[dict[str, Any]]],
        format_record: Callable[[dict[str, Any]], ListItem | None],
        format_credits: Callable[[dict[str, Any]], list[ListItem]],
        credits_key: str,
    ) -> Any:
        record_id = _parse_id(raw_id)
        if record_id is None:
            return _redirect_home()
        try:
            record = await fetch(record_id)
        except ApiError as exc:
            logger.info("Detail lookup for %s failed (%s); redirecting", raw_id, exc.message)
            return _redirect_home()
        item = format_record(record)
        if item is None:
            return _redirect_home()

        credits: list[ListItem] | None
        try:
            credits = format_credits(await fetch_credits(record_id))
        except ApiError as exc:
            logger.warning("Credits lookup for %s failed: %s", record_id, exc.message)
            credits = None

        return {
            "user": await _current_user(request),
            "item": item.to_payload(),
            "details": record,
            credits_key: [entry.to_payload() for entry in credits] if credits is not None else None,
        }

    def _cast_formatter(payload: dict[str, Any]) -> list[ListItem]:
        limit = fastapi_app.state.settings.cast_preview_count
        return format_cast(payload.get("cast") or [], limit=limit)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/")
    async def index(request: Request) -> dict[str, Any]:
        tmdb = get_tmdb(fastapi_app)
        intent = SearchIntent.from_query_params(request.query_params)
        envelope: ResultEnvelope[ResultPage]
        try:
            page, formatted = await fetch_intent(tmdb, intent)
            envelope = ResultEnvelope.resolved(page)
        except ApiError as exc:
            envelope = ResultEnvelope.rejected(exc)
            formatted = []

        orchestrator = SearchOrchestrator(tmdb)
        orchestrator.hydrate(intent, envelope, formatted)
        return {"user": await _current_user(request), **orchestrator.props()}

    @fastapi_app.get("/lists")
    async def lists_page(request: Request) -> Any:
        session = _session(request)
        await session.start(request.headers.get("cookie"))
        redirect = session.gate.guard(restricted=True)
        if redirect:
            return RedirectResponse(redirect, status_code=307)
        await session.lists.load()
        return {
            "user": session.gate.user.model_dump(mode="json"),
            "lists": [entry.model_dump(mode="json", by_alias=True) for entry in session.lists.lists],
        }

    @fastapi_app.get("/signin")
    async def signin_page(request: Request) -> Any:
        gate = AuthGate(fastapi_app.state.auth_api)
        user = await gate.refresh(request.headers.get("cookie"))
        redirect = gate.guard(restricted=False)
        if redirect:
            return RedirectResponse(redirect, status_code=307)
        return {"user": user.model_dump(mode="json")}

    @fastapi_app.get("/movie/{movie_id}")
    async def movie_page(request: Request, movie_id: str) -> Any:
        tmdb = get_tmdb(fastapi_app)
        return await _detail_page(
            request,
            movie_id,
            tmdb.get_movie,
            tmdb.get_movie_credits,
            format_movie,
            _cast_formatter,
            "cast",
        )

    @fastapi_app.get("/tv/{tv_id}")
    async def tv_page(request: Request, tv_id: str) -> Any:
        tmdb = get_tmdb(fastapi_app)
        return await _detail_page(
            request,
            tv_id,
            tmdb.get_tv,
            tmdb.get_tv_credits,
            format_tv_show,
            _cast_formatter,
            "cast",
        )

    @fastapi_app.get("/person/{person_id}")
    async def person_page(request: Request, person_id: str) -> Any:
        tmdb = get_tmdb(fastapi_app)
        return await _detail_page(
            request,
            person_id,
            tmdb.get_person,
            tmdb.get_person_credits,
            format_person,
            format_person_credits,
            "credits",
        )


app = create_app()
