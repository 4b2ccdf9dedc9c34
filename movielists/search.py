"""Turn the current search intent into a single race-free result stream."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from .envelope import ResultEnvelope
from .errors import ApiError
from .formatting import SEARCH_FORMATTERS, format_search_all
from .models import Category, ListItem, Pagination, ResultPage, SearchIntent

logger = logging.getLogger(__name__)


class SearchClient(Protocol):
    async def search_multi(self, query: str, page: int = 1) -> ResultPage: ...

    async def search_movie(self, query: str, page: int = 1) -> ResultPage: ...

    async def search_tv(self, query: str, page: int = 1) -> ResultPage: ...

    async def search_person(self, query: str, page: int = 1) -> ResultPage: ...

    async def trending(self) -> ResultPage: ...


Formatter = Callable[[ResultPage], list[ListItem]]


def select_operation(
    client: SearchClient, intent: SearchIntent
) -> tuple[Callable[[], Awaitable[ResultPage]], Formatter]:
    """Return the remote call and formatter matching ``intent``.

    An empty query always browses trending titles; tab and page are ignored.
    """

    if intent.is_trending:
        return client.trending, format_search_all

    operations: dict[Category, Callable[[str, int], Awaitable[ResultPage]]] = {
        Category.ALL: client.search_multi,
        Category.MOVIE: client.search_movie,
        Category.TV: client.search_tv,
        Category.PERSON: client.search_person,
    }
    operation = operations[intent.tab]

    async def call() -> ResultPage:
        return await operation(intent.query, intent.page)

    return call, SEARCH_FORMATTERS[intent.tab]


async def fetch_intent(
    client: SearchClient, intent: SearchIntent
) -> tuple[ResultPage, list[ListItem]]:
    """Run the search for ``intent`` and format its results."""

    call, formatter = select_operation(client, intent)
    page = await call()
    return page, formatter(page)


class SearchOrchestrator:
    """Owns the result envelope for the search page.

    Each new intent bumps the envelope's generation before its request is
    issued. When a request completes, its outcome is applied only if no newer
    intent has been committed in the meantime; otherwise it is dropped.
    """

    def __init__(self, client: SearchClient):
        self._client = client
        self._intent: SearchIntent | None = None
        self._envelope: ResultEnvelope[ResultPage] = ResultEnvelope()
        self._formatted: list[ListItem] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self.scroll_to_results = False

    @property
    def intent(self) -> SearchIntent:
        return self._intent or SearchIntent()

    @property
    def envelope(self) -> ResultEnvelope[ResultPage]:
        return self._envelope

    @property
    def formatted_results(self) -> list[ListItem]:
        return list(self._formatted)

    def hydrate(
        self,
        intent: SearchIntent,
        envelope: ResultEnvelope[ResultPage],
        formatted: list[ListItem] | None = None,
    ) -> None:
        """Install the server-rendered first state without fetching."""

        self._intent = intent
        self._envelope = envelope
        self._formatted = list(formatted or [])
        self.scroll_to_results = False

    async def navigate(self, intent: SearchIntent) -> bool:
        """Commit ``intent`` and wait for its outcome.

        Returns ``False`` when ``intent`` equals the committed one and nothing
        was fetched.
        """

        generation = self._begin(intent)
        if generation is None:
            return False
        await self._complete(intent, generation)
        return True

    def schedule(self, intent: SearchIntent) -> asyncio.Task[None] | None:
        """Commit ``intent`` now and fetch it in the background.

        The envelope is pending by the time this returns.
        """

        generation = self._begin(intent)
        if generation is None:
            return None
        task = asyncio.get_running_loop().create_task(self._complete(intent, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def submit_search(self, query: str) -> bool:
        return await self.navigate(self.intent.submit(query))

    async def change_tab(self, tab: Category | str) -> bool:
        return await self.navigate(self.intent.with_tab(tab))

    async def change_page(self, page: int) -> bool:
        return await self.navigate(self.intent.with_page(page))

    def _begin(self, intent: SearchIntent) -> int | None:
        if intent == self._intent:
            return None
        previous_query = self._intent.query if self._intent is not None else ""
        self._intent = intent
        self.scroll_to_results = not intent.is_trending and intent.query != previous_query
        return self._envelope.begin()

    async def _complete(self, intent: SearchIntent, generation: int) -> None:
        call, formatter = select_operation(self._client, intent)
        try:
            page = await call()
        except ApiError as exc:
            self._reject(intent, generation, exc)
            return
        except Exception as exc:
            logger.exception("Search for %r raised unexpectedly", intent)
            self._reject(intent, generation, ApiError(None, str(exc) or exc.__class__.__name__))
            return

        if not self._envelope.is_current(generation):
            logger.debug("Discarding superseded results for %r", intent)
            return
        formatted = formatter(page)
        if self._envelope.succeed(page, generation):
            self._formatted = formatted

    def _reject(self, intent: SearchIntent, generation: int, error: ApiError) -> None:
        if self._envelope.fail(error, generation):
            logger.warning("Search for %r failed: %s", intent, error.message)
            self._formatted = []
        else:
            logger.debug("Discarding superseded failure for %r", intent)

    def pagination(self) -> Pagination | None:
        """Pagination controls for the resolved page, if any apply."""

        page = self._envelope.data
        if self.intent.is_trending or not self._envelope.is_resolved or page is None:
            return None
        if page.total_pages <= 1:
            return None
        current = self.intent.page
        return Pagination(
            current_page=current,
            total_pages=page.total_pages,
            pages=[number for number in range(1, page.total_pages + 1) if number != current],
        )

    def props(self) -> dict[str, Any]:
        pagination = self.pagination()
        error = self._envelope.error if self._envelope.is_rejected else None
        return {
            "intent": self.intent.model_dump(mode="json"),
            "results": self._envelope.to_dict(),
            "formattedResults": [item.to_payload() for item in self._formatted],
            "error": error.to_dict() if error is not None else None,
            "pagination": pagination.model_dump() if pagination else None,
        }
