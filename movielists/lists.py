"""Session-wide store of the signed-in user's lists."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Protocol, Sequence, Union

from .errors import ApiError, ListBusyError, UnknownListError
from .models import ListItem, UserList

logger = logging.getLogger(__name__)


class ListsApi(Protocol):
    async def get_all(self, cookie: str | None = None) -> list[UserList]: ...

    async def create(self, name: str) -> UserList: ...

    async def update(self, slug: str, name: str) -> UserList: ...

    async def delete(self, slug: str) -> None: ...

    async def add_item(self, slug: str, item: ListItem) -> UserList: ...

    async def remove_item(self, slug: str, item: ListItem) -> UserList: ...


@dataclass(frozen=True, slots=True)
class Seed:
    lists: tuple[UserList, ...]


@dataclass(frozen=True, slots=True)
class Create:
    list: UserList


@dataclass(frozen=True, slots=True)
class Rename:
    slug: str
    list: UserList


@dataclass(frozen=True, slots=True)
class Remove:
    slug: str


@dataclass(frozen=True, slots=True)
class AddItem:
    slug: str
    list: UserList


@dataclass(frozen=True, slots=True)
class RemoveItem:
    slug: str
    list: UserList


ListCommand = Union[Seed, Create, Rename, Remove, AddItem, RemoveItem]


def _replace(
    lists: tuple[UserList, ...], slug: str, replacement: UserList
) -> tuple[UserList, ...]:
    return tuple(replacement if entry.slug == slug else entry for entry in lists)


def reduce(
    lists: tuple[UserList, ...] | None, command: ListCommand
) -> tuple[UserList, ...] | None:
    """Apply one server-confirmed command to the store contents.

    ``None`` means the store has not been seeded yet. Commands carry the
    payload the remote API returned, never a locally guessed one.
    """

    if isinstance(command, Seed):
        if lists is not None:
            return lists
        return tuple(command.lists)

    current = lists or ()
    if isinstance(command, Create):
        existing = {entry.slug for entry in current}
        if command.list.slug in existing:
            return _replace(current, command.list.slug, command.list)
        return current + (command.list,)
    if isinstance(command, Rename):
        return _replace(current, command.slug, command.list)
    if isinstance(command, Remove):
        return tuple(entry for entry in current if entry.slug != command.slug)
    if isinstance(command, (AddItem, RemoveItem)):
        return tuple(
            entry.model_copy(update={"items": list(command.list.items)})
            if entry.slug == command.slug
            else entry
            for entry in current
        )
    raise TypeError(f"Unsupported list command: {command!r}")


class ListStore:
    """Single source of truth for the user's lists during a session.

    Every mutation awaits the remote API first and only then updates the
    store. A failed call leaves the store exactly as it was and re-raises the
    :class:`ApiError` for the caller to display. Calls that complete after
    :meth:`reset` are returned to the caller but never applied.
    """

    def __init__(self, api: ListsApi):
        self._api = api
        self._lists: tuple[UserList, ...] | None = None
        self._busy: set[str] = set()
        self._epoch = 0

    @property
    def lists(self) -> list[UserList]:
        return list(self._lists or ())

    @property
    def is_seeded(self) -> bool:
        return self._lists is not None

    def get(self, slug: str) -> UserList | None:
        for entry in self._lists or ():
            if entry.slug == slug:
                return entry
        return None

    def is_busy(self, slug: str) -> bool:
        return slug in self._busy

    def dispatch(self, command: ListCommand) -> None:
        self._lists = reduce(self._lists, command)

    def seed(self, lists: Sequence[UserList]) -> bool:
        """Install server-rendered lists unless the store was already seeded."""

        if self.is_seeded:
            logger.debug("Ignoring seed; store already holds %s lists", len(self._lists or ()))
            return False
        self.dispatch(Seed(tuple(lists)))
        return True

    async def load(self, cookie: str | None = None) -> bool:
        """Seed from the remote API; an unreachable API seeds nothing."""

        epoch = self._epoch
        try:
            lists = await self._api.get_all(cookie)
        except ApiError as exc:
            logger.warning("Could not load lists: %s", exc.message)
            return False
        if epoch != self._epoch:
            logger.debug("Discarding lists loaded before reset")
            return False
        return self.seed(lists)

    def reset(self) -> None:
        self._lists = None
        self._busy.clear()
        self._epoch += 1

    async def create(self, name: str) -> UserList:
        epoch = self._epoch
        created = await self._api.create(name)
        if self._apply(Create(created), epoch):
            logger.info("Created list %s", created.slug)
        return created

    async def rename(self, slug: str, name: str) -> UserList:
        self._require(slug)
        epoch = self._epoch
        with self._mutating(slug):
            updated = await self._api.update(slug, name)
        if self._apply(Rename(slug, updated), epoch):
            logger.info("Renamed list %s", slug)
        return updated

    async def remove(self, slug: str) -> None:
        self._require(slug)
        epoch = self._epoch
        with self._mutating(slug):
            await self._api.delete(slug)
        if self._apply(Remove(slug), epoch):
            logger.info("Removed list %s", slug)

    async def add_item(self, slug: str, item: ListItem) -> UserList:
        self._require(slug)
        epoch = self._epoch
        with self._mutating(slug):
            confirmed = await self._api.add_item(slug, item)
        if self._apply(AddItem(slug, confirmed), epoch):
            return self.get(slug) or confirmed
        return confirmed

    async def remove_item(self, slug: str, item: ListItem) -> UserList:
        self._require(slug)
        epoch = self._epoch
        with self._mutating(slug):
            confirmed = await self._api.remove_item(slug, item)
        if self._apply(RemoveItem(slug, confirmed), epoch):
            return self.get(slug) or confirmed
        return confirmed

    def _apply(self, command: ListCommand, epoch: int) -> bool:
        if epoch != self._epoch:
            logger.debug("Discarding %s confirmed after reset", type(command).__name__)
            return False
        self.dispatch(command)
        return True

    def _require(self, slug: str) -> None:
        if self.get(slug) is None:
            raise UnknownListError(slug)

    @contextmanager
    def _mutating(self, slug: str) -> Iterator[None]:
        if slug in self._busy:
            raise ListBusyError(slug)
        self._busy.add(slug)
        epoch = self._epoch
        try:
            yield
        finally:
            if epoch == self._epoch:
                self._busy.discard(slug)
