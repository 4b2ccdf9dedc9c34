"""Pytest configuration and test helpers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from movielists.errors import ApiError  # noqa: E402
from movielists.models import AuthUser, ListItem, User, UserList  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


class FakeListsApi:
    """In-memory account API that deduplicates membership like the server."""

    def __init__(self) -> None:
        self.lists: dict[str, UserList] = {}
        self.fail_next: ApiError | None = None
        self.gate: asyncio.Event | None = None
        self.next_id = 1

    async def _maybe_fail(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    async def get_all(self, cookie: str | None = None) -> list[UserList]:
        await self._maybe_fail()
        return list(self.lists.values())

    async def create(self, name: str) -> UserList:
        await self._maybe_fail()
        created = UserList(id=self.next_id, slug=name.lower().replace(" ", "-"), name=name)
        self.next_id += 1
        self.lists[created.slug] = created
        return created

    async def update(self, slug: str, name: str) -> UserList:
        await self._maybe_fail()
        updated = self.lists[slug].model_copy(update={"name": name})
        self.lists[slug] = updated
        return updated

    async def delete(self, slug: str) -> None:
        await self._maybe_fail()
        del self.lists[slug]

    async def add_item(self, slug: str, item: ListItem) -> UserList:
        await self._maybe_fail()
        current = self.lists[slug]
        if not current.contains(item):
            current = current.model_copy(update={"items": [*current.items, item]})
            self.lists[slug] = current
        return current

    async def remove_item(self, slug: str, item: ListItem) -> UserList:
        await self._maybe_fail()
        current = self.lists[slug]
        current = current.model_copy(
            update={"items": [entry for entry in current.items if entry.key != item.key]}
        )
        self.lists[slug] = current
        return current


class FakeAuthApi:
    """Auth collaborator returning a fixed user or failing on demand."""

    def __init__(self, user: AuthUser | None = None, error: ApiError | None = None) -> None:
        self.user = user or AuthUser.anonymous()
        self.error = error
        self.resolved: list[str | None] = []
        self.signed_out: list[str | None] = []

    async def resolve(self, credential: str | None) -> AuthUser:
        self.resolved.append(credential)
        if self.error is not None:
            raise self.error
        return self.user

    async def sign_out(self, credential: str | None) -> None:
        self.signed_out.append(credential)
        if self.error is not None:
            raise self.error


SIGNED_IN = AuthUser(auth=True, user=User(id=1, email="tyler@example.com", name="Tyler"))


@pytest.fixture
def make_lists_api():
    return FakeListsApi


@pytest.fixture
def lists_api() -> FakeListsApi:
    return FakeListsApi()


@pytest.fixture
def signed_in_auth_api() -> FakeAuthApi:
    return FakeAuthApi(SIGNED_IN)
