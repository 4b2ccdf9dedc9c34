"""The single add/remove-to-list modal shared by every page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from .auth import AuthGate
from .errors import ApiError, ListBusyError
from .lists import ListStore
from .models import ListItem, ListModalState, ModalMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Show:
    mode: ModalMode
    item: ListItem


@dataclass(frozen=True, slots=True)
class Hide:
    pass


ModalCommand = Union[Show, Hide]


def reduce_modal(state: ListModalState, command: ModalCommand) -> ListModalState:
    """Show replaces whatever is visible; there is no queue of modals."""

    if isinstance(command, Show):
        return ListModalState(visible=True, mode=command.mode, item=command.item)
    if isinstance(command, Hide):
        return ListModalState()
    raise TypeError(f"Unsupported modal command: {command!r}")


@dataclass(frozen=True, slots=True)
class ModalEntry:
    """One checkbox row of the modal."""

    slug: str
    name: str
    checked: bool
    busy: bool = False
    error: str | None = None


class ListModalController:
    """Lets the user add or remove one catalog item across their lists."""

    def __init__(self, store: ListStore, gate: AuthGate):
        self._store = store
        self._gate = gate
        self._state = ListModalState()
        self._errors: dict[str, str] = {}

    @property
    def state(self) -> ListModalState:
        return self._state

    @property
    def visible(self) -> bool:
        return self._state.visible

    @property
    def available(self) -> bool:
        """Lists only exist for signed-in users."""

        return self._gate.auth

    def dispatch(self, command: ModalCommand) -> None:
        self._state = reduce_modal(self._state, command)
        self._errors.clear()

    def show(self, mode: ModalMode, item: ListItem) -> None:
        self.dispatch(Show(mode, item))

    def show_add(self, item: ListItem) -> None:
        self.show("add", item)

    def show_remove(self, item: ListItem) -> None:
        self.show("remove", item)

    def hide(self) -> None:
        self.dispatch(Hide())

    def entries(self) -> list[ModalEntry]:
        item = self._state.item
        if not self._state.visible or item is None:
            return []
        return [
            ModalEntry(
                slug=entry.slug,
                name=entry.name,
                checked=entry.contains(item),
                busy=self._store.is_busy(entry.slug),
                error=self._errors.get(entry.slug),
            )
            for entry in self._store.lists
        ]

    async def toggle(self, slug: str) -> bool:
        """Flip membership of the shown item in one list.

        A failure is recorded against that list's row and the modal stays
        open, unless another item was shown meanwhile. Returns whether the
        change was confirmed.
        """

        state = self._state
        item = state.item
        if not state.visible or item is None:
            raise RuntimeError("The list modal is not open")
        if not self.available:
            self._errors[slug] = "Sign in to manage lists"
            return False
        target = self._store.get(slug)
        if target is None:
            self._errors[slug] = "List no longer exists"
            return False

        self._errors.pop(slug, None)
        try:
            if target.contains(item):
                await self._store.remove_item(slug, item)
            else:
                await self._store.add_item(slug, item)
        except (ApiError, ListBusyError) as exc:
            message = exc.message if isinstance(exc, ApiError) else str(exc)
            logger.warning("Updating list %s from the modal failed: %s", slug, message)
            if self._state is state:
                self._errors[slug] = message
            return False
        return True
