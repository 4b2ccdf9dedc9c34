"""Per-session context tying the auth flag, list store and modal together."""

from __future__ import annotations

import logging
from typing import Sequence

from .auth import AuthApi, AuthGate
from .lists import ListsApi, ListStore
from .modal import ListModalController
from .models import UserList

logger = logging.getLogger(__name__)


class ClientSession:
    """Explicit owner of the session-wide stores.

    Pages receive this object instead of reaching for globals; the modal and
    any page read the one :class:`ListStore` it holds.
    """

    def __init__(self, auth_api: AuthApi, lists_api: ListsApi):
        self.gate = AuthGate(auth_api)
        self.lists = ListStore(lists_api)
        self.modal = ListModalController(self.lists, self.gate)

    async def start(
        self, credential: str | None, lists: Sequence[UserList] | None = None
    ) -> None:
        """Resolve the user and seed the store with server-rendered lists."""

        await self.gate.refresh(credential)
        if not self.gate.auth:
            self.reset()
            return
        if lists is not None:
            self.lists.seed(lists)

    def reset(self) -> None:
        self.lists.reset()
        self.modal.hide()

    async def sign_out(self) -> None:
        try:
            await self.gate.sign_out()
        finally:
            self.reset()
            logger.info("Session signed out")
