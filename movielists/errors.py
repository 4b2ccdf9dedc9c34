"""Failure types shared by the remote clients and the client-side stores."""

from __future__ import annotations

from typing import Any

import httpx


class ApiError(Exception):
    """A collaborator call that did not succeed.

    ``status`` is the HTTP status of the upstream response, or ``None`` when
    the request never produced one (DNS failure, timeout, refused connection).
    """

    def __init__(self, status: int | None, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build the error matching a non-success upstream response."""

        message = _extract_message(response) or response.reason_phrase or "Request failed"
        error_cls = NotFoundError if response.status_code == 404 else cls
        return error_cls(response.status_code, message)

    @classmethod
    def from_exception(cls, exc: httpx.HTTPError) -> "ApiError":
        return cls(None, f"{exc.__class__.__name__}: {exc}" if str(exc) else exc.__class__.__name__)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status!r}, message={self.message!r})"


class NotFoundError(ApiError):
    """The requested catalog record or list does not exist."""


class ListBusyError(RuntimeError):
    """A mutation for this list is still awaiting remote confirmation."""

    def __init__(self, slug: str):
        super().__init__(f"A change to list '{slug}' is already in progress")
        self.slug = slug


class UnknownListError(KeyError):
    """The store holds no list with the given slug."""


def _extract_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None
    if isinstance(payload, dict):
        for key in ("message", "error", "status_message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None
