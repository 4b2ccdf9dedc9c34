"""Lifecycle wrapper for the result of one asynchronous operation."""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar

from .errors import ApiError

T = TypeVar("T")

EnvelopeStatus = Literal["idle", "pending", "resolved", "rejected"]


class ResultEnvelope(Generic[T]):
    """Idle, pending, resolved or rejected state of an async result.

    Every :meth:`begin` hands out a generation token. :meth:`succeed` and
    :meth:`fail` only apply when called with the token of the most recent
    ``begin``; anything older is a superseded result and is ignored.
    """

    __slots__ = ("_status", "_data", "_error", "_generation")

    def __init__(self) -> None:
        self._status: EnvelopeStatus = "idle"
        self._data: T | None = None
        self._error: ApiError | None = None
        self._generation = 0

    @classmethod
    def resolved(cls, data: T) -> "ResultEnvelope[T]":
        """Return an envelope already holding a server-computed result."""

        envelope: ResultEnvelope[T] = cls()
        envelope.succeed(data, envelope.begin())
        return envelope

    @classmethod
    def rejected(cls, error: ApiError) -> "ResultEnvelope[T]":
        envelope: ResultEnvelope[T] = cls()
        envelope.fail(error, envelope.begin())
        return envelope

    @property
    def status(self) -> EnvelopeStatus:
        return self._status

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def error(self) -> ApiError | None:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_pending(self) -> bool:
        return self._status == "pending"

    @property
    def is_resolved(self) -> bool:
        return self._status == "resolved"

    @property
    def is_rejected(self) -> bool:
        return self._status == "rejected"

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def begin(self) -> int:
        """Move to pending, dropping previous data and error."""

        self._generation += 1
        self._status = "pending"
        self._data = None
        self._error = None
        return self._generation

    def succeed(self, data: T, generation: int) -> bool:
        """Resolve with ``data``; returns ``False`` if the token is stale."""

        if not self._accepts(generation):
            return False
        self._status = "resolved"
        self._data = data
        return True

    def fail(self, error: ApiError, generation: int) -> bool:
        """Reject with ``error``; returns ``False`` if the token is stale."""

        if not self._accepts(generation):
            return False
        self._status = "rejected"
        self._error = error
        return True

    def _accepts(self, generation: int) -> bool:
        return self._status == "pending" and generation == self._generation

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self._status}
        if self._status == "resolved":
            data = self._data
            if hasattr(data, "model_dump"):
                data = data.model_dump(mode="json")  # type: ignore[union-attr]
            payload["data"] = data
        elif self._status == "rejected" and self._error is not None:
            payload["error"] = self._error.to_dict()
        return payload

    def __repr__(self) -> str:
        return f"ResultEnvelope(status={self._status!r}, generation={self._generation})"
