"""Exceptions raised at the recap service and preference-editing boundaries."""

from __future__ import annotations


class RecapError(Exception):
    pass


class ServiceError(RecapError):
    """The recap service failed (network, auth, server-side or bad payload)."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PreconditionError(RecapError):
    """An operation was invoked without the state it requires, e.g. no current recap."""
