"""In-memory state holder for the Daily Recap view.

The store is a plain container: it does not validate recaps and has no
notion of request ordering. Writers are the sync engine and the preference
mutator; everything else reads snapshots.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from dayrecap.recap.models import Recap

logger = logging.getLogger("dayrecap.store")

Listener = Callable[["RecapSnapshot"], None]


@dataclass(frozen=True)
class RecapSnapshot:
    current_recap: Recap | None = None
    is_loading: bool = False
    error: str | None = None
    is_expanded: bool = False

    @property
    def status(self) -> str:
        """'error', 'loading', 'empty' or 'ready', in that precedence."""
        if self.error:
            return "error"
        if self.is_loading:
            return "loading"
        if self.current_recap is None:
            return "empty"
        return "ready"


class RecapStore:
    """Single authoritative holder of the recap view state."""

    def __init__(self) -> None:
        self._current_recap: Recap | None = None
        self._is_loading = False
        self._error: str | None = None
        self._is_expanded = False
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._dirty = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def current_recap(self) -> Recap | None:
        return self._current_recap

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_expanded(self) -> bool:
        return self._is_expanded

    def snapshot(self) -> RecapSnapshot:
        return RecapSnapshot(
            current_recap=self._current_recap,
            is_loading=self._is_loading,
            error=self._error,
            is_expanded=self._is_expanded,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_current_recap(self, recap: Recap | None) -> None:
        self._current_recap = recap
        self._changed()

    def set_is_loading(self, loading: bool) -> None:
        self._is_loading = bool(loading)
        self._changed()

    def set_error(self, error: str | None) -> None:
        self._error = error
        self._changed()

    def set_is_expanded(self, expanded: bool) -> None:
        self._is_expanded = bool(expanded)
        self._changed()

    @contextmanager
    def batch(self) -> Iterator[RecapStore]:
        """Group several writes so listeners see one notification at the end."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._notify()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after each update."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        if self._batch_depth:
            self._dirty = True
            return
        self._notify()

    def _notify(self) -> None:
        self._dirty = False
        snap = self.snapshot()
        logger.debug(
            "Store updated: recap=%s loading=%s error=%r expanded=%s",
            snap.current_recap.date if snap.current_recap else None,
            snap.is_loading,
            snap.error,
            snap.is_expanded,
        )
        for listener in list(self._listeners):
            listener(snap)
