"""Sequences recap fetches and generations against the store.

Every fetch, generate or delete is tagged with a per-date sequence number.
When it settles, its result reaches the store only if that number is still
the latest one issued for the current subject date. Superseded operations
are not aborted; their results are dropped.

All engine methods must run on one event loop. Between two ``await`` points
nothing else touches the store, so no locking is needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as _date
from typing import Callable

from dayrecap.recap.errors import PreconditionError, ServiceError
from dayrecap.recap.models import Recap, day_key
from dayrecap.recap.service import RecapService
from dayrecap.recap.store import RecapStore

logger = logging.getLogger("dayrecap.sync")

LOAD_FAILED = "Failed to load daily recap"
GENERATE_FAILED = "Failed to generate recap"
DELETE_FAILED = "Failed to delete recap"
SAVE_FAILED = "Failed to save recap preferences"


@dataclass(frozen=True)
class RequestToken:
    date: str
    seq: int


class SyncEngine:
    def __init__(
        self,
        store: RecapStore,
        service: RecapService,
        *,
        close_settings: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._service = service
        self._close_settings = close_settings
        self._subject: str | None = None
        # Latest sequence number issued per date. Never reset, so returning to a
        # date always issues numbers above any still-outstanding request for it.
        self._issued: dict[str, int] = {}

    @property
    def subject(self) -> str | None:
        """The date currently on screen, or None before the first load."""
        return self._subject

    def is_current(self, token: RequestToken) -> bool:
        return token.date == self._subject and self._issued.get(token.date) == token.seq

    def _issue(self, date: str) -> RequestToken:
        seq = self._issued.get(date, 0) + 1
        self._issued[date] = seq
        return RequestToken(date, seq)

    def _require_subject(self) -> str:
        if self._subject is None:
            raise PreconditionError("No recap date selected")
        return self._subject

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load(self, date: _date | str) -> bool:
        """Make ``date`` the subject and fetch its recap."""
        key = day_key(date)
        with self._store.batch():
            if key != self._subject:
                if self._subject is not None:
                    logger.info("Recap subject changed %s -> %s", self._subject, key)
                self._subject = key
                self._store.set_current_recap(None)
                self._store.set_is_expanded(False)
            token = self._issue(key)
            self._store.set_error(None)
            self._store.set_is_loading(True)

        try:
            recap = await self._service.fetch(key)
            if recap is not None:
                _check_date(recap, key)
        except ServiceError as exc:
            return self._fail(token, "fetch", exc, LOAD_FAILED)

        if not self._accept(token, "fetch"):
            return False
        with self._store.batch():
            self._store.set_current_recap(recap)
            if recap is not None:
                self._store.set_is_expanded(True)
            self._store.set_is_loading(False)
        return True

    async def generate(self) -> bool:
        """Regenerate the recap for the subject date, superseding any pending request."""
        key = self._require_subject()
        if self._close_settings is not None:
            self._close_settings()
        with self._store.batch():
            token = self._issue(key)
            self._store.set_error(None)
            self._store.set_is_loading(True)

        try:
            recap = await self._service.generate(key)
            if recap is None:
                raise ServiceError("Recap service returned no recap")
            _check_date(recap, key)
        except ServiceError as exc:
            return self._fail(token, "generate", exc, GENERATE_FAILED)

        if not self._accept(token, "generate"):
            return False
        with self._store.batch():
            self._store.set_current_recap(recap)
            self._store.set_is_expanded(True)
            self._store.set_is_loading(False)
        return True

    async def delete(self) -> bool:
        """Delete the subject date's recap on the service and clear it locally."""
        key = self._require_subject()
        with self._store.batch():
            token = self._issue(key)
            self._store.set_error(None)
            self._store.set_is_loading(True)

        try:
            await self._service.delete(key)
        except ServiceError as exc:
            return self._fail(token, "delete", exc, DELETE_FAILED)

        if not self._accept(token, "delete"):
            return False
        with self._store.batch():
            self._store.set_current_recap(None)
            self._store.set_is_expanded(False)
            self._store.set_is_loading(False)
        return True

    async def save_preferences(self) -> bool:
        """Push the current recap's preferences to the service.

        Issues no sequence number: saving never supersedes a pending fetch
        or generate, and never writes the current recap.
        """
        recap = self._store.current_recap
        if recap is None:
            raise PreconditionError("Cannot save preferences without a current recap")
        try:
            await self._service.update_preferences(recap.date, recap.user_preferences)
        except ServiceError as exc:
            if recap.date != self._subject:
                logger.debug("Ignoring preference save failure for %s, subject is now %s", recap.date, self._subject)
                return False
            logger.warning("Saving preferences for %s failed: %s", recap.date, exc)
            self._store.set_error(str(exc) or SAVE_FAILED)
            return False
        logger.info("Saved recap preferences for %s", recap.date)
        return True

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _accept(self, token: RequestToken, operation: str) -> bool:
        if self.is_current(token):
            return True
        logger.debug(
            "Discarding stale %s result for %s (#%d, latest #%s, subject %s)",
            operation, token.date, token.seq, self._issued.get(token.date), self._subject,
        )
        return False

    def _fail(self, token: RequestToken, operation: str, exc: ServiceError, fallback: str) -> bool:
        if not self._accept(token, operation):
            return False
        logger.warning("Recap %s for %s failed: %s", operation, token.date, exc)
        with self._store.batch():
            self._store.set_error(str(exc) or fallback)
            self._store.set_is_loading(False)
        return False


def _check_date(recap: Recap, key: str) -> None:
    if recap.date != key:
        raise ServiceError(f"Recap service returned a recap for {recap.date}, expected {key}")
