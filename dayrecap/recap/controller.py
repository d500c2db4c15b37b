"""Hook surface for whatever renders the Daily Recap.

A view mounts the controller for a date, renders ``snapshot()`` plus
``show_settings``, and forwards user actions to the ``on_*`` hooks. Async
hooks schedule their work on the running event loop and return the task.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date as _date
from typing import Any, Coroutine

from dayrecap.recap.models import Recap
from dayrecap.recap.mutator import PreferenceEdit, PreferenceMutator
from dayrecap.recap.service import RecapService
from dayrecap.recap.store import RecapSnapshot, RecapStore
from dayrecap.recap.sync import SyncEngine

logger = logging.getLogger("dayrecap.controller")


class RecapController:
    def __init__(self, service: RecapService, store: RecapStore | None = None) -> None:
        self.store = store or RecapStore()
        self.engine = SyncEngine(self.store, service, close_settings=self.close_settings)
        self.mutator = PreferenceMutator(self.store)
        self._show_settings = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def show_settings(self) -> bool:
        """Settings are only shown while there is a recap to edit."""
        return self._show_settings and self.store.current_recap is not None

    def snapshot(self) -> RecapSnapshot:
        return self.store.snapshot()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def mount(self, date: _date | str) -> asyncio.Task[bool]:
        """Show ``date``: fetch its recap, superseding anything still pending."""
        return self._spawn(self.engine.load(date))

    def on_generate_requested(self) -> asyncio.Task[bool]:
        return self._spawn(self.engine.generate())

    def on_delete_requested(self) -> asyncio.Task[bool]:
        return self._spawn(self.engine.delete())

    def on_save_preferences(self) -> asyncio.Task[bool]:
        return self._spawn(self.engine.save_preferences())

    def on_toggle_settings_view(self) -> bool:
        if self.store.current_recap is None:
            self._show_settings = False
        else:
            self._show_settings = not self._show_settings
        return self.show_settings

    def close_settings(self) -> None:
        self._show_settings = False

    def on_toggle_expanded(self) -> bool:
        self.store.set_is_expanded(not self.store.is_expanded)
        return self.store.is_expanded

    def on_preference_edit(self, edit: PreferenceEdit) -> Recap | None:
        if self.store.current_recap is None:
            logger.warning("Ignoring preference edit %r: no recap loaded", edit)
            return None
        return self.mutator.apply(edit)

    # ------------------------------------------------------------------
    # Task bookkeeping
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, bool]) -> asyncio.Task[bool]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled operation has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Cancel outstanding operations. Their results would be discarded anyway."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
