"""Local preference edits applied to the current recap.

Edits are synchronous and independent of network state: they never touch
the sync engine's request bookkeeping, they only replace the current recap
in the store with a copy whose preferences changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from dayrecap.recap.errors import PreconditionError
from dayrecap.recap.models import CoachingStyle, Recap, RecapPreferences
from dayrecap.recap.store import RecapStore

logger = logging.getLogger("dayrecap.mutator")


@dataclass(frozen=True)
class SetCoachingStyle:
    style: CoachingStyle


@dataclass(frozen=True)
class ToggleSection:
    key: str


@dataclass(frozen=True)
class ToggleAutoGenerate:
    pass


PreferenceEdit = Union[SetCoachingStyle, ToggleSection, ToggleAutoGenerate]


class PreferenceMutator:
    def __init__(self, store: RecapStore) -> None:
        self._store = store

    def set_coaching_style(self, style: CoachingStyle | str) -> Recap:
        return self._update(lambda prefs: prefs.with_coaching_style(style))

    def toggle_section(self, key: str) -> Recap:
        return self._update(lambda prefs: prefs.with_section_toggled(key))

    def toggle_auto_generate(self) -> Recap:
        return self._update(lambda prefs: prefs.with_auto_generate(not prefs.auto_generate))

    def apply(self, edit: PreferenceEdit) -> Recap:
        """Dispatch one edit intent. Returns the recap written to the store."""
        if isinstance(edit, SetCoachingStyle):
            return self.set_coaching_style(edit.style)
        if isinstance(edit, ToggleSection):
            return self.toggle_section(edit.key)
        if isinstance(edit, ToggleAutoGenerate):
            return self.toggle_auto_generate()
        raise TypeError(f"Unsupported preference edit: {edit!r}")

    def _update(self, change) -> Recap:
        recap = self._store.current_recap
        if recap is None:
            raise PreconditionError("Cannot edit recap preferences without a current recap")
        prefs: RecapPreferences = change(recap.user_preferences)
        updated = recap.with_preferences(prefs)
        self._store.set_current_recap(updated)
        logger.debug("Updated preferences for %s: %s", recap.date, prefs.to_dict())
        return updated
