"""Value types for a Daily Recap and its display/coaching preferences.

A ``Recap`` is produced by the recap service and never mutated in place.
Preference edits go through the ``with_*`` constructors, which return a new
value with exactly one field replaced.

Wire payloads use the camelCase keys of the recap API; attributes are
snake_case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date as _date
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger("dayrecap.models")

SECTION_KEYS: tuple[str, ...] = (
    "quote",
    "daySummary",
    "energyPatterns",
    "taskImpact",
    "coachInsights",
    "powerQuestions",
    "tomorrowFocus",
)

TIME_CATEGORIES: tuple[str, ...] = ("work", "personal", "health", "learning")

_LIST_INSIGHTS = {
    "energyPatterns": "energy_patterns",
    "taskImpact": "task_impact",
    "coachInsights": "coach_insights",
    "powerQuestions": "power_questions",
    "tomorrowFocus": "tomorrow_focus",
}


class CoachingStyle(str, Enum):
    MOTIVATIONAL = "motivational"
    ANALYTICAL = "analytical"
    SUPPORTIVE = "supportive"
    DIRECTIVE = "directive"


def day_key(value: _date | str) -> str:
    """Normalize a date or ``YYYY-MM-DD`` string into a DayKey."""
    if isinstance(value, _date):
        return value.isoformat()
    try:
        return _date.fromisoformat(str(value).strip()).isoformat()
    except ValueError:
        raise ValueError(f"Invalid day key {value!r}, expected YYYY-MM-DD") from None


def default_visible_sections() -> dict[str, bool]:
    return {key: True for key in SECTION_KEYS}


def _mapping(value: Any, name: str) -> Mapping[str, Any]:
    """Return a wire sub-object, treating null as empty; any other shape is a ValueError."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be an object, got {type(value).__name__}")
    return value


def _flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    return value


def _items(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{name} must be a list, got {type(value).__name__}")
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class RecapInsights:
    quote: str = ""
    day_summary: str = ""
    energy_patterns: tuple[str, ...] = ()
    task_impact: tuple[str, ...] = ()
    coach_insights: tuple[str, ...] = ()
    power_questions: tuple[str, ...] = ()
    tomorrow_focus: tuple[str, ...] = ()

    def section(self, key: str) -> str | tuple[str, ...]:
        """Return the content for a section key (``daySummary`` etc.)."""
        if key == "quote":
            return self.quote
        if key == "daySummary":
            return self.day_summary
        if key in _LIST_INSIGHTS:
            return getattr(self, _LIST_INSIGHTS[key])
        raise KeyError(key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RecapInsights:
        data = _mapping(data, "insights")
        lists = {
            attr: _items(data.get(key), key)
            for key, attr in _LIST_INSIGHTS.items()
        }
        return cls(
            quote=str(data.get("quote") or ""),
            day_summary=str(data.get("daySummary") or ""),
            **lists,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"quote": self.quote, "daySummary": self.day_summary}
        for key, attr in _LIST_INSIGHTS.items():
            out[key] = list(getattr(self, attr))
        return out


@dataclass(frozen=True)
class RecapPreferences:
    coaching_style: CoachingStyle = CoachingStyle.MOTIVATIONAL
    visible_sections: Mapping[str, bool] = field(default_factory=default_visible_sections)
    auto_generate: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.coaching_style, CoachingStyle):
            object.__setattr__(self, "coaching_style", CoachingStyle(self.coaching_style))
        keys = set(self.visible_sections)
        if keys != set(SECTION_KEYS):
            missing = sorted(set(SECTION_KEYS) - keys)
            extra = sorted(keys - set(SECTION_KEYS))
            raise ValueError(f"visible_sections must have exactly the known keys (missing={missing}, unknown={extra})")
        object.__setattr__(self, "visible_sections", MappingProxyType(dict(self.visible_sections)))

    def __hash__(self) -> int:
        return hash((self.coaching_style, self.auto_generate, tuple(self.visible_sections[k] for k in SECTION_KEYS)))

    # ------------------------------------------------------------------
    # Copy-with-field-replaced constructors
    # ------------------------------------------------------------------

    def with_coaching_style(self, style: CoachingStyle | str) -> RecapPreferences:
        return replace(self, coaching_style=CoachingStyle(style))

    def with_section_toggled(self, key: str) -> RecapPreferences:
        if key not in self.visible_sections:
            raise KeyError(f"Unknown section: {key}")
        sections = dict(self.visible_sections)
        sections[key] = not sections[key]
        return replace(self, visible_sections=sections)

    def with_auto_generate(self, enabled: bool) -> RecapPreferences:
        return replace(self, auto_generate=bool(enabled))

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> RecapPreferences:
        """Build preferences from a wire payload, filling any gaps with defaults."""
        data = _mapping(data, "userPreferences")
        if not data:
            return cls()
        sections = default_visible_sections()
        raw_sections = _mapping(data.get("visibleSections"), "visibleSections")
        for key, value in raw_sections.items():
            if key not in sections:
                logger.warning("Dropping unknown recap section %r", key)
                continue
            sections[key] = _flag(value, f"visibleSections.{key}")
        return cls(
            coaching_style=CoachingStyle(data.get("coachingStyle") or CoachingStyle.MOTIVATIONAL.value),
            visible_sections=sections,
            auto_generate=_flag(data.get("autoGenerate", False), "autoGenerate"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "coachingStyle": self.coaching_style.value,
            "autoGenerate": self.auto_generate,
            "visibleSections": {key: self.visible_sections[key] for key in SECTION_KEYS},
        }


@dataclass(frozen=True)
class RecapStats:
    """Task statistics the service computed for the day."""

    productivity_score: int = 0
    completed_tasks: int = 0
    total_tasks: int = 0
    time_distribution: Mapping[str, int] = field(
        default_factory=lambda: {c: 0 for c in TIME_CATEGORIES}
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "time_distribution", MappingProxyType(dict(self.time_distribution)))

    def __hash__(self) -> int:
        return hash((self.productivity_score, self.completed_tasks, self.total_tasks,
                     tuple(sorted(self.time_distribution.items()))))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RecapStats:
        data = _mapping(data, "stats")
        dist = _mapping(data.get("timeDistribution"), "timeDistribution")
        return cls(
            productivity_score=int(data.get("productivityScore") or 0),
            completed_tasks=int(data.get("completedTasks") or 0),
            total_tasks=int(data.get("totalTasks") or 0),
            time_distribution={c: int(dist.get(c) or 0) for c in TIME_CATEGORIES},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "productivityScore": self.productivity_score,
            "completedTasks": self.completed_tasks,
            "totalTasks": self.total_tasks,
            "timeDistribution": dict(self.time_distribution),
        }


@dataclass(frozen=True)
class Recap:
    """The aggregated insight record for one calendar day."""

    date: str
    insights: RecapInsights = field(default_factory=RecapInsights)
    user_preferences: RecapPreferences = field(default_factory=RecapPreferences)
    stats: RecapStats | None = None
    id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", day_key(self.date))
        if not self.id:
            object.__setattr__(self, "id", f"recap-{self.date}")
        if self.user_preferences is None:
            raise ValueError("Recap requires user_preferences")

    def with_preferences(self, preferences: RecapPreferences) -> Recap:
        """Return a copy with only ``user_preferences`` replaced."""
        return replace(self, user_preferences=preferences)

    def visible_sections(self) -> list[str]:
        """Section keys the user has left visible, in display order."""
        return [k for k in SECTION_KEYS if self.user_preferences.visible_sections[k]]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Recap:
        if not data.get("date"):
            raise ValueError("Recap payload is missing 'date'")
        stats = data.get("stats")
        return cls(
            date=data["date"],
            id=str(data.get("id") or ""),
            insights=RecapInsights.from_dict(data.get("insights")),
            user_preferences=RecapPreferences.from_dict(data.get("userPreferences")),
            stats=RecapStats.from_dict(stats) if stats is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "insights": self.insights.to_dict(),
            "userPreferences": self.user_preferences.to_dict(),
        }
        if self.stats is not None:
            out["stats"] = self.stats.to_dict()
        return out
