"""Tests for recap value types: day keys, copy constructors, wire payloads."""

from __future__ import annotations

from datetime import date

import pytest

from dayrecap.recap.models import (
    SECTION_KEYS,
    CoachingStyle,
    Recap,
    RecapPreferences,
    RecapStats,
    day_key,
)
from tests.conftest import make_recap


class TestDayKey:
    def test_accepts_date_and_string(self) -> None:
        assert day_key(date(2024, 5, 1)) == "2024-05-01"
        assert day_key(" 2024-05-01 ") == "2024-05-01"

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            day_key("May 1st")


class TestRecapPreferences:
    def test_defaults(self) -> None:
        prefs = RecapPreferences()
        assert prefs.coaching_style is CoachingStyle.MOTIVATIONAL
        assert prefs.auto_generate is False
        assert all(prefs.visible_sections[k] for k in SECTION_KEYS)

    def test_toggle_flips_only_one_key(self) -> None:
        prefs = RecapPreferences()
        toggled = prefs.with_section_toggled("energyPatterns")
        assert toggled.visible_sections["energyPatterns"] is False
        for key in SECTION_KEYS:
            if key != "energyPatterns":
                assert toggled.visible_sections[key] == prefs.visible_sections[key]
        # original untouched
        assert prefs.visible_sections["energyPatterns"] is True

    def test_toggle_unknown_section(self) -> None:
        with pytest.raises(KeyError):
            RecapPreferences().with_section_toggled("horoscope")

    def test_closed_key_set(self) -> None:
        with pytest.raises(ValueError):
            RecapPreferences(visible_sections={"quote": True})

    def test_style_from_string(self) -> None:
        assert RecapPreferences().with_coaching_style("directive").coaching_style is CoachingStyle.DIRECTIVE
        with pytest.raises(ValueError):
            RecapPreferences().with_coaching_style("sarcastic")


class TestRecap:
    def test_id_defaults_from_date(self) -> None:
        assert Recap(date="2024-05-01").id == "recap-2024-05-01"

    def test_with_preferences_keeps_everything_else(self) -> None:
        recap = make_recap()
        updated = recap.with_preferences(recap.user_preferences.with_auto_generate(True))
        assert updated.insights == recap.insights
        assert updated.stats == recap.stats
        assert updated.date == recap.date and updated.id == recap.id
        assert updated.user_preferences.auto_generate is True
        assert recap.user_preferences.auto_generate is False

    def test_visible_sections_in_display_order(self) -> None:
        recap = make_recap(visible_sections={**{k: True for k in SECTION_KEYS}, "quote": False})
        assert recap.visible_sections() == list(SECTION_KEYS[1:])

    def test_from_dict_fills_missing_preferences(self) -> None:
        recap = Recap.from_dict({
            "date": "2024-05-01",
            "insights": {"quote": "Q", "energyPatterns": ["a", "b"]},
        })
        assert recap.user_preferences == RecapPreferences()
        assert recap.insights.energy_patterns == ("a", "b")
        assert recap.insights.task_impact == ()
        assert recap.stats is None

    def test_from_dict_repairs_section_keys(self) -> None:
        recap = Recap.from_dict({
            "date": "2024-05-01",
            "userPreferences": {
                "coachingStyle": "analytical",
                "autoGenerate": True,
                "visibleSections": {"quote": False, "mood": True},
            },
        })
        prefs = recap.user_preferences
        assert prefs.coaching_style is CoachingStyle.ANALYTICAL
        assert prefs.auto_generate is True
        assert set(prefs.visible_sections) == set(SECTION_KEYS)
        assert prefs.visible_sections["quote"] is False
        assert prefs.visible_sections["daySummary"] is True

    def test_from_dict_requires_date(self) -> None:
        with pytest.raises(ValueError):
            Recap.from_dict({"insights": {}})

    def test_wire_payload_uses_camel_case(self) -> None:
        payload = make_recap().to_dict()
        assert payload["insights"]["daySummary"] == "3 tasks scheduled, 2 completed"
        assert payload["userPreferences"]["coachingStyle"] == "motivational"
        assert payload["stats"]["productivityScore"] == 77
        assert Recap.from_dict(payload) == make_recap()

    @pytest.mark.parametrize("prefs", [
        {"autoGenerate": "false"},
        {"autoGenerate": 1},
        {"visibleSections": {"quote": "no"}},
    ])
    def test_from_dict_rejects_non_boolean_flags(self, prefs) -> None:
        with pytest.raises(ValueError, match="must be a boolean"):
            Recap.from_dict({"date": "2024-05-01", "userPreferences": prefs})

    @pytest.mark.parametrize("payload", [
        {"insights": ["not", "a", "dict"]},
        {"insights": {"energyPatterns": "one string"}},
        {"userPreferences": ["analytical"]},
        {"userPreferences": {"visibleSections": ["quote"]}},
        {"stats": {"timeDistribution": [1, 2]}},
        {"stats": [77]},
    ])
    def test_from_dict_rejects_wrong_shapes(self, payload) -> None:
        with pytest.raises(ValueError):
            Recap.from_dict({"date": "2024-05-01", **payload})


class TestReadOnlyValues:
    def test_recap_is_hashable(self) -> None:
        assert hash(make_recap()) == hash(make_recap())
        assert len({make_recap(), make_recap(quote="other")}) == 2

    def test_visible_sections_cannot_be_mutated(self) -> None:
        recap = make_recap()
        with pytest.raises(TypeError):
            recap.user_preferences.visible_sections["quote"] = False
        assert recap.user_preferences.visible_sections["quote"] is True

    def test_time_distribution_cannot_be_mutated(self) -> None:
        stats = RecapStats(time_distribution={"work": 3, "personal": 0, "health": 0, "learning": 0})
        with pytest.raises(TypeError):
            stats.time_distribution["work"] = 9
        assert stats.to_dict()["timeDistribution"] == {"work": 3, "personal": 0, "health": 0, "learning": 0}

    def test_equal_regardless_of_section_order(self) -> None:
        forward = RecapPreferences(visible_sections={k: True for k in SECTION_KEYS})
        backward = RecapPreferences(visible_sections={k: True for k in reversed(SECTION_KEYS)})
        assert forward == backward
        assert hash(forward) == hash(backward)
