"""Command-line interface for the Daily Recap.

Usage:
    dayrecap show
    dayrecap show --date 2024-05-01
    dayrecap generate --date 2024-05-01
    dayrecap prefs --style analytical --toggle-section energyPatterns
    dayrecap prefs --toggle-auto-generate
    dayrecap delete --date 2024-05-01
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date as _date

from dayrecap.common.config import load_config, setup_logging
from dayrecap.recap.controller import RecapController
from dayrecap.recap.models import SECTION_KEYS, CoachingStyle, Recap
from dayrecap.recap.mutator import SetCoachingStyle, ToggleAutoGenerate, ToggleSection
from dayrecap.recap.service import HttpRecapService
from dayrecap.recap.store import RecapSnapshot

_SECTION_TITLES = {
    "daySummary": "Day Summary",
    "energyPatterns": "Energy Patterns",
    "taskImpact": "Task Impact",
    "coachInsights": "Coach Insights",
    "powerQuestions": "Power Questions",
    "tomorrowFocus": "Tomorrow's Focus",
}


def format_recap(recap: Recap) -> str:
    """Render the visible sections of a recap as plain text."""
    lines = [f"Daily Recap -- {recap.date}", ""]
    for key in recap.visible_sections():
        content = recap.insights.section(key)
        if key == "quote":
            if content:
                lines += [f'  "{content}"', ""]
            continue
        lines.append(_SECTION_TITLES[key])
        if isinstance(content, str):
            lines += [f"  {line}" for line in content.splitlines()]
        else:
            lines += [f"  - {item}" for item in content]
        lines.append("")
    if recap.stats is not None:
        s = recap.stats
        lines.append(
            f"Productivity {s.productivity_score}/100 -- "
            f"{s.completed_tasks} of {s.total_tasks} tasks completed"
        )
    return "\n".join(lines).rstrip() + "\n"


def _report(snap: RecapSnapshot) -> int:
    if snap.error:
        print(f"Error: {snap.error}", file=sys.stderr)
        return 1
    if snap.current_recap is None:
        print("No recap available. Run `dayrecap generate` to create one.")
        return 0
    print(format_recap(snap.current_recap), end="")
    return 0


async def cmd_show(args: argparse.Namespace, ctl: RecapController) -> int:
    await ctl.mount(args.date)
    return _report(ctl.snapshot())


async def cmd_generate(args: argparse.Namespace, ctl: RecapController) -> int:
    await ctl.mount(args.date)
    await ctl.on_generate_requested()
    return _report(ctl.snapshot())


async def cmd_prefs(args: argparse.Namespace, ctl: RecapController) -> int:
    await ctl.mount(args.date)
    snap = ctl.snapshot()
    if snap.error or snap.current_recap is None:
        return _report(snap)

    if args.style:
        ctl.on_preference_edit(SetCoachingStyle(CoachingStyle(args.style)))
    for key in args.toggle_section or []:
        ctl.on_preference_edit(ToggleSection(key))
    if args.toggle_auto_generate:
        ctl.on_preference_edit(ToggleAutoGenerate())

    await ctl.on_save_preferences()
    snap = ctl.snapshot()
    if snap.error:
        return _report(snap)

    prefs = snap.current_recap.user_preferences
    print(f"Coaching style: {prefs.coaching_style.value}")
    print(f"Auto generate:  {'on' if prefs.auto_generate else 'off'}")
    print("Visible sections:")
    for key in SECTION_KEYS:
        mark = "x" if prefs.visible_sections[key] else " "
        print(f"  [{mark}] {key}")
    return 0


async def cmd_delete(args: argparse.Namespace, ctl: RecapController) -> int:
    await ctl.mount(args.date)
    await ctl.on_delete_requested()
    snap = ctl.snapshot()
    if snap.error:
        return _report(snap)
    print(f"Deleted recap for {ctl.engine.subject}.")
    return 0


async def _run(args: argparse.Namespace, cfg: dict) -> int:
    dispatch = {
        "show": cmd_show,
        "generate": cmd_generate,
        "prefs": cmd_prefs,
        "delete": cmd_delete,
    }
    async with HttpRecapService.from_config(cfg) as service:
        ctl = RecapController(service)
        try:
            return await dispatch[args.command](args, ctl)
        finally:
            await ctl.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dayrecap", description="View and regenerate your Daily Recap")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")

    sub = parser.add_subparsers(dest="command", required=True)
    today = _date.today().isoformat()

    p_show = sub.add_parser("show", help="Show the recap for a date")
    p_show.add_argument("--date", default=today, help="Date (YYYY-MM-DD), default today")

    p_gen = sub.add_parser("generate", help="Regenerate the recap for a date")
    p_gen.add_argument("--date", default=today, help="Date (YYYY-MM-DD), default today")

    p_prefs = sub.add_parser("prefs", help="Edit coaching style and visible sections")
    p_prefs.add_argument("--date", default=today, help="Date (YYYY-MM-DD), default today")
    p_prefs.add_argument("--style", choices=[s.value for s in CoachingStyle], default=None)
    p_prefs.add_argument("--toggle-section", action="append", choices=list(SECTION_KEYS), metavar="SECTION")
    p_prefs.add_argument("--toggle-auto-generate", action="store_true")

    p_del = sub.add_parser("delete", help="Delete the recap for a date")
    p_del.add_argument("--date", default=today, help="Date (YYYY-MM-DD), default today")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    setup_logging(cfg)
    return asyncio.run(_run(args, cfg))


if __name__ == "__main__":
    sys.exit(main())
