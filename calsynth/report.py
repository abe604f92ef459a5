# calsynth/report.py
"""
Dry run reporting.

Responsibilities:
- Build a per-day plan for a calendar
- Render a deterministic, human readable output

This module does NOT:
- call git
- build streams
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Sequence

from calsynth.timestamps import TimestampSynthesizer
from calsynth.validation import ContributionDay, Identity


@dataclass(frozen=True)
class PlanEntry:
    date: str
    count: int
    first_commit: datetime
    last_commit: datetime
    offset: str


def build_entries(
    days: Sequence[ContributionDay],
    synthesizer: TimestampSynthesizer,
) -> List[PlanEntry]:
    """
    Build per day plan entries. days must already be normalised.

    Raises DateParseError for a malformed day.
    """
    entries: List[PlanEntry] = []

    for day in days:
        first_secs, offset = synthesizer.synthesize(day.date, 0)
        last_secs, _ = synthesizer.synthesize(day.date, day.count - 1)

        entries.append(
            PlanEntry(
                date=day.date,
                count=day.count,
                first_commit=datetime.fromtimestamp(first_secs, tz=timezone.utc),
                last_commit=datetime.fromtimestamp(last_secs, tz=timezone.utc),
                offset=offset,
            )
        )

    return entries


def render_plan_report(
    *,
    repo_name: str,
    identity: Identity,
    timezone_name: str,
    entries: Sequence[PlanEntry],
) -> str:
    """
    Render a dry run report as plain text.
    """
    total = sum(e.count for e in entries)

    lines: List[str] = []

    lines.append(f"Repository: {repo_name}")
    lines.append(f"Author: {identity.name} <{identity.email}>")
    lines.append(f"Timezone: {timezone_name}")
    lines.append(f"Days: {len(entries)}")
    lines.append(f"Commits: {total}")

    if entries:
        lines.append(f"Date range: [{entries[0].date} .. {entries[-1].date}]")
    else:
        lines.append("Date range: <none>")

    if not entries:
        return "\n".join(lines)

    lines.append("")

    headers = [
        "date",
        "count",
        "first_commit_utc",
        "last_commit_utc",
        "offset",
    ]

    rows: List[List[str]] = []
    for e in entries:
        rows.append(
            [
                e.date,
                str(e.count),
                _fmt_dt(e.first_commit),
                _fmt_dt(e.last_commit),
                e.offset,
            ]
        )

    lines.extend(_format_table(headers, rows))
    return "\n".join(lines)


def _fmt_dt(dt: datetime) -> str:
    return dt.isoformat()


def _format_table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]

    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(items: List[str]) -> str:
        return "  ".join(items[i].ljust(widths[i]) for i in range(len(items))).rstrip()

    lines: List[str] = []
    lines.append(fmt_row(headers))
    lines.append(fmt_row(["-" * w for w in widths]))

    for row in rows:
        lines.append(fmt_row(row))

    return lines
