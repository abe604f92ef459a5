#!/usr/bin/env python3
"""git-calendar-synth CLI.

Builds a repository whose commit history draws a contribution calendar.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import logging
import sys

from calsynth.config import (
    ConfigError,
    default_schema_path,
    load_calendar_file,
    load_config,
    save_calendar_file,
)
from calsynth.generate import GenerateError, generate_repository, prepare_stream, write_stream
from calsynth.layout import LayoutError, resolve_repo_name
from calsynth.report import build_entries, render_plan_report
from calsynth.repo import GitRepositoryError, git_version
from calsynth.timestamps import DateParseError, TimestampSynthesizer, parse_day
from calsynth.validation import ValidationError, parse_contributions, validate_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-calendar-synth",
        description="Generate a git history that reproduces a contribution calendar",
    )

    parser.add_argument(
        "--config",
        required=True,
        help="Path to session YAML",
    )
    parser.add_argument(
        "--calendar",
        help="Path to a calendar file, overrides the config contributions",
    )
    parser.add_argument(
        "--schema",
        default=str(default_schema_path()),
        help="Path to schema.json",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned commits per day without creating anything",
    )
    parser.add_argument(
        "--stream-out",
        help="Write the fast-import stream to this file instead of creating a repository",
    )
    parser.add_argument(
        "--export-calendar",
        help="Write the validated calendar to this JSON file and exit",
    )
    parser.add_argument(
        "--git",
        help="git executable, overrides git.path from the config",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug details to stderr",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config_path = Path(args.config).expanduser().resolve()
    schema_path = Path(args.schema).expanduser().resolve()

    try:
        cfg = load_config(config_path, schema_path)

        days = None
        if args.calendar:
            calendar_path = Path(args.calendar).expanduser().resolve()
            days = parse_contributions(load_calendar_file(calendar_path, schema_path), "calendar")

        validated = validate_config(cfg, days)
        git = args.git or validated.git

        if args.export_calendar:
            for day in validated.days:
                parse_day(day.date)
            out = save_calendar_file(validated.days, Path(args.export_calendar).expanduser().resolve())
            print(f"Exported {len(validated.days)} days to {out}")
            return 0

        if args.dry_run:
            entries = build_entries(validated.days, TimestampSynthesizer(validated.tz))
            report = render_plan_report(
                repo_name=resolve_repo_name(validated.repo_name, validated.identity.name, validated.year),
                identity=validated.identity,
                timezone_name=validated.timezone_name,
                entries=entries,
            )
            print(report)
            return 0

        if args.stream_out:
            prepared = prepare_stream(
                validated.days,
                validated.identity,
                repo_name=validated.repo_name,
                year=validated.year,
                tz=validated.tz,
            )
            out = write_stream(prepared, Path(args.stream_out).expanduser().resolve())
            print(f"Wrote {prepared.stream.commit_count} commits to {out}")
            return 0

        if git_version(git) is None:
            print(f"error: git is not available: {git}", file=sys.stderr)
            return 2

        result = generate_repository(
            validated.days,
            validated.identity,
            repo_name=validated.repo_name,
            year=validated.year,
            base_dir=validated.base_dir,
            tz=validated.tz,
            git=git,
        )

        print(f"Generated {result.commit_count} commits on {result.branch}")
        print(f"Repository: {result.repo_path}")
        return 0

    except (
        ConfigError,
        ValidationError,
        DateParseError,
        LayoutError,
        GitRepositoryError,
        GenerateError,
    ) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
