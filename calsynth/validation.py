# calsynth/validation.py
"""
Semantic validation and parsing for calendars and session configuration.

Responsibilities:
- Parse raw contribution entries into typed ContributionDay values
- Normalise a calendar into ascending days with positive counts
- Validate identity fields against the fast-import grammar
- Resolve timezones
- Produce actionable errors with field path context

This module does NOT:
- load YAML or JSON files
- compute timestamps
- emit streams
- interact with git
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from calsynth.config import Config


logger = logging.getLogger(__name__)


DEFAULT_USERNAME = "calsynth"

_CONTRIBUTION_KEYS = frozenset({"date", "count"})
_FORBIDDEN_IDENTITY_CHARS = ("<", ">", "\n", "\r", "\x00")


class ValidationError(RuntimeError):
    """
    Raised when input is structurally valid but semantically invalid.

    Attributes:
        path: dotted path of the failing field, for example contributions[3].count
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class EmptyInputError(ValidationError):
    """
    Raised when a calendar has no entries or no commits to generate.
    """


@dataclass(frozen=True)
class ContributionDay:
    date: str  # YYYY-MM-DD, parsed later by the timestamp synthesizer
    count: int


@dataclass(frozen=True)
class Identity:
    name: str
    email: str


@dataclass(frozen=True)
class ValidatedConfig:
    identity: Identity
    repo_name: Optional[str]
    year: Optional[int]
    base_dir: Optional[Path]
    timezone_name: str
    tz: tzinfo
    git: str
    days: List[ContributionDay]


def validate_config(cfg: Config, days: Optional[Sequence[ContributionDay]] = None) -> ValidatedConfig:
    """
    Validate and parse configuration into a form the encoder can trust.

    Args:
        cfg: schema-checked configuration
        days: calendar loaded from elsewhere, overrides cfg.contributions

    Raises ValidationError (or EmptyInputError) on the first failing field.
    """
    identity = validate_identity(cfg.identity.name, cfg.identity.email)

    if days is None:
        if cfg.contributions is None:
            raise EmptyInputError("contributions", "no contributions supplied")
        days = parse_contributions(cfg.contributions, "contributions")

    normalised = normalize_calendar(days)

    tz_name = (cfg.timezone or "UTC").strip()
    if not tz_name:
        raise ValidationError("timezone", "timezone must not be empty")

    tz = resolve_timezone("timezone", tz_name)

    if cfg.repository.year is not None and cfg.repository.year <= 0:
        raise ValidationError("repository.year", "year must be positive")

    return ValidatedConfig(
        identity=identity,
        repo_name=cfg.repository.name,
        year=cfg.repository.year,
        base_dir=cfg.repository.base_dir,
        timezone_name=tz_name,
        tz=tz,
        git=cfg.git or "git",
        days=normalised,
    )


def parse_contributions(raw: Any, path: str = "contributions") -> List[ContributionDay]:
    """
    Parse decoded JSON/YAML contribution entries.

    Each entry must be a mapping with exactly the keys date and count.
    """
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(path, "contributions must be a list")

    days: List[ContributionDay] = []

    for i, entry in enumerate(raw):
        entry_path = f"{path}[{i}]"

        if not isinstance(entry, Mapping):
            raise ValidationError(entry_path, "entry must be an object")

        missing = sorted(_CONTRIBUTION_KEYS - set(entry))
        if missing:
            raise ValidationError(entry_path, f"missing field(s): {', '.join(missing)}")

        unknown = sorted(str(k) for k in set(entry) - _CONTRIBUTION_KEYS)
        if unknown:
            raise ValidationError(entry_path, f"unknown field(s): {', '.join(unknown)}")

        date_raw = entry["date"]
        count_raw = entry["count"]

        if not isinstance(date_raw, str):
            raise ValidationError(f"{entry_path}.date", "date must be a string")

        if not _is_int(count_raw):
            raise ValidationError(f"{entry_path}.count", "count must be an integer")

        days.append(ContributionDay(date=date_raw.strip(), count=int(count_raw)))

    return days


def normalize_calendar(days: Iterable[ContributionDay]) -> List[ContributionDay]:
    """
    Validate and sort a calendar.

    Enforces:
    - at least one entry
    - no negative counts
    - a positive total

    Returns the positive-count days in ascending date order. The sort is stable,
    so repeated dates stay separate groups in input order. Callers that want
    them merged must merge before calling.
    """
    entries = list(days)

    if not entries:
        raise EmptyInputError("contributions", "no contributions supplied")

    total = 0
    for i, day in enumerate(entries):
        if day.count < 0:
            raise ValidationError(
                f"contributions[{i}].count",
                f"invalid contribution count for {day.date}: {day.count}",
            )
        total += day.count

    if total == 0:
        raise EmptyInputError("contributions", "no commits to generate")

    kept = sorted((d for d in entries if d.count > 0), key=lambda d: d.date)

    seen = set()
    for day in kept:
        if day.date in seen:
            logger.warning("date %s appears more than once, entries are not merged", day.date)
        seen.add(day.date)

    return kept


def validate_identity(name: Optional[str], email: Optional[str]) -> Identity:
    """
    Apply identity defaults and reject values fast-import cannot carry.

    Defaults:
    - name falls back to calsynth
    - email falls back to <name>@users.noreply.github.com
    """
    name_clean = (name or "").strip() or DEFAULT_USERNAME
    email_clean = (email or "").strip() or f"{name_clean}@users.noreply.github.com"

    _check_identity_field("identity.name", name_clean)
    _check_identity_field("identity.email", email_clean)

    return Identity(name=name_clean, email=email_clean)


def resolve_timezone(path: str, name: str) -> tzinfo:
    upper = name.upper()
    if upper in {"UTC", "Z", "ETC/UTC"}:
        return timezone.utc

    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as e:
        raise ValidationError(
            path,
            f"invalid timezone: {name}. install tzdata or set timezone to UTC",
        ) from e
    except (ValueError, OSError) as e:
        raise ValidationError(path, f"invalid timezone: {name}") from e


def _check_identity_field(path: str, value: str) -> None:
    for ch in _FORBIDDEN_IDENTITY_CHARS:
        if ch in value:
            raise ValidationError(path, f"must not contain {ch!r}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
