# calsynth/config.py
"""
Configuration loading and validation.

Responsibilities:
- Load YAML session configuration (JSON is accepted as YAML)
- Load and save contribution calendar files
- Validate both against JSON Schema
- Expose a normalised config object

This module does NOT:
- interact with git
- compute timestamps
- build fast-import streams
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import json

import yaml
from jsonschema import Draft202012Validator


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class IdentityConfig:
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True)
class RepositoryConfig:
    name: Optional[str]
    base_dir: Optional[Path]
    year: Optional[int]


@dataclass(frozen=True)
class Config:
    identity: IdentityConfig
    repository: RepositoryConfig
    timezone: Optional[str]
    git: Optional[str]
    contributions: Optional[List[Any]]
    calendar_file: Optional[Path]


def default_schema_path() -> Path:
    """
    Resolve schema.json relative to this package so the CLI works from any CWD.
    """
    return Path(__file__).resolve().parent / "schema.json"


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    """
    Load JSON Schema from a schema.json file.
    """
    try:
        raw = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read schema file: {schema_path}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Schema is not valid JSON: {schema_path}") from e

    if not isinstance(parsed, dict):
        raise ConfigError(f"Schema must be a JSON object: {schema_path}")

    return parsed


def _load_yaml(path: Path, what: str) -> Any:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load {what}: {path}") from e

    if raw is None:
        raise ConfigError(f"{what.capitalize()} is empty: {path}")

    return raw


def _quote_dates(entries: Any) -> Any:
    """
    Turn YAML-parsed dates back into ISO strings.

    PyYAML reads an unquoted 2024-01-01 as a date object, but the calendar
    contract is string dates.
    """
    if not isinstance(entries, list):
        return entries

    out = []
    for entry in entries:
        if isinstance(entry, dict) and isinstance(entry.get("date"), date):
            entry = {**entry, "date": entry["date"].isoformat()}
        out.append(entry)
    return out


def _check(validator: Draft202012Validator, instance: Any, heading: str) -> None:
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))

    if errors:
        messages = []
        for err in errors:
            path = ".".join(str(p) for p in err.path)
            prefix = path if path else "<root>"
            messages.append(f"{prefix}: {err.message}")
        raise ConfigError(f"{heading}:\n" + "\n".join(messages))


def _calendar_validator(schema: Dict[str, Any]) -> Draft202012Validator:
    return Draft202012Validator(
        {"$ref": "#/$defs/calendar", "$defs": schema.get("$defs", {})}
    )


def load_calendar_file(calendar_path: Path, schema_path: Optional[Path] = None) -> List[Any]:
    """
    Load a contribution calendar: a list of {date, count} objects in JSON or YAML.

    Returns the raw entries. Use validation.parse_contributions to type them.
    """
    schema = _load_schema(schema_path or default_schema_path())
    raw = _quote_dates(_load_yaml(calendar_path, "calendar"))

    _check(_calendar_validator(schema), raw, "Invalid calendar")

    return list(raw)


def save_calendar_file(days: Sequence[Any], calendar_path: Path) -> Path:
    """
    Write a calendar as indented JSON. Entries need date and count attributes.
    """
    payload = [{"date": d.date, "count": int(d.count)} for d in days]

    try:
        calendar_path.parent.mkdir(parents=True, exist_ok=True)
        calendar_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write calendar: {calendar_path}") from e

    return calendar_path


def load_config(config_path: Path, schema_path: Optional[Path] = None) -> Config:
    """
    Load and validate configuration.

    A relative calendar_file is resolved against the directory of the config
    file and loaded eagerly, so contributions is always populated.

    Raises ConfigError on validation failure.
    """
    schema_path = schema_path or default_schema_path()

    raw_config = _load_yaml(config_path, "config")
    if not isinstance(raw_config, dict):
        raise ConfigError(f"Config must be a mapping at top level: {config_path}")

    if "contributions" in raw_config:
        raw_config["contributions"] = _quote_dates(raw_config["contributions"])

    schema = _load_schema(schema_path)
    _check(Draft202012Validator(schema), raw_config, "Invalid configuration")

    identity_raw = raw_config.get("identity") or {}
    repo_raw = raw_config.get("repository") or {}

    base_dir = repo_raw.get("base_dir")
    calendar_file = raw_config.get("calendar_file")
    contributions = raw_config.get("contributions")

    calendar_path: Optional[Path] = None
    if calendar_file is not None:
        calendar_path = Path(calendar_file).expanduser()
        if not calendar_path.is_absolute():
            calendar_path = config_path.parent / calendar_path
        contributions = load_calendar_file(calendar_path, schema_path)

    return Config(
        identity=IdentityConfig(
            name=identity_raw.get("name"),
            email=identity_raw.get("email"),
        ),
        repository=RepositoryConfig(
            name=repo_raw.get("name"),
            base_dir=Path(base_dir).expanduser() if base_dir else None,
            year=repo_raw.get("year"),
        ),
        timezone=raw_config.get("timezone"),
        git=(raw_config.get("git") or {}).get("path"),
        contributions=contributions,
        calendar_file=calendar_path,
    )
