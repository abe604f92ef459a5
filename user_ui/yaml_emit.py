# user_ui/yaml_emit.py
from __future__ import annotations

from typing import Any, Dict, Mapping

import yaml


class QuotedString(str):
    """
    Marker type for forcing quoted YAML scalars.

    This is used to stop PyYAML from later reinterpreting unquoted ISO dates
    as non-string types on load.
    """


def _quoted_str_representer(dumper: yaml.SafeDumper, data: QuotedString):
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


yaml.add_representer(QuotedString, _quoted_str_representer, Dumper=yaml.SafeDumper)


def build_session_dict(cleaned_data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert validated form.cleaned_data into a session dict matching schema.json.

    Rules:
    1) optional identity and repository fields are emitted only when set
    2) timezone is always emitted
    3) dates are emitted as quoted strings to avoid YAML implicit typing
    """
    session: Dict[str, Any] = {}

    identity = _pick(cleaned_data, name="github_username", email="github_email")
    if identity:
        session["identity"] = identity

    repository = _pick(cleaned_data, name="repo_name", base_dir="base_dir")
    year = cleaned_data.get("year")
    if year is not None:
        repository["year"] = int(year)
    if repository:
        session["repository"] = repository

    session["timezone"] = str(cleaned_data.get("timezone") or "UTC")

    session["contributions"] = [
        {"date": QuotedString(day.date), "count": int(day.count)}
        for day in cleaned_data["contributions"]
    ]

    return session


def build_yaml(cleaned_data: Mapping[str, Any]) -> str:
    """
    Build YAML text from validated form.cleaned_data.
    """
    session = build_session_dict(cleaned_data)
    return yaml.safe_dump(
        session,
        sort_keys=False,
        default_flow_style=False,
    )


def _pick(cleaned_data: Mapping[str, Any], **fields: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, source in fields.items():
        value = (cleaned_data.get(source) or "").strip()
        if value:
            out[key] = value
    return out
