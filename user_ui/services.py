from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence
import os
import re
import sys
import tempfile
import subprocess

from user_ui.yaml_emit import build_yaml


class ServiceError(RuntimeError):
    pass


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    returncode: int
    cmd: Sequence[str]
    stdout: str
    stderr: str


_PROJECT_ROOT = Path(__file__).resolve().parent.parent


_GIT_BASH_PATH_RE = re.compile(r"^/([a-zA-Z])/(.+)$")


_DEFAULT_DRY_RUN_TIMEOUT_SECONDS = 60
_DEFAULT_GENERATE_TIMEOUT_SECONDS = 600


def preview_yaml(cleaned_data: Mapping[str, Any]) -> str:
    """
    Render the exact YAML that will be executed, without writing any files.
    """
    return build_yaml(_with_native_base_dir(cleaned_data))


def run_dry_run(
    cleaned_data: Mapping[str, Any],
    *,
    timeout_seconds: int | None = _DEFAULT_DRY_RUN_TIMEOUT_SECONDS,
) -> CommandResult:
    """
    Execute a dry run and return captured stdout and stderr.

    Writes session YAML to a temp file and removes it immediately after the process ends.
    """
    return _run_with_session(cleaned_data, ["--dry-run"], timeout_seconds=timeout_seconds)


def run_generate(
    cleaned_data: Mapping[str, Any],
    *,
    timeout_seconds: int | None = _DEFAULT_GENERATE_TIMEOUT_SECONDS,
) -> CommandResult:
    """
    Generate the repository and return captured stdout and stderr.
    """
    return _run_with_session(cleaned_data, [], timeout_seconds=timeout_seconds)


def _run_with_session(
    cleaned_data: Mapping[str, Any],
    extra_args: Sequence[str],
    *,
    timeout_seconds: int | None,
) -> CommandResult:
    yaml_text = build_yaml(_with_native_base_dir(cleaned_data))

    with tempfile.TemporaryDirectory() as td:
        session_path = Path(td) / "session.yaml"
        session_path.write_text(yaml_text, encoding="utf-8", newline="\n")

        cmd = [
            sys.executable,
            str(_PROJECT_ROOT / "main.py"),
            "--config",
            str(session_path),
            *extra_args,
        ]

        return _run(cmd, cwd=_PROJECT_ROOT, timeout_seconds=timeout_seconds)


def _run(cmd: Sequence[str], *, cwd: Path, timeout_seconds: int | None) -> CommandResult:
    """
    Run a subprocess and capture stdout and stderr.
    """
    try:
        completed = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired as e:
        stdout = e.stdout if isinstance(e.stdout, str) else ""
        stderr = e.stderr if isinstance(e.stderr, str) else ""

        return CommandResult(
            ok=False,
            returncode=124,
            cmd=list(cmd),
            stdout=stdout,
            stderr=stderr + "\nprocess timed out",
        )
    except FileNotFoundError as e:
        raise ServiceError(f"Command not found: {cmd[0]}") from e
    except OSError as e:
        raise ServiceError(f"Failed to run command: {cmd[0]}") from e

    return CommandResult(
        ok=completed.returncode == 0,
        returncode=int(completed.returncode),
        cmd=list(cmd),
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def _with_native_base_dir(cleaned_data: Mapping[str, Any]) -> Mapping[str, Any]:
    base_dir = cleaned_data.get("base_dir")
    if not base_dir:
        return cleaned_data
    return {**cleaned_data, "base_dir": _normalise_path(str(base_dir))}


def _normalise_path(path_str: str) -> str:
    """
    Normalise Git Bash style paths to Windows drive paths when running on Windows.

    Example:
      /c/Users/name/repos -> C:/Users/name/repos
    """
    p = path_str.strip()

    if os.name != "nt":
        return p

    m = _GIT_BASH_PATH_RE.match(p)
    if not m:
        return p

    drive = m.group(1).upper()
    rest = m.group(2)
    return f"{drive}:/{rest}"
