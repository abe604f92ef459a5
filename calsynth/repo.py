# calsynth/repo.py
"""
Git collaborators for a generated repository.

Prepares an empty repository, feeds it a fast-import stream and reads the
resulting history back. Handles Git Bash to Windows path normalisation.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from subprocess import run, PIPE, CalledProcessError
from typing import List, Optional, Protocol
from pathlib import Path
import logging
import os

from calsynth.validation import Identity


logger = logging.getLogger(__name__)


# Single source of truth for git field separation
_FIELD_SEP = "\x00"

# Applied best effort after init. fast-import ignores most of them, but a
# later checkout or push from the generated repo does not.
_TUNING = (
    ("commit.gpgsign", "false"),
    ("gc.auto", "0"),
    ("core.autocrlf", "false"),
    ("core.fsyncObjectFiles", "false"),
    ("credential.helper", ""),
)


@dataclass(frozen=True)
class HistoryEntry:
    """One commit as read back from an imported repository."""

    hash: str
    author_date: datetime
    committer_date: datetime
    author_email: str
    subject: str


class GitRepositoryError(RuntimeError):
    pass


class ImporterError(GitRepositoryError):
    """
    Raised when the importer rejects a stream.

    Attributes:
        diagnostics: importer stderr, stripped
        returncode: importer exit status
    """

    def __init__(self, message: str, diagnostics: str = "", returncode: Optional[int] = None) -> None:
        self.diagnostics = diagnostics
        self.returncode = returncode
        text = f"{message} ({diagnostics})" if diagnostics else message
        super().__init__(text)


class Importer(Protocol):
    def import_stream(self, stream: bytes, working_dir: Path) -> None:
        ...


def _normalise_repo_path(repo_path: Path) -> Path:
    """
    Convert Git Bash paths (/c/Users/...) to native Windows paths (C:\\Users\\...).
    No-op on non-Windows systems.
    """
    if os.name != "nt":
        return repo_path

    p = str(repo_path)

    if p.startswith("/") and len(p) >= 3 and p[2] == "/":
        drive = p[1]
        if drive.isalpha():
            return Path(f"{drive.upper()}:/{p[3:]}")

    return Path(p)


def _run_git_command(repo_path: Path, args: List[str], git: str = "git") -> str:
    repo_path = _normalise_repo_path(repo_path)

    try:
        result = run(
            [git, "-C", str(repo_path)] + args,
            stdout=PIPE,
            stderr=PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
        # Do not strip spaces, only remove trailing newlines
        return result.stdout.rstrip("\n")
    except CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        detail = stderr if stderr else "git command failed"
        raise GitRepositoryError(f"git {' '.join(args)}: {detail}") from e
    except FileNotFoundError as e:
        raise GitRepositoryError(f"git executable not found: {git}") from e


def git_version(git: str = "git") -> Optional[str]:
    """
    Return the `git --version` line, or None when git cannot be run.
    """
    try:
        result = run(
            [git, "--version"],
            stdout=PIPE,
            stderr=PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
    except (OSError, CalledProcessError):
        return None

    return result.stdout.strip() or None


def init_repository(repo_path: Path, identity: Identity, git: str = "git") -> None:
    """
    Create an empty repository with the author identity as its defaults.
    """
    _run_git_command(repo_path, ["init"], git)
    _run_git_command(repo_path, ["config", "user.name", identity.name], git)
    _run_git_command(repo_path, ["config", "user.email", identity.email], git)

    for key, value in _TUNING:
        try:
            _run_git_command(repo_path, ["config", key, value], git)
        except GitRepositoryError as e:
            logger.debug("ignoring failed tuning %s=%r: %s", key, value, e)


class GitFastImporter:
    """
    Importer backed by `git fast-import --quiet`, one process per stream.
    """

    def __init__(self, git: str = "git") -> None:
        self.git = git

    def import_stream(self, stream: bytes, working_dir: Path) -> None:
        cwd = _normalise_repo_path(working_dir)
        logger.debug("feeding %d bytes to git fast-import in %s", len(stream), cwd)

        try:
            completed = run(
                [self.git, "fast-import", "--quiet"],
                input=stream,
                cwd=str(cwd),
                stdout=PIPE,
                stderr=PIPE,
                check=False,
            )
        except OSError as e:
            raise ImporterError(f"git fast-import could not start: {e}") from e

        if completed.returncode != 0:
            diagnostics = completed.stderr.decode("utf-8", errors="replace").strip()
            raise ImporterError(
                f"git fast-import exited with {completed.returncode}",
                diagnostics=diagnostics,
                returncode=completed.returncode,
            )


def checkout_branch(repo_path: Path, branch: str, git: str = "git") -> None:
    _run_git_command(repo_path, ["checkout", "-f", branch], git)


def count_commits(repo_path: Path, ref: str, git: str = "git") -> int:
    out = _run_git_command(repo_path, ["rev-list", "--count", ref], git)
    try:
        return int(out.strip())
    except ValueError as e:
        raise GitRepositoryError(f"unexpected rev-list output: {out!r}") from e


def load_commit_history(repo_path: Path, ref: str = "HEAD", git: str = "git") -> List[HistoryEntry]:
    """
    Load commits on ref, oldest first.

    Dates are read as unix seconds and returned as UTC datetimes.
    """
    log_format = "%H%x00%at%x00%ct%x00%ae%x00%s"

    raw_log = _run_git_command(
        repo_path,
        ["log", "--reverse", f"--pretty=format:{log_format}", ref],
        git,
    )

    entries: List[HistoryEntry] = []

    if not raw_log:
        return entries

    for line in raw_log.splitlines():
        parts = line.split(_FIELD_SEP)

        if len(parts) != 5:
            raise GitRepositoryError(f"Malformed git log line: {line!r}")

        commit_hash, author_secs, committer_secs, author_email, subject = parts

        try:
            author_date = datetime.fromtimestamp(int(author_secs), tz=timezone.utc)
            committer_date = datetime.fromtimestamp(int(committer_secs), tz=timezone.utc)
        except ValueError as e:
            raise GitRepositoryError(
                f"Invalid timestamp format in git log: {line!r}"
            ) from e

        entries.append(
            HistoryEntry(
                hash=commit_hash,
                author_date=author_date,
                committer_date=committer_date,
                author_email=author_email,
                subject=subject,
            )
        )

    return entries
