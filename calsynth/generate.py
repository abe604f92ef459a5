# calsynth/generate.py
"""
Repository generation session.

Responsibilities:
- Normalise the calendar and resolve the repository name
- Encode the full fast-import stream before touching the filesystem
- Create the repository directory, initialise git and import the stream
- Verify the imported commit count and first and last commit times

This module does NOT:
- load configuration files
- create remote repositories or push
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Optional, Sequence
import logging

from calsynth.layout import RepositoryLayout, default_base_dir, readme_content, resolve_repo_name
from calsynth.repo import (
    GitFastImporter,
    Importer,
    checkout_branch,
    count_commits,
    init_repository,
    load_commit_history,
)
from calsynth.stream import DEFAULT_BRANCH, EncodedStream, StreamEncoder
from calsynth.timestamps import TimestampSynthesizer
from calsynth.validation import ContributionDay, Identity, normalize_calendar


logger = logging.getLogger(__name__)


class GenerateError(RuntimeError):
    pass


@dataclass(frozen=True)
class GenerateResult:
    repo_path: Path
    commit_count: int
    branch: str


@dataclass(frozen=True)
class PreparedStream:
    repo_name: str
    readme: str
    stream: EncodedStream


def prepare_stream(
    days: Sequence[ContributionDay],
    identity: Identity,
    *,
    repo_name: Optional[str] = None,
    year: Optional[int] = None,
    tz: tzinfo = timezone.utc,
) -> PreparedStream:
    """
    Validate the calendar and build the stream. Pure, no side effects.
    """
    normalised = normalize_calendar(days)
    name = resolve_repo_name(repo_name, identity.name, year)
    readme = readme_content(name)

    encoder = StreamEncoder(identity, TimestampSynthesizer(tz))
    stream = encoder.encode(normalised, readme.encode("utf-8"))

    return PreparedStream(repo_name=name, readme=readme, stream=stream)


def write_stream(prepared: PreparedStream, out_path: Path) -> Path:
    """
    Write the stream to a file, for `git fast-import < file` elsewhere.
    """
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(prepared.stream.data)
    except OSError as e:
        raise GenerateError(f"Failed to write stream: {out_path}") from e
    return out_path


def generate_repository(
    days: Sequence[ContributionDay],
    identity: Identity,
    *,
    repo_name: Optional[str] = None,
    year: Optional[int] = None,
    base_dir: Optional[Path] = None,
    tz: tzinfo = timezone.utc,
    git: str = "git",
    importer: Optional[Importer] = None,
) -> GenerateResult:
    """
    Build a repository whose history mirrors the calendar.

    A failed import leaves the partially imported repository on disk. Removing
    it is the caller's choice.
    """
    prepared = prepare_stream(days, identity, repo_name=repo_name, year=year, tz=tz)

    layout = RepositoryLayout(base_dir=base_dir or default_base_dir(), repo_name=prepared.repo_name)
    repo_path = layout.create()
    layout.write_static(repo_path, prepared.readme)

    init_repository(repo_path, identity, git)

    importer = importer or GitFastImporter(git)
    importer.import_stream(prepared.stream.data, repo_path)

    branch = DEFAULT_BRANCH.rsplit("/", 1)[-1]
    checkout_branch(repo_path, branch, git)

    imported = count_commits(repo_path, branch, git)
    if imported != prepared.stream.commit_count:
        raise GenerateError(
            f"expected {prepared.stream.commit_count} commits on {branch}, found {imported}"
        )

    history = load_commit_history(repo_path, branch, git)
    span = (int(history[0].author_date.timestamp()), int(history[-1].author_date.timestamp()))
    expected = (prepared.stream.first_when, prepared.stream.last_when)
    if span != expected:
        raise GenerateError(f"imported history spans {span}, expected {expected}")

    logger.info("generated %d commits in %s", imported, repo_path)

    return GenerateResult(repo_path=repo_path, commit_count=imported, branch=branch)

