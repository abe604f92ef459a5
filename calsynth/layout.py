# calsynth/layout.py
"""
On-disk layout of a generated repository.

Responsibilities:
- Sanitise caller supplied repository names
- Pick the base directory and a unique repository directory
- Name the static file and the activity log referenced by the stream

This module does NOT:
- run git
- build streams
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging
import re
import tempfile


logger = logging.getLogger(__name__)


STATIC_FILE = "README.md"
LOG_FILE = "activity.log"
DEFAULT_REPO_NAME = "contributions"
MAX_REPO_NAME_LEN = 64

_REPO_NAME_SANITISER = re.compile(r"[^a-zA-Z0-9._-]+")


class LayoutError(RuntimeError):
    pass


def default_base_dir() -> Path:
    return Path(tempfile.gettempdir()) / "calsynth"


def sanitise_repo_name(raw: Optional[str]) -> str:
    """
    Replace each run of characters outside [A-Za-z0-9._-] with "-", trim
    dashes and cap the length. Returns "" when nothing usable is left.
    """
    name = (raw or "").strip()
    if not name:
        return ""

    name = _REPO_NAME_SANITISER.sub("-", name).strip("-")
    return name[:MAX_REPO_NAME_LEN]


def resolve_repo_name(
    requested: Optional[str],
    username: Optional[str],
    year: Optional[int] = None,
) -> str:
    """
    Requested name, else username (with -year when given), else the default.
    """
    name = (requested or "").strip()

    if not name:
        name = (username or "").strip()
        if name and year:
            name = f"{name}-{year}"

    return sanitise_repo_name(name) or DEFAULT_REPO_NAME


def readme_content(repo_name: str) -> str:
    return f"# {repo_name}\n\nGenerated with git-calendar-synth.\n"


@dataclass(frozen=True)
class RepositoryLayout:
    base_dir: Path
    repo_name: str
    static_file: str = STATIC_FILE
    log_file: str = LOG_FILE

    def create(self) -> Path:
        """
        Create the base directory and a fresh "<repo_name>-XXXXXXXX" directory inside it.
        """
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            repo_path = Path(tempfile.mkdtemp(prefix=f"{self.repo_name}-", dir=self.base_dir))
        except OSError as e:
            raise LayoutError(f"create repo directory under {self.base_dir}: {e}") from e

        logger.debug("created repository directory %s", repo_path)
        return repo_path

    def static_path(self, repo_path: Path) -> Path:
        return repo_path / self.static_file

    def write_static(self, repo_path: Path, content: str) -> Path:
        path = self.static_path(repo_path)
        try:
            path.write_text(content, encoding="utf-8", newline="\n")
        except OSError as e:
            raise LayoutError(f"write {self.static_file}: {e}") from e
        return path
