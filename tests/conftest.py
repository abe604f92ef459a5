import subprocess
from pathlib import Path

import pytest

from calsynth.validation import ContributionDay, Identity


def pytest_configure(config):
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            SECRET_KEY="tests-only",
            USE_I18N=False,
            USE_TZ=True,
            INSTALLED_APPS=[],
            TEMPLATES=[
                {
                    "BACKEND": "django.template.backends.django.DjangoTemplates",
                    "DIRS": [str(Path(__file__).resolve().parents[1] / "user_ui" / "templates")],
                }
            ],
        )
        django.setup()


@pytest.fixture
def identity():
    return Identity(name="alice", email="alice@example.com")


@pytest.fixture
def scenario_days():
    """Two commits on Jan 1, one on Jan 3."""
    return [
        ContributionDay(date="2024-01-01", count=2),
        ContributionDay(date="2024-01-03", count=1),
    ]


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository."""
    repo = tmp_path / "repo"
    repo.mkdir()
    subprocess.run(["git", "init", "-q", str(repo)], check=True)
    return repo
