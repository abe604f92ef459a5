import json
import shutil

import pytest

import main


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


SESSION = """
identity:
  name: alice
  email: alice@example.com
repository:
  year: 2024
contributions:
  - date: "2024-01-03"
    count: 1
  - date: "2024-01-01"
    count: 2
"""


@pytest.fixture
def session_path(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text(SESSION, encoding="utf-8")
    return path


def test_dry_run_prints_plan(session_path, capsys):
    assert main.main(["--config", str(session_path), "--dry-run"]) == 0

    out = capsys.readouterr().out
    assert "Repository: alice-2024" in out
    assert "Commits: 3" in out
    assert "Date range: [2024-01-01 .. 2024-01-03]" in out


def test_calendar_overrides_config(session_path, tmp_path, capsys):
    calendar = tmp_path / "cal.json"
    calendar.write_text(json.dumps([{"date": "2024-06-01", "count": 5}]), encoding="utf-8")

    assert main.main(["--config", str(session_path), "--calendar", str(calendar), "--dry-run"]) == 0

    out = capsys.readouterr().out
    assert "Commits: 5" in out
    assert "2024-01-01" not in out


def test_stream_out_writes_stream(session_path, tmp_path, capsys):
    out_path = tmp_path / "stream.fi"

    assert main.main(["--config", str(session_path), "--stream-out", str(out_path)]) == 0

    data = out_path.read_bytes()
    assert data.startswith(b"blob\nmark :1\n")
    assert data.endswith(b"done\n")
    assert data.count(b"\ncommit refs/heads/main\n") == 3
    assert "Wrote 3 commits" in capsys.readouterr().out


@pytest.mark.parametrize(
    "contributions, fragment",
    [
        ('[{"date": "2024-01-01", "count": -1}]', "invalid contribution count"),
        ('[{"date": "2024-02-05", "count": 0}]', "no commits to generate"),
        ('[{"date": "2024-02-30", "count": 1}]', "invalid date"),
    ],
)
def test_errors_exit_with_status_2(tmp_path, capsys, contributions, fragment):
    path = tmp_path / "session.yaml"
    path.write_text(f"contributions: {contributions}\n", encoding="utf-8")

    assert main.main(["--config", str(path), "--stream-out", str(tmp_path / "s.fi")]) == 2

    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert fragment in err
    assert not (tmp_path / "s.fi").exists()


def test_invalid_config_exits_with_status_2(tmp_path, capsys):
    path = tmp_path / "session.yaml"
    path.write_text("unknown: 1\n", encoding="utf-8")

    assert main.main(["--config", str(path), "--dry-run"]) == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_missing_git_exits_with_status_2(session_path, capsys):
    assert main.main(["--config", str(session_path), "--git", "/nonexistent/git-binary"]) == 2
    assert "git is not available" in capsys.readouterr().err


@requires_git
def test_generates_repository(session_path, tmp_path, capsys):
    base = tmp_path / "walls"
    session_path.write_text(
        SESSION.replace("  year: 2024\n", f"  year: 2024\n  base_dir: {json.dumps(str(base))}\n"),
        encoding="utf-8",
    )

    assert main.main(["--config", str(session_path)]) == 0

    out = capsys.readouterr().out
    assert "Generated 3 commits on main" in out
    repos = list(base.iterdir())
    assert len(repos) == 1
    assert repos[0].name.startswith("alice-2024-")


def test_export_calendar_writes_sorted_days(session_path, tmp_path, capsys):
    out_path = tmp_path / "export" / "cal.json"

    assert main.main(["--config", str(session_path), "--export-calendar", str(out_path)]) == 0

    assert json.loads(out_path.read_text(encoding="utf-8")) == [
        {"date": "2024-01-01", "count": 2},
        {"date": "2024-01-03", "count": 1},
    ]
    assert "Exported 2 days" in capsys.readouterr().out


def test_exported_calendar_loads_back(session_path, tmp_path, capsys):
    out_path = tmp_path / "cal.json"
    main.main(["--config", str(session_path), "--export-calendar", str(out_path)])
    capsys.readouterr()

    assert main.main(["--config", str(session_path), "--calendar", str(out_path), "--dry-run"]) == 0
    assert "Commits: 3" in capsys.readouterr().out


def test_export_rejects_malformed_dates(tmp_path, capsys):
    path = tmp_path / "session.yaml"
    path.write_text('contributions: [{"date": "2024-02-30", "count": 1}]\n', encoding="utf-8")
    out_path = tmp_path / "cal.json"

    assert main.main(["--config", str(path), "--export-calendar", str(out_path)]) == 2
    assert "invalid date" in capsys.readouterr().err
    assert not out_path.exists()
