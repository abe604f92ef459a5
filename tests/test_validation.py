"""
Tests for calendar normalisation, contribution parsing and identity rules.
"""

from datetime import timezone
from pathlib import Path

import pytest

from calsynth.config import Config, IdentityConfig, RepositoryConfig
from calsynth.validation import (
    ContributionDay,
    EmptyInputError,
    ValidationError,
    normalize_calendar,
    parse_contributions,
    resolve_timezone,
    validate_config,
    validate_identity,
)


def _cfg(contributions, **overrides):
    values = dict(
        identity=IdentityConfig(name="alice", email=None),
        repository=RepositoryConfig(name=None, base_dir=None, year=None),
        timezone=None,
        git=None,
        contributions=contributions,
        calendar_file=None,
    )
    values.update(overrides)
    return Config(**values)


class TestNormalizeCalendar:
    def test_sorts_ascending_and_drops_zero_counts(self):
        days = [
            ContributionDay("2024-03-01", 1),
            ContributionDay("2024-01-05", 0),
            ContributionDay("2024-01-02", 4),
        ]

        result = normalize_calendar(days)

        assert result == [ContributionDay("2024-01-02", 4), ContributionDay("2024-03-01", 1)]

    def test_empty_input_is_rejected(self):
        with pytest.raises(EmptyInputError):
            normalize_calendar([])

    def test_zero_total_is_rejected(self):
        with pytest.raises(EmptyInputError) as exc:
            normalize_calendar([ContributionDay("2024-02-05", 0)])

        assert isinstance(exc.value, ValidationError)
        assert "no commits to generate" in str(exc.value)

    def test_negative_count_is_rejected_with_entry_path(self):
        days = [ContributionDay("2024-01-01", 3), ContributionDay("2024-01-02", -1)]

        with pytest.raises(ValidationError) as exc:
            normalize_calendar(days)

        assert not isinstance(exc.value, EmptyInputError)
        assert exc.value.path == "contributions[1].count"

    def test_duplicate_dates_are_kept_in_input_order(self, caplog):
        days = [
            ContributionDay("2024-01-02", 1),
            ContributionDay("2024-01-01", 2),
            ContributionDay("2024-01-02", 3),
        ]

        with caplog.at_level("WARNING", logger="calsynth.validation"):
            result = normalize_calendar(days)

        assert [(d.date, d.count) for d in result] == [
            ("2024-01-01", 2),
            ("2024-01-02", 1),
            ("2024-01-02", 3),
        ]
        assert "2024-01-02 appears more than once" in caplog.text

    def test_accepts_any_iterable(self):
        result = normalize_calendar(iter([ContributionDay("2024-01-01", 1)]))
        assert len(result) == 1


class TestParseContributions:
    def test_parses_entries(self):
        result = parse_contributions([{"date": " 2024-01-01 ", "count": 2}])
        assert result == [ContributionDay("2024-01-01", 2)]

    def test_rejects_non_list(self):
        with pytest.raises(ValidationError):
            parse_contributions({"date": "2024-01-01", "count": 1})

    def test_rejects_missing_field(self):
        with pytest.raises(ValidationError) as exc:
            parse_contributions([{"date": "2024-01-01"}])

        assert exc.value.path == "contributions[0]"
        assert "count" in str(exc.value)

    def test_rejects_unknown_field(self):
        with pytest.raises(ValidationError) as exc:
            parse_contributions([{"date": "2024-01-01", "count": 1, "colour": "green"}])

        assert "colour" in str(exc.value)

    @pytest.mark.parametrize("count", [True, 1.5, "3", None])
    def test_rejects_non_integer_count(self, count):
        with pytest.raises(ValidationError) as exc:
            parse_contributions([{"date": "2024-01-01", "count": count}])

        assert exc.value.path == "contributions[0].count"

    def test_rejects_non_string_date(self):
        with pytest.raises(ValidationError) as exc:
            parse_contributions([{"date": 20240101, "count": 1}], "calendar")

        assert exc.value.path == "calendar[0].date"


class TestIdentity:
    def test_defaults(self):
        identity = validate_identity(None, "  ")
        assert identity.name == "calsynth"
        assert identity.email == "calsynth@users.noreply.github.com"

    def test_email_defaults_from_name(self):
        assert validate_identity("bob", None).email == "bob@users.noreply.github.com"

    @pytest.mark.parametrize("name", ["a<b", "a>b", "line\nbreak"])
    def test_rejects_characters_fast_import_cannot_carry(self, name):
        with pytest.raises(ValidationError) as exc:
            validate_identity(name, "x@example.com")

        assert exc.value.path == "identity.name"


class TestTimezone:
    @pytest.mark.parametrize("name", ["UTC", "utc", "Z", "Etc/UTC"])
    def test_utc_shortcuts(self, name):
        assert resolve_timezone("timezone", name) is timezone.utc

    def test_unknown_zone(self):
        with pytest.raises(ValidationError):
            resolve_timezone("timezone", "Mars/Olympus_Mons")


class TestValidateConfig:
    def test_builds_validated_config(self):
        cfg = _cfg(
            [{"date": "2024-01-03", "count": 1}, {"date": "2024-01-01", "count": 2}],
            repository=RepositoryConfig(name="wall", base_dir=Path("/tmp/x"), year=2024),
        )

        validated = validate_config(cfg)

        assert validated.identity.name == "alice"
        assert validated.repo_name == "wall"
        assert validated.year == 2024
        assert validated.base_dir == Path("/tmp/x")
        assert validated.timezone_name == "UTC"
        assert validated.tz is timezone.utc
        assert validated.git == "git"
        assert [d.date for d in validated.days] == ["2024-01-01", "2024-01-03"]

    def test_days_override_config_contributions(self):
        cfg = _cfg([{"date": "2024-01-01", "count": -5}])

        validated = validate_config(cfg, [ContributionDay("2024-05-05", 1)])

        assert validated.days == [ContributionDay("2024-05-05", 1)]

    def test_missing_contributions(self):
        with pytest.raises(EmptyInputError):
            validate_config(_cfg(None))

    def test_non_positive_year(self):
        cfg = _cfg(
            [{"date": "2024-01-01", "count": 1}],
            repository=RepositoryConfig(name=None, base_dir=None, year=0),
        )

        with pytest.raises(ValidationError) as exc:
            validate_config(cfg)

        assert exc.value.path == "repository.year"
