"""
Tests for the versioned rate-schedule configuration.

Covers:
- The shipped schedules and date selection
- Strict-mode tables
- Selecting from a preloaded schedule set
- Loader parsing and checksums
- Schedule set validation
"""

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

import ukbooks_config
from ukbooks_config import get_rate_schedule, load_rate_schedule_set
from ukbooks_config.loader import (
    compute_checksum,
    load_rate_schedules,
    parse_rate,
    parse_rate_schedule,
)
from ukbooks_config.validator import validate_schedules
from ukbooks_engines.rates import VATCategory
from ukbooks_kernel.exceptions import (
    ConfigError,
    InvalidRateScheduleError,
    RateScheduleNotFoundError,
    UnknownVATCategoryError,
)

VAT = {"STANDARD": "20.00", "REDUCED": "5.00", "ZERO": "0.00", "EXEMPT": "0.00"}
MILEAGE = {"car": "0.45", "van": "0.45", "motorcycle": "0.24", "bike": "0.20"}


def _schedule_data(version, effective_from, effective_to=None, **overrides):
    data = {
        "version": version,
        "effective_from": effective_from,
        "vat_rates": dict(VAT),
        "mileage_rates": dict(MILEAGE),
    }
    if effective_to is not None:
        data["effective_to"] = effective_to
    data.update(overrides)
    return data


def _write(directory: Path, name: str, data: dict) -> None:
    (directory / name).write_text(yaml.safe_dump(data), encoding="utf-8")


class TestShippedSchedules:
    """Tests against the schedules packaged in ukbooks_config/sets."""

    def test_historic_standard_rate(self):
        schedule = get_rate_schedule(date(2010, 6, 1))
        assert schedule.version == "UK-2010-01"
        assert schedule.vat_rates.rate_for(VATCategory.STANDARD) == Decimal("17.50")
        assert schedule.mileage_rates.rate_for("car") == Decimal("0.40")

    def test_january_2011_rise(self):
        schedule = get_rate_schedule(date(2011, 1, 4))
        assert schedule.vat_rates.rate_for("STANDARD") == Decimal("20.00")
        assert schedule.mileage_rates.rate_for("car") == Decimal("0.40")

    def test_boundary_day_belongs_to_old_schedule(self):
        assert get_rate_schedule(date(2011, 1, 3)).version == "UK-2010-01"

    def test_current_rates(self):
        schedule = get_rate_schedule(date(2024, 2, 15))
        assert schedule.version == "UK-2011-04"
        assert schedule.vat_rates.rate_for("STANDARD") == Decimal("20.00")
        assert schedule.mileage_rates.rate_for("car") == Decimal("0.45")
        assert schedule.mileage_rates.rate_for("bike") == Decimal("0.20")

    def test_defaults_to_today(self):
        assert get_rate_schedule().version == "UK-2011-04"

    def test_before_first_schedule(self):
        with pytest.raises(RateScheduleNotFoundError, match="2009-12-31") as exc_info:
            get_rate_schedule(date(2009, 12, 31))
        assert exc_info.value.code == "RATE_SCHEDULE_NOT_FOUND"
        assert isinstance(exc_info.value, ConfigError)

    def test_checksum_is_stable(self):
        first = get_rate_schedule(date(2024, 1, 1))
        second = get_rate_schedule(date(2024, 1, 1))
        assert first.checksum == second.checksum
        assert len(first.checksum) == 64

    def test_strict_tables(self):
        schedule = get_rate_schedule(date(2024, 1, 1), strict=True)
        with pytest.raises(UnknownVATCategoryError):
            schedule.vat_rates.rate_for("LUXURY")

    def test_rate_trace_logged(self, captured_logs):
        schedule = get_rate_schedule(date(2024, 1, 1))

        traces = [r for r in captured_logs() if r["message"] == "UKBOOKS_RATE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["rate_version"] == "UK-2011-04"
        assert traces[0]["checksum"] == schedule.checksum
        assert traces[0]["as_of_date"] == "2024-01-01"


class TestCustomConfigDir:
    """Tests against schedule sets written to a temporary directory."""

    def test_single_open_ended_schedule(self, tmp_path):
        _write(tmp_path, "a.yaml", _schedule_data("T-1", "2020-01-01"))
        schedule = get_rate_schedule(date(2030, 1, 1), config_dir=tmp_path)
        assert schedule.version == "T-1"
        assert schedule.effective_to is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_rate_schedule(date(2024, 1, 1), config_dir=tmp_path / "nope")

    def test_empty_directory_invalid(self, tmp_path):
        with pytest.raises(InvalidRateScheduleError, match="no rate schedules"):
            get_rate_schedule(date(2024, 1, 1), config_dir=tmp_path)

    def test_overlap_rejected(self, tmp_path):
        _write(tmp_path, "a.yaml", _schedule_data("T-1", "2020-01-01", "2021-06-30"))
        _write(tmp_path, "b.yaml", _schedule_data("T-2", "2021-01-01"))
        with pytest.raises(InvalidRateScheduleError, match="T-1 overlaps T-2"):
            get_rate_schedule(date(2020, 6, 1), config_dir=tmp_path)

    def test_invalid_set_logged(self, tmp_path, captured_logs):
        _write(tmp_path, "a.yaml", _schedule_data("T-1", "2020-01-01", vat_rates={"STANDARD": "20"}))
        with pytest.raises(InvalidRateScheduleError) as exc_info:
            get_rate_schedule(date(2020, 6, 1), config_dir=tmp_path)

        assert "T-1: vat_rates missing EXEMPT" in exc_info.value.problems
        logged = [r for r in captured_logs() if r["message"] == "rate_schedule_invalid"]
        assert logged[0]["level"] == logging.getLevelName(logging.ERROR)

    def test_gap_between_schedules(self, tmp_path):
        _write(tmp_path, "a.yaml", _schedule_data("T-1", "2020-01-01", "2020-12-31"))
        _write(tmp_path, "b.yaml", _schedule_data("T-2", "2022-01-01"))
        assert get_rate_schedule(date(2022, 5, 1), config_dir=tmp_path).version == "T-2"
        with pytest.raises(RateScheduleNotFoundError):
            get_rate_schedule(date(2021, 5, 1), config_dir=tmp_path)



class TestScheduleSet:
    """Schedules loaded once and selected by date."""

    def setup_method(self):
        self.schedule_set = load_rate_schedule_set()

    def test_versions_oldest_first(self):
        assert self.schedule_set.versions == ("UK-2010-01", "UK-2011-01", "UK-2011-04")

    def test_selection_reads_no_files(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("schedules re-read")

        monkeypatch.setattr(ukbooks_config, "load_rate_schedules", fail)
        old = get_rate_schedule(date(2010, 6, 1), schedule_set=self.schedule_set)
        current = get_rate_schedule(date(2024, 1, 1), schedule_set=self.schedule_set)
        assert (old.version, current.version) == ("UK-2010-01", "UK-2011-04")

    def test_strict_selection_leaves_set_permissive(self):
        strict = get_rate_schedule(date(2024, 1, 1), strict=True, schedule_set=self.schedule_set)
        assert strict.strict is True
        assert self.schedule_set.covering(date(2024, 1, 1)).strict is False
        assert strict.checksum == self.schedule_set.covering(date(2024, 1, 1)).checksum

    def test_date_outside_set(self, tmp_path):
        _write(tmp_path, "a.yaml", _schedule_data("T-1", "2020-01-01", "2020-12-31"))
        schedule_set = load_rate_schedule_set(tmp_path)
        with pytest.raises(RateScheduleNotFoundError, match="2021-01-01"):
            get_rate_schedule(date(2021, 1, 1), schedule_set=schedule_set)

    def test_load_logged(self, captured_logs):
        load_rate_schedule_set()
        loaded = [r for r in captured_logs() if r["message"] == "rate_schedules_loaded"]
        assert loaded[0]["versions"] == ["UK-2010-01", "UK-2011-01", "UK-2011-04"]


class TestLoader:
    """Tests for YAML parsing."""

    def test_schedules_sorted_by_effective_date(self, tmp_path):
        _write(tmp_path, "a.yaml", _schedule_data("T-2", "2021-01-01"))
        _write(tmp_path, "b.yaml", _schedule_data("T-1", "2020-01-01", "2020-12-31"))
        versions = [s.version for s in load_rate_schedules(tmp_path)]
        assert versions == ["T-1", "T-2"]

    def test_parse_dates_and_rates(self):
        definition = parse_rate_schedule(
            _schedule_data("T-1", date(2020, 1, 1), "2020-12-31"), source_path="x.yaml"
        )
        assert definition.effective_from == date(2020, 1, 1)
        assert definition.effective_to == date(2020, 12, 31)
        assert dict(definition.vat_rates)["STANDARD"] == Decimal("20.00")
        assert definition.source_path == "x.yaml"

    def test_missing_required_key(self):
        data = _schedule_data("T-1", "2020-01-01")
        del data["vat_rates"]
        with pytest.raises(KeyError):
            parse_rate_schedule(data)

    def test_unquoted_float_rate_kept_exact(self):
        assert parse_rate(17.5) == Decimal("17.5")

    def test_bad_rate(self):
        with pytest.raises(ValueError, match="Cannot parse rate"):
            parse_rate("lots")

    def test_checksum_changes_with_rates(self):
        base = parse_rate_schedule(_schedule_data("T-1", "2020-01-01"))
        changed = parse_rate_schedule(
            _schedule_data("T-1", "2020-01-01", vat_rates={**VAT, "STANDARD": "17.50"})
        )
        assert compute_checksum(base) != compute_checksum(changed)

    def test_checksum_ignores_key_order(self):
        forward = parse_rate_schedule(_schedule_data("T-1", "2020-01-01"))
        reverse = parse_rate_schedule(
            _schedule_data("T-1", "2020-01-01", vat_rates=dict(reversed(list(VAT.items()))))
        )
        assert compute_checksum(forward) == compute_checksum(reverse)


class TestValidator:
    """Tests for schedule set validation."""

    def _parse(self, *items):
        return [parse_rate_schedule(item) for item in items]

    def test_valid_set(self):
        schedules = self._parse(
            _schedule_data("T-1", "2020-01-01", "2020-12-31"),
            _schedule_data("T-2", "2021-01-01"),
        )
        assert validate_schedules(schedules).is_valid

    def test_duplicate_version(self):
        schedules = self._parse(
            _schedule_data("T-1", "2020-01-01", "2020-12-31"),
            _schedule_data("T-1", "2021-01-01"),
        )
        assert "T-1: duplicate version" in validate_schedules(schedules).errors

    def test_reversed_range(self):
        schedules = self._parse(_schedule_data("T-1", "2020-06-01", "2020-01-01"))
        result = validate_schedules(schedules)
        assert any("before effective_from" in e for e in result.errors)

    def test_unknown_and_negative_rates(self):
        schedules = self._parse(
            _schedule_data("T-1", "2020-01-01",
                           mileage_rates={**MILEAGE, "car": "-1", "lorry": "0.50"}),
        )
        errors = validate_schedules(schedules).errors
        assert "T-1: mileage_rates has unknown key lorry" in errors
        assert "T-1: mileage_rates car is negative (-1)" in errors

    def test_open_ended_schedule_followed_by_another(self):
        schedules = self._parse(
            _schedule_data("T-1", "2020-01-01"),
            _schedule_data("T-2", "2021-01-01"),
        )
        assert not validate_schedules(schedules).is_valid
