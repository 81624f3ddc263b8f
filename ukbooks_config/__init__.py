"""
ukbooks_config -- public entrypoint for statutory rate configuration.

Responsibility:
    Provides the ONLY way to obtain versioned rate tables at runtime:
    ``load_rate_schedule_set()`` reads and validates a schedule directory
    once, and ``get_rate_schedule()`` selects the schedule effective on a
    date. YAML loading and validation are internal tooling and never
    exposed to callers.

Architecture position:
    Configuration -- sits above ``ukbooks_engines`` and below
    ``ukbooks_modules``. Engines MUST NEVER import from ``ukbooks_config``;
    they receive the rate tables this package builds.

Failure modes:
    - ``RateScheduleNotFoundError`` -- no schedule covers the requested date.
    - ``InvalidRateScheduleError`` -- the schedule set fails validation.
    - ``FileNotFoundError`` -- the configuration directory does not exist.

Audit relevance:
    Every successful ``get_rate_schedule()`` call emits a
    ``UKBOOKS_RATE_TRACE`` log entry with the version and checksum. The
    version is also stamped on every InvoiceTotals priced with it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from ukbooks_config.loader import compute_checksum, load_rate_schedules
from ukbooks_config.schema import RateSchedule, RateScheduleDef, RateScheduleSet
from ukbooks_config.validator import validate_schedules
from ukbooks_kernel.exceptions import InvalidRateScheduleError, RateScheduleNotFoundError
from ukbooks_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default rate schedules directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "RateSchedule",
    "RateScheduleDef",
    "RateScheduleSet",
    "get_rate_schedule",
    "load_rate_schedule_set",
]


def load_rate_schedule_set(config_dir: Path | None = None) -> RateScheduleSet:
    """Read, validate and checksum every schedule in a directory.

    Call once at startup and pass the result to ``get_rate_schedule``.

    Args:
        config_dir: Override path to the schedules directory.
            Defaults to ukbooks_config/sets/.

    Raises:
        InvalidRateScheduleError: If the schedule set fails validation.
        FileNotFoundError: If ``config_dir`` does not exist.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    definitions = load_rate_schedules(sets_dir)
    validation = validate_schedules(definitions)
    if not validation.is_valid:
        _logger.error("rate_schedule_invalid", extra={
            "config_dir": str(sets_dir),
            "errors": list(validation.errors),
        })
        raise InvalidRateScheduleError(validation.errors)

    schedule_set = RateScheduleSet(
        schedules=tuple(
            RateSchedule.from_definition(d, checksum=compute_checksum(d))
            for d in definitions
        ),
        source=str(sets_dir),
    )
    _logger.info("rate_schedules_loaded", extra={
        "config_dir": schedule_set.source,
        "versions": list(schedule_set.versions),
    })
    return schedule_set


def get_rate_schedule(
    as_of_date: date | None = None,
    config_dir: Path | None = None,
    strict: bool = False,
    schedule_set: RateScheduleSet | None = None,
) -> RateSchedule:
    """Rate tables in force on a date.

    Args:
        as_of_date: Tax point to select rates for. Defaults to today.
        config_dir: Override path to the schedules directory. Ignored when
            ``schedule_set`` is given.
        strict: Return rate tables that reject unknown categories
            instead of defaulting them to a zero rate.
        schedule_set: Preloaded schedules; selecting from them reads no
            files. Without it the directory is loaded for this call.

    Returns:
        RateSchedule -- frozen, engine-ready rate tables.

    Raises:
        InvalidRateScheduleError: If the schedule set fails validation.
        RateScheduleNotFoundError: If no schedule covers ``as_of_date``.
    """
    if schedule_set is None:
        schedule_set = load_rate_schedule_set(config_dir)
    on_date = as_of_date or date.today()

    schedule = schedule_set.covering(on_date)
    if schedule is None:
        raise RateScheduleNotFoundError(on_date, schedule_set.source)
    schedule = schedule.with_strict(strict)

    _logger.info(
        "UKBOOKS_RATE_TRACE",
        extra={
            "trace_type": "UKBOOKS_RATE_TRACE",
            "rate_version": schedule.version,
            "checksum": schedule.checksum,
            "as_of_date": on_date.isoformat(),
            "strict": strict,
            "source_path": schedule.source_path,
        },
    )
    return schedule
