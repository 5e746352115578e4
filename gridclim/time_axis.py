"""
Conversion of model time encoding, i.e. `<unit> since <date>`, to calendar
dates. The calendar is always given by the caller: the same raw values map to
different dates under `standard` and `noleap` calendars, and a wrong choice
shifts the dates silently.

(c) Nikola Jajcay
"""

import logging
from collections import namedtuple

import cftime
import numpy as np

from .errors import TimeAxisOrderError, TimeUnitsParseError

__all__ = [
    "CALENDARS",
    "TIME_UNITS",
    "TimeUnits",
    "dataset_dates",
    "extract_day_month_year",
    "normalise_calendar",
    "parse_time_units",
    "to_calendar_dates",
]

TIME_UNITS = {
    "days": "day",
    "day": "day",
    "hours": "hour",
    "hour": "hour",
}

# accepted calendar names -> cftime calendar
CALENDARS = {
    "standard": "standard",
    "gregorian": "standard",
    "proleptic_gregorian": "proleptic_gregorian",
    "noleap": "noleap",
    "365_day": "noleap",
    "all_leap": "all_leap",
    "366_day": "all_leap",
    "360_day": "360_day",
    "julian": "julian",
}

TimeUnits = namedtuple("TimeUnits", ["unit", "year", "month", "day"])


def normalise_calendar(calendar):
    """
    Return cftime name of the calendar. Names are case insensitive, so both
    `noleap` and `noLeap` work.

    :param calendar: calendar name
    :type calendar: str
    :rtype: str
    """
    assert isinstance(
        calendar, str
    ), f"Calendar has to be str, got {type(calendar)}"
    if calendar.lower() not in CALENDARS:
        raise ValueError(
            f"`{calendar}` not understood, use one of the {list(CALENDARS)}"
        )
    return CALENDARS[calendar.lower()]


def parse_time_units(units):
    """
    Parses time units of the form `<unit> since <YYYY>-<MM>-<DD>[...]`. Time of
    the day in the origin, if present, is ignored.

    :param units: time units string
    :type units: str
    :return: unit ("day" or "hour") and origin year, month, day
    :rtype: `TimeUnits`
    """
    if not isinstance(units, str):
        raise TimeUnitsParseError(units, "not a string")
    tokens = units.split()
    if len(tokens) < 3:
        raise TimeUnitsParseError(units, "expected `<unit> since <date>`")

    unit_token, since, date_token = tokens[:3]
    if since.lower() != "since":
        raise TimeUnitsParseError(units, f"expected `since`, got `{since}`")
    if unit_token.lower() not in TIME_UNITS:
        raise TimeUnitsParseError(
            units, f"unit `{unit_token}` not one of {list(TIME_UNITS)}"
        )

    date_parts = date_token.split("T")[0].split("-")
    if len(date_parts) != 3:
        raise TimeUnitsParseError(units, f"date `{date_token}` not YYYY-MM-DD")
    try:
        year, month, day = (int(part) for part in date_parts)
    except ValueError:
        raise TimeUnitsParseError(
            units, f"date `{date_token}` not YYYY-MM-DD"
        ) from None
    if not (1 <= month <= 12 and 1 <= day <= 31):
        raise TimeUnitsParseError(units, f"date `{date_token}` out of range")

    return TimeUnits(TIME_UNITS[unit_token.lower()], year, month, day)


def to_calendar_dates(values, year, month, day, unit, calendar):
    """
    Converts raw time values to calendar dates by adding them to the origin
    date within given calendar.

    :param values: raw time values, non-decreasing
    :type values: np.ndarray|list[float]
    :param year: origin year
    :type year: int
    :param month: origin month
    :type month: int
    :param day: origin day
    :type day: int
    :param unit: unit of raw values, "day" or "hour"
    :type unit: str
    :param calendar: calendar of the model, e.g. "standard" or "noleap"
    :type calendar: str
    :return: one date per raw value
    :rtype: tuple[cftime.datetime]
    """
    calendar = normalise_calendar(calendar)
    if unit not in TIME_UNITS:
        raise ValueError(
            f"`{unit}` not understood, use one of the {list(TIME_UNITS)}"
        )
    unit = TIME_UNITS[unit]

    values = np.asarray(values, dtype=float)
    assert values.ndim == 1, f"Need 1D time values, got {values.shape}"
    if not np.all(np.isfinite(values)):
        raise TimeAxisOrderError("Time values contain NaNs or infinities")
    if np.any(np.diff(values) < 0):
        raise TimeAxisOrderError(
            "Time values have to be non-decreasing, first decrease at index "
            f"{int(np.argmax(np.diff(values) < 0)) + 1}"
        )

    origin = f"{unit}s since {year:04d}-{month:02d}-{day:02d}"
    try:
        check = cftime.num2date(0, units=origin, calendar=calendar)
    except ValueError as exc:
        raise TimeUnitsParseError(origin, f"{exc} in {calendar} calendar") from exc
    if (check.year, check.month, check.day) != (year, month, day):
        raise TimeUnitsParseError(
            origin, f"origin is not a valid date in {calendar} calendar"
        )

    if values.size == 0:
        return ()
    dates = cftime.num2date(values, units=origin, calendar=calendar)
    return tuple(np.atleast_1d(dates))


def extract_day_month_year(dates):
    """
    Return days, months and years of the dates as int arrays.
    """
    day = np.array([date.day for date in dates], dtype=int)
    month = np.array([date.month for date in dates], dtype=int)
    year = np.array([date.year for date in dates], dtype=int)
    return day, month, year


def dataset_dates(dataset, calendar):
    """
    Calendar dates of `GridDataset` time axis. Warns when `calendar` disagrees
    with the calendar attribute stored in the file.

    :param dataset: gridded dataset
    :type dataset: `GridDataset`
    :param calendar: calendar to use
    :type calendar: str
    :rtype: tuple[cftime.datetime]
    """
    calendar = normalise_calendar(calendar)
    if dataset.calendar is not None:
        file_calendar = CALENDARS.get(str(dataset.calendar).lower())
        if file_calendar != calendar:
            logging.warning(
                f"Using {calendar} calendar for {dataset.filename}, but its "
                f"time axis declares `{dataset.calendar}`: dates may be shifted"
            )
    units = parse_time_units(dataset.time_units)
    logging.debug(
        f"...converting {dataset.time.shape[0]} time steps from "
        f"`{dataset.time_units}` in {calendar} calendar..."
    )
    return to_calendar_dates(
        dataset.time, units.year, units.month, units.day, units.unit, calendar
    )
