"""
Dashboard date math.

Parses the time expressions a dashboard time picker produces:

    now                  current instant
    now-6h               offset from now
    now-1d/d             offset, then rounded to a whole unit
    2015-10-01 12:00:00  absolute instant
    2015-10-01||+1h/h    absolute anchor followed by math

Units: y (year), M (month), w (week), d, h, m (minute), s.
Rounding (/unit) goes to the start of the unit, or to the last
millisecond of the unit when round_up is true.
"""

import re
from datetime import datetime
from typing import Optional, Union

import pandas as pd

from .exceptions import DateMathError

UNITS = "yMwdhms"

_OFFSET_KEYWORDS = {
    "y": "years",
    "M": "months",
    "w": "weeks",
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
}

_MATH_TOKEN = re.compile(r"([/+-])(\d*)([A-Za-z])")

DateLike = Union[str, datetime, pd.Timestamp]


def _localize(ts: pd.Timestamp, tz, ambiguous=True) -> pd.Timestamp:
    """
    Attach `tz` to a naive wall-clock time.

    Ambiguous wall times (clocks going back) resolve to the DST side unless
    `ambiguous` says otherwise; missing ones (clocks going forward) move to
    the first valid instant after the gap.
    """
    if ts.tzinfo is not None:
        return ts
    try:
        return ts.tz_localize(tz, ambiguous=ambiguous, nonexistent="shift_forward")
    except (ValueError, KeyError) as e:
        raise DateMathError(f"cannot place {ts} in timezone {tz}: {e}") from e


def _wall_time(ts: pd.Timestamp):
    """Naive local wall time of `ts` plus what is needed to re-localize it."""
    if ts.tzinfo is None:
        return ts, None, True
    return ts.tz_localize(None), ts.tzinfo, bool(ts.dst())


def offset(unit: str, amount: int = 1) -> pd.DateOffset:
    """Calendar offset of `amount` units, applied to wall-clock time."""
    return pd.DateOffset(**{_OFFSET_KEYWORDS[unit]: amount})


def shift(ts: pd.Timestamp, unit: str, amount: int) -> pd.Timestamp:
    """
    Move `ts` by `amount` units.

    Hours and smaller are elapsed time; days and larger follow the
    calendar, keeping the local time of day across DST changes.
    """
    if unit in "hms":
        return ts + pd.Timedelta(**{_OFFSET_KEYWORDS[unit]: amount})
    wall, tz, dst = _wall_time(ts)
    wall = wall + offset(unit, amount)
    return wall if tz is None else _localize(wall, tz, dst)


def _wall_start(wall: pd.Timestamp, unit: str) -> pd.Timestamp:
    if unit == "y":
        return wall.normalize().replace(month=1, day=1)
    if unit == "M":
        return wall.normalize().replace(day=1)
    if unit == "w":
        # ISO weeks start on Monday
        return wall.normalize() - pd.Timedelta(days=wall.weekday())
    if unit == "d":
        return wall.normalize()
    return wall.floor({"h": "h", "m": "min", "s": "s"}[unit])


def start_of(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    wall, tz, dst = _wall_time(ts)
    start = _wall_start(wall, unit)
    return start if tz is None else _localize(start, tz, dst)


def end_of(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    """Last millisecond inside the unit containing `ts`."""
    wall, tz, dst = _wall_time(ts)
    end = _wall_start(wall, unit) + offset(unit) - pd.Timedelta(milliseconds=1)
    return end if tz is None else _localize(end, tz, dst)


def parse_date_math(math: str, time: pd.Timestamp, round_up: Optional[bool] = None) -> pd.Timestamp:
    """Apply a math string such as ``-1d/d`` to `time`."""
    pos = 0
    for match in _MATH_TOKEN.finditer(math):
        if match.start() != pos:
            break
        op, digits, unit = match.groups()
        pos = match.end()

        if unit not in UNITS:
            raise DateMathError(f"invalid unit {unit!r} in {math!r}")
        num = int(digits) if digits else 1

        if op == "/":
            # rounding is only allowed on whole single units (M or 1M, not 2M)
            if num != 1:
                raise DateMathError(f"cannot round to {num}{unit} in {math!r}")
            time = end_of(time, unit) if round_up else start_of(time, unit)
        elif op == "+":
            time = shift(time, unit, num)
        else:
            time = shift(time, unit, -num)

    if pos != len(math):
        raise DateMathError(f"invalid date math {math!r}")
    return time


def parse(
    text: DateLike,
    round_up: Optional[bool] = None,
    now: Optional[DateLike] = None,
    tz: str = "UTC",
) -> pd.Timestamp:
    """
    Parse a dashboard time expression into a timezone-aware Timestamp.

    Args:
        text: Expression, datetime or Timestamp
        round_up: Round /unit expressions up (True) or down (False/None)
        now: Anchor for ``now`` expressions; defaults to the current time
        tz: Zone for naive inputs

    Raises:
        DateMathError: If the expression cannot be parsed
    """
    if isinstance(text, (datetime, pd.Timestamp)):
        return _localize(pd.Timestamp(text), tz)
    if not isinstance(text, str):
        raise DateMathError(f"cannot parse {text!r} as a date")

    text = text.strip()
    if text.startswith("now"):
        time = _localize(pd.Timestamp(now), tz) if now is not None else pd.Timestamp.now(tz=tz)
        math = text[3:]
    else:
        anchor, _, math = text.partition("||")
        try:
            time = _localize(pd.Timestamp(anchor), tz)
        except (ValueError, TypeError) as e:
            raise DateMathError(f"cannot parse {text!r} as a date: {e}") from e
        if pd.isna(time):
            raise DateMathError(f"cannot parse {text!r} as a date")

    if not math:
        return time
    return parse_date_math(math, time, round_up)
