"""
Time range translation.

Converts dashboard time boundaries into the values the backend's
from/until parameters accept: relative shorthand passes through in
backend spelling, everything else becomes epoch seconds.
"""

import re
from typing import Optional, Union

from .. import datemath
from .constants import ROUND_DOWN, ROUND_UP, UNIT_ALIASES

RELATIVE_SHORTHAND = re.compile(r"^now-(\d+)([A-Za-z]+)$")

Direction = Optional[Union[str, bool]]


def _round_flag(direction: Direction) -> Optional[bool]:
    """Map a direction to True (up), False (down) or None (no rounding)."""
    if direction is None:
        return None
    if isinstance(direction, bool):
        return direction
    if direction == ROUND_UP:
        return True
    if direction == ROUND_DOWN:
        return False
    raise ValueError(f"unknown rounding direction {direction!r}")


def expand_unit(unit: str) -> str:
    return UNIT_ALIASES.get(unit, unit)


def translate_time(
    boundary: datemath.DateLike,
    direction: Direction = None,
    now: Optional[datemath.DateLike] = None,
    tz: str = "UTC",
) -> Union[str, int]:
    """
    Translate one time boundary for the backend.

    Args:
        boundary: "now", relative shorthand ("now-6h"), absolute string or datetime
        direction: "round-up", "round-down" or None
        now: Anchor for "now" expressions (defaults to the current time)
        tz: Zone for naive absolute boundaries

    Returns:
        "now", a relative literal such as "-6h" / "-5min", or epoch seconds

    Raises:
        DateMathError: If the boundary cannot be parsed
    """
    round_up = _round_flag(direction)

    if isinstance(boundary, str):
        if boundary == "now":
            return "now"
        match = RELATIVE_SHORTHAND.match(boundary)
        if match:
            amount, unit = match.groups()
            return f"-{amount}{expand_unit(unit)}"

    instant = datemath.parse(boundary, round_up, now=now, tz=tz)

    # The backend's range bounds are exclusive; widen by a minute when the
    # instant is not on a minute boundary so the whole range is returned.
    if instant.second:
        if round_up:
            instant = datemath.shift(instant, "m", 1)
        elif round_up is False:
            instant = datemath.shift(instant, "m", -1)

    return int(instant.timestamp())
