"""Parsing and formatting of compact duration strings such as ``"1m30s"``."""

from __future__ import annotations

import re
from datetime import timedelta

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: object) -> timedelta:
    """Convert ``value`` to a :class:`timedelta`.

    Accepts timedeltas, plain numbers (seconds) and unit strings like
    ``"30s"``, ``"250ms"``, ``"1h15m"`` or ``"-1.5h"``.

    Raises:
        ValueError: If the value cannot be interpreted as a duration.
    """

    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    sign = 1.0
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)
    try:
        return timedelta(seconds=sign * float(text))
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _COMPONENT.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=sign * total)


def format_duration(value: timedelta) -> str:
    """Render ``value`` in the compact form accepted by :func:`parse_duration`."""

    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000_000:
        if micros % 1000 == 0:
            return f"{sign}{micros // 1000}ms"
        return f"{sign}{micros}us"

    hours, rest = divmod(micros, 3600 * 1_000_000)
    minutes, rest = divmod(rest, 60 * 1_000_000)
    seconds, frac = divmod(rest, 1_000_000)

    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    if frac:
        out += f"{seconds}.{frac:06d}".rstrip("0") + "s"
    else:
        out += f"{seconds}s"
    return out
