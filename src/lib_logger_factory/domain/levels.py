"""Severity levels shared by handlers, activation strategies and processors.

Purpose
    Map the eight-step severity model (debug through emergency) onto the
    integer levels of :mod:`logging`, adding ``NOTICE``, ``ALERT`` and
    ``EMERGENCY`` between and above the standard library ones.

Contents
    - Level constants (``DEBUG`` ... ``EMERGENCY``) and :data:`LEVELS`.
    - ``to_level``: normalise a level name or integer.
    - ``level_name``: canonical lower-case name for an integer level.
"""

from __future__ import annotations

import logging
from typing import Final

DEBUG: Final[int] = logging.DEBUG
INFO: Final[int] = logging.INFO
NOTICE: Final[int] = 25
WARNING: Final[int] = logging.WARNING
ERROR: Final[int] = logging.ERROR
CRITICAL: Final[int] = logging.CRITICAL
ALERT: Final[int] = 55
EMERGENCY: Final[int] = 60

LEVELS: Final[dict[str, int]] = {
    "debug": DEBUG,
    "info": INFO,
    "notice": NOTICE,
    "warning": WARNING,
    "error": ERROR,
    "critical": CRITICAL,
    "alert": ALERT,
    "emergency": EMERGENCY,
}
"""Level names in ascending severity order."""

_ALIASES: Final[dict[str, str]] = {"warn": "warning", "fatal": "critical"}

logging.addLevelName(NOTICE, "NOTICE")
logging.addLevelName(ALERT, "ALERT")
logging.addLevelName(EMERGENCY, "EMERGENCY")


def to_level(value: int | str) -> int:
    """Return the integer level for *value*.

    Inputs
        value: Integer level or a level name (case-insensitive).
    Raises
        ValueError: When the name is unknown or the type is unsupported.

    Examples
    --------
    >>> to_level("Notice")
    25
    >>> to_level(40)
    40
    >>> to_level("loud")
    Traceback (most recent call last):
    ...
    ValueError: Level "loud" is not defined, use one of: debug, info, notice, warning, error, critical, alert, emergency
    """

    if isinstance(value, bool):
        raise ValueError(f"Level {value!r} is not a valid level")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        if key in LEVELS:
            return LEVELS[key]
        if key.isdigit():
            return int(key)
        raise ValueError(f'Level "{value}" is not defined, use one of: {", ".join(LEVELS)}')
    raise ValueError(f"Level {value!r} is not a valid level")


def level_name(level: int) -> str:
    """Return the canonical lower-case name of *level*, or its number as text.

    >>> level_name(55)
    'alert'
    """

    for name, number in LEVELS.items():
        if number == level:
            return name
    return str(level)
