"""Activation strategies deciding when a fingers-crossed handler flushes."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol, runtime_checkable

from .levels import DEBUG, to_level


@runtime_checkable
class ActivationStrategy(Protocol):
    """Decide whether *record* activates the wrapped handler."""

    def is_handler_activated(self, record: logging.LogRecord) -> bool:
        ...


class ErrorLevelActivationStrategy:
    """Activate once a record reaches ``action_level``."""

    def __init__(self, action_level: int | str = DEBUG) -> None:
        self.action_level = to_level(action_level)

    def is_handler_activated(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.action_level


class ChannelLevelActivationStrategy:
    """Activate with a per-channel threshold, falling back to ``default_action_level``.

    >>> strategy = ChannelLevelActivationStrategy("error", {"audit": "info"})
    >>> record = logging.LogRecord("audit", logging.INFO, "", 0, "m", None, None)
    >>> strategy.is_handler_activated(record)
    True
    """

    def __init__(
        self,
        default_action_level: int | str = DEBUG,
        channel_to_action_level: Mapping[str, int | str] | None = None,
    ) -> None:
        self.default_action_level = to_level(default_action_level)
        self.channel_to_action_level = {
            channel: to_level(level) for channel, level in (channel_to_action_level or {}).items()
        }

    def is_handler_activated(self, record: logging.LogRecord) -> bool:
        threshold = self.channel_to_action_level.get(record.name, self.default_action_level)
        return record.levelno >= threshold
