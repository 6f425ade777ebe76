"""The assembled logger: a named channel with a handler stack and processors.

Purpose
-------
Dispatch records to a stack of :class:`~lib_logger_factory.domain.handlers.Handler`
instances, the way the pipeline configuration describes them.

System Role
-----------
:class:`Logger` is the result of assembling a configuration. Handlers pushed
later run first; a handler returning ``True`` from ``handle`` stops the record
from reaching the handlers below it. Logger-level processors run once per
record before any handler sees it.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Any, Mapping

from .handlers import Handler, _callable_name
from .levels import ALERT, CRITICAL, DEBUG, EMERGENCY, ERROR, INFO, NOTICE, WARNING, to_level
from .records import Processor, clone_record, make_record, prepare_record


class Logger:
    """Named channel owning a handler stack and a processor stack.

    >>> from lib_logger_factory.domain.handlers import TestHandler
    >>> logger = Logger("app")
    >>> sink = TestHandler()
    >>> logger.push_handler(sink)
    >>> logger.info("hello")
    True
    >>> sink.messages()
    ['hello']
    """

    def __init__(self, name: str, timezone: tzinfo = timezone.utc) -> None:
        self.name = name
        self.timezone = timezone
        self._handlers: list[Handler] = []
        self._processors: list[Processor] = []

    @property
    def handlers(self) -> tuple[Handler, ...]:
        """Handlers in dispatch order (most recently pushed first)."""

        return tuple(self._handlers)

    @property
    def processors(self) -> tuple[Processor, ...]:
        return tuple(self._processors)

    def push_handler(self, handler: Handler) -> None:
        self._handlers.insert(0, handler)

    def pop_handler(self) -> Handler:
        if not self._handlers:
            raise IndexError("You tried to pop from an empty handler stack.")
        return self._handlers.pop(0)

    def push_processor(self, processor: Processor) -> None:
        if not callable(processor):
            raise TypeError(f"Processor must be callable, got {type(processor).__name__}")
        self._processors.insert(0, processor)

    def pop_processor(self) -> Processor:
        if not self._processors:
            raise IndexError("You tried to pop from an empty processor stack.")
        return self._processors.pop(0)

    def is_handling(self, level: int | str) -> bool:
        sample = logging.LogRecord(self.name, to_level(level), "", 0, "", None, None)
        return any(handler.is_handling(sample) for handler in self._handlers)

    def handle(self, record: logging.LogRecord) -> bool:
        """Dispatch *record*; return ``True`` when at least one handler accepted it."""

        start = next(
            (index for index, handler in enumerate(self._handlers) if handler.is_handling(record)),
            None,
        )
        if start is None:
            return False
        record = prepare_record(clone_record(record), self.timezone)
        for processor in self._processors:
            record = processor(record)
        for handler in self._handlers[start:]:
            if handler.handle(record):
                break
        return True

    def log(self, level: int | str, message: str, context: Mapping[str, Any] | None = None) -> bool:
        record = make_record(self.name, to_level(level), str(message), context, tz=self.timezone)
        return self.handle(record)

    def debug(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(DEBUG, message, context)

    def info(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(INFO, message, context)

    def notice(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(NOTICE, message, context)

    def warning(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(WARNING, message, context)

    def error(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(ERROR, message, context)

    def critical(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(CRITICAL, message, context)

    def alert(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(ALERT, message, context)

    def emergency(self, message: str, context: Mapping[str, Any] | None = None) -> bool:
        return self.log(EMERGENCY, message, context)

    def bridge(self, level: int | str = DEBUG) -> logging.Handler:
        """Return a standard library handler that feeds records into this logger.

        Attach it to any :class:`logging.Logger` to route third-party log
        output through this pipeline.
        """

        return _BridgeHandler(self, to_level(level))

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "timezone": str(self.timezone),
            "handlers": [handler.describe() for handler in self._handlers],
            "processors": [_callable_name(processor) for processor in self._processors],
        }

    def close(self) -> None:
        for handler in self._handlers:
            handler.close()

    def __repr__(self) -> str:
        return f"Logger(name={self.name!r}, handlers={len(self._handlers)})"


class _BridgeHandler(logging.Handler):
    def __init__(self, target: Logger, level: int) -> None:
        super().__init__(level)
        self.target = target

    def emit(self, record: logging.LogRecord) -> None:
        self.target.handle(record)
