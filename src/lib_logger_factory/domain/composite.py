"""Composite handlers wrapping one or many child handlers.

Purpose
-------
Add cross-cutting behaviour (buffering, conditional activation, level
filtering, deduplication, overflow thresholds, sampling, fan-out) around
already built child handlers.

Contents
--------
* :class:`WrapperHandler` – shared base for single-child decorators.
* :class:`BufferHandler`, :class:`FingersCrossedHandler`,
  :class:`FilterHandler`, :class:`DeduplicationHandler`,
  :class:`OverflowHandler`, :class:`SamplingHandler` – single-child decorators.
* :class:`GroupHandler`, :class:`FallbackGroupHandler` – multi-child handlers.

System Role
-----------
The pipeline assembler builds children first (including their formatter and
processors) and passes them to these constructors.
"""

from __future__ import annotations

import logging
import random
import time as _time
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .activation import ActivationStrategy, ErrorLevelActivationStrategy
from .handlers import Handler
from .levels import DEBUG, EMERGENCY, ERROR, LEVELS, WARNING, level_name, to_level
from .records import clone_record, prepare_record


class WrapperHandler(Handler):
    """Base for handlers that decorate exactly one child handler.

    Setting a formatter on the wrapper forwards it to the child when the child
    accepts one.
    """

    def __init__(self, handler: Handler, level: int | str = DEBUG, bubble: bool = True) -> None:
        super().__init__(level, bubble)
        self.handler = handler

    def setFormatter(self, fmt: logging.Formatter | None) -> None:  # noqa: N802 - logging API
        super().setFormatter(fmt)
        if self.handler.formattable:
            self.handler.setFormatter(fmt)

    def _prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record = prepare_record(record)
        if self._processors:
            record = self.process_record(record)
        return record

    def emit(self, record: logging.LogRecord) -> None:
        self.handler.handle(record)

    def close(self) -> None:
        try:
            self.handler.close()
        finally:
            super().close()

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["handler"] = self.handler.describe()
        return description


class BufferHandler(WrapperHandler):
    """Collect records and hand them to the child in one batch on flush/close.

    ``buffer_limit`` of 0 keeps every record. Once the limit is reached either
    the buffer is flushed (``flush_on_overflow``) or the oldest record is dropped.
    """

    def __init__(
        self,
        handler: Handler,
        buffer_limit: int = 0,
        level: int | str = DEBUG,
        bubble: bool = True,
        flush_on_overflow: bool = False,
    ) -> None:
        super().__init__(handler, level, bubble)
        self.buffer_limit = int(buffer_limit)
        self.flush_on_overflow = bool(flush_on_overflow)
        self.buffer: list[logging.LogRecord] = []

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self.is_handling(record):
            return False
        if 0 < self.buffer_limit <= len(self.buffer):
            if self.flush_on_overflow:
                self.flush()
            else:
                self.buffer.pop(0)
        self.buffer.append(self._prepare(record))
        return not self.bubble

    def flush(self) -> None:
        if not self.buffer:
            return
        records, self.buffer = self.buffer, []
        self.handler.handle_batch(records)

    def clear(self) -> None:
        self.buffer = []

    def close(self) -> None:
        try:
            self.flush()
        finally:
            super().close()

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["buffer_limit"] = self.buffer_limit
        return description


class FingersCrossedHandler(WrapperHandler):
    """Buffer every record until one activates the strategy, then replay them.

    Why
    ----
    Debug noise is only interesting when something went wrong; this keeps it
    out of the sink until an activating record arrives.

    What
    ----
    * ``activation_strategy`` may be ``None`` (warning), a level, or an
      :class:`ActivationStrategy`.
    * ``buffer_size`` > 0 keeps only the latest records.
    * ``stop_buffering`` switches to pass-through mode after activation.
    * ``passthru_level`` forwards buffered records at or above that level on close.
    """

    def __init__(
        self,
        handler: Handler,
        activation_strategy: ActivationStrategy | int | str | None = None,
        buffer_size: int = 0,
        bubble: bool = True,
        stop_buffering: bool = True,
        passthru_level: int | str | None = None,
    ) -> None:
        super().__init__(handler, DEBUG, bubble)
        if activation_strategy is None:
            activation_strategy = ErrorLevelActivationStrategy(WARNING)
        elif not isinstance(activation_strategy, ActivationStrategy):
            activation_strategy = ErrorLevelActivationStrategy(activation_strategy)
        self.activation_strategy = activation_strategy
        self.buffer_size = int(buffer_size)
        self.stop_buffering = bool(stop_buffering)
        self.passthru_level = None if passthru_level is None else to_level(passthru_level)
        self.buffering = True
        self.buffer: list[logging.LogRecord] = []

    def is_handling(self, record: logging.LogRecord) -> bool:
        return True

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record = self._prepare(record)
        if self.buffering:
            self.buffer.append(record)
            if 0 < self.buffer_size < len(self.buffer):
                self.buffer.pop(0)
            if self.activation_strategy.is_handler_activated(record):
                self.activate()
        else:
            self.handler.handle(record)
        return not self.bubble

    def activate(self) -> None:
        """Replay the buffer into the child and optionally stop buffering."""

        if self.stop_buffering:
            self.buffering = False
        records, self.buffer = self.buffer, []
        self.handler.handle_batch(records)

    def reset(self) -> None:
        self.buffering = True
        self.buffer = []

    def close(self) -> None:
        try:
            if self.passthru_level is not None:
                passthru = [record for record in self.buffer if record.levelno >= self.passthru_level]
                if passthru:
                    self.handler.handle_batch(passthru)
            self.buffer = []
        finally:
            super().close()

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["activation_strategy"] = type(self.activation_strategy).__name__
        return description


class FilterHandler(WrapperHandler):
    """Forward only records whose level is accepted.

    ``min_level_or_list`` is either the lowest accepted level or an explicit
    list of accepted levels (``max_level`` is then ignored).
    """

    def __init__(
        self,
        handler: Handler,
        min_level_or_list: int | str | Sequence[int | str] = DEBUG,
        max_level: int | str = EMERGENCY,
        bubble: bool = True,
    ) -> None:
        super().__init__(handler, DEBUG, bubble)
        self.set_accepted_levels(min_level_or_list, max_level)

    def set_accepted_levels(
        self, min_level_or_list: int | str | Sequence[int | str], max_level: int | str = EMERGENCY
    ) -> None:
        if isinstance(min_level_or_list, (list, tuple, set, frozenset)):
            levels = frozenset(to_level(level) for level in min_level_or_list)
            self.accepted_levels: frozenset[int] | None = levels
            self.min_level = min(levels, default=DEBUG)
            self.max_level = max(levels, default=EMERGENCY)
        else:
            self.accepted_levels = None
            self.min_level = to_level(min_level_or_list)
            self.max_level = to_level(max_level)

    def is_handling(self, record: logging.LogRecord) -> bool:
        if self.accepted_levels is not None:
            return record.levelno in self.accepted_levels
        return self.min_level <= record.levelno <= self.max_level

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self.is_handling(record):
            return False
        self.handler.handle(self._prepare(record))
        return not self.bubble

    def handle_batch(self, records: Iterable[logging.LogRecord]) -> None:
        accepted = [self._prepare(record) for record in records if self.is_handling(record)]
        if accepted:
            self.handler.handle_batch(accepted)


class DeduplicationHandler(BufferHandler):
    """Drop repeated high-severity batches seen within ``time`` seconds.

    Records are buffered until flush. If at least one record at or above
    ``deduplication_level`` was not seen within the window, the whole buffer
    goes to the child; otherwise it is discarded. Seen entries are kept in
    memory and, when ``deduplication_store`` names a file, persisted there as
    ``timestamp:LEVEL:message`` lines.
    """

    def __init__(
        self,
        handler: Handler,
        deduplication_store: str | Path | None = None,
        deduplication_level: int | str = ERROR,
        time: int = 60,
        bubble: bool = True,
    ) -> None:
        super().__init__(handler, 0, DEBUG, bubble, False)
        self.deduplication_store = Path(deduplication_store) if deduplication_store is not None else None
        self.deduplication_level = to_level(deduplication_level)
        self.time = int(time)
        self._seen: list[tuple[float, str, str]] = []

    def flush(self) -> None:
        if not self.buffer:
            return
        now = _time.time()
        seen = self._load_store()
        candidates = False
        passthru = False
        for record in self.buffer:
            if record.levelno < self.deduplication_level:
                continue
            candidates = True
            if self._is_duplicate(seen, record, now):
                continue
            passthru = True
            entry = (record.created, level_name(record.levelno).upper(), record.getMessage())
            seen.append(entry)
            self._append_store(entry)
        records, self.buffer = self.buffer, []
        if passthru or not candidates:
            self.handler.handle_batch(records)
        self._seen = [entry for entry in seen if entry[0] > now - self.time]

    def _is_duplicate(self, seen: list[tuple[float, str, str]], record: logging.LogRecord, now: float) -> bool:
        name = level_name(record.levelno).upper()
        message = record.getMessage()
        return any(
            stamp > now - self.time and entry_level == name and entry_message == message
            for stamp, entry_level, entry_message in seen
        )

    def _load_store(self) -> list[tuple[float, str, str]]:
        if self.deduplication_store is None or not self.deduplication_store.is_file():
            return list(self._seen)
        entries: list[tuple[float, str, str]] = []
        for line in self.deduplication_store.read_text(encoding="utf-8").splitlines():
            parts = line.split(":", 2)
            if len(parts) == 3:
                entries.append((float(parts[0]), parts[1], parts[2]))
        return entries

    def _append_store(self, entry: tuple[float, str, str]) -> None:
        if self.deduplication_store is None:
            return
        self.deduplication_store.parent.mkdir(parents=True, exist_ok=True)
        message = entry[2].replace("\n", " ")
        with self.deduplication_store.open("a", encoding="utf-8") as handle:
            handle.write(f"{entry[0]}:{entry[1]}:{message}\n")


class OverflowHandler(WrapperHandler):
    """Hold records back until a per-level count is exceeded.

    ``threshold_map`` maps level names (or numbers) to the number of records
    that are buffered before the buffer for that level is released and later
    records pass straight through.
    """

    def __init__(
        self,
        handler: Handler,
        threshold_map: Mapping[int | str, int] | None = None,
        level: int | str = DEBUG,
        bubble: bool = True,
    ) -> None:
        super().__init__(handler, level, bubble)
        self.threshold_map: dict[int, int] = {number: 0 for number in LEVELS.values()}
        for key, count in (threshold_map or {}).items():
            self.threshold_map[to_level(key)] = int(count)
        self.buffer: dict[int, list[logging.LogRecord]] = {}

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self.is_handling(record):
            return False
        record = self._prepare(record)
        level = record.levelno
        remaining = self.threshold_map.setdefault(level, 0)
        if remaining > 0:
            self.threshold_map[level] = remaining - 1
            self.buffer.setdefault(level, []).append(record)
            return not self.bubble
        if remaining == 0:
            self.threshold_map[level] = -1
            held = self.buffer.pop(level, [])
            if held:
                self.handler.handle_batch(held)
        self.handler.handle(record)
        return not self.bubble


class SamplingHandler(WrapperHandler):
    """Forward roughly one in ``factor`` records to the child."""

    def __init__(self, handler: Handler, factor: int, *, rng: random.Random | None = None) -> None:
        if int(factor) < 1:
            raise ValueError("Factor is missing or is less than 1")
        super().__init__(handler, DEBUG, True)
        self.factor = int(factor)
        self._rng = rng or random.Random()

    def is_handling(self, record: logging.LogRecord) -> bool:
        return self.handler.is_handling(record)

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self.is_handling(record):
            return False
        if self._rng.randint(1, self.factor) == 1:
            self.handler.handle(self._prepare(record))
        return not self.bubble

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["factor"] = self.factor
        return description


class GroupHandler(Handler):
    """Fan each record out to several handlers.

    Groups take no formatter of their own; each member keeps its own.
    """

    formattable = False

    def __init__(self, handlers: Sequence[Handler], bubble: bool = True) -> None:
        super().__init__(DEBUG, bubble)
        self.handlers: list[Handler] = list(handlers)

    def is_handling(self, record: logging.LogRecord) -> bool:
        return any(handler.is_handling(record) for handler in self.handlers)

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record = prepare_record(record)
        if self._processors:
            record = self.process_record(record)
        self._dispatch(record)
        return not self.bubble

    def _dispatch(self, record: logging.LogRecord) -> None:
        for handler in self.handlers:
            handler.handle(clone_record(record))

    def emit(self, record: logging.LogRecord) -> None:
        self._dispatch(record)

    def close(self) -> None:
        try:
            for handler in self.handlers:
                handler.close()
        finally:
            super().close()

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["handlers"] = [handler.describe() for handler in self.handlers]
        return description


class FallbackGroupHandler(GroupHandler):
    """Try members in order until one handles the record without raising.

    When every member raises, the last error propagates.
    """

    def _dispatch(self, record: logging.LogRecord) -> None:
        last_error: Exception | None = None
        for handler in self.handlers:
            try:
                handler.handle(clone_record(record))
            except Exception as exc:
                last_error = exc
                continue
            return
        if last_error is not None:
            raise last_error
