"""Pipeline handlers (sinks).

Purpose
-------
Provide the handler base class the builder attaches formatters and processors
to, plus the leaf sinks registered by default. Leaf sinks that need a network
or rotation protocol delegate to :mod:`logging.handlers`.

Contents
--------
* :class:`Handler` – base sink with level, ``bubble`` flag and processor stack.
* :class:`NullHandler` – swallows every record it handles.
* :class:`TestHandler` – keeps records in memory.
* :class:`StreamHandler` – writes formatted records to a text stream or file.
* :class:`DelegatingHandler` – forwards to a standard library handler
  (rotating file, syslog, socket, smtp).
* :class:`LoggingHandler` – bridges records into a :class:`logging.Logger`.

System Role
-----------
``handle`` returns ``True`` when the record must not bubble to the next
handler of the owning stack. ``formattable`` and ``processable`` tell the node
builder whether a formatter or processors may be attached.
"""

from __future__ import annotations

import io
import logging
import os
import sys
from pathlib import Path
from typing import IO, Any, ClassVar, Iterable

from .formatters import LineFormatter
from .levels import DEBUG, level_name, to_level
from .records import Processor, clone_record, prepare_record


class Handler(logging.Handler):
    """Base class for every sink in a pipeline.

    Why
    ----
    :class:`logging.Handler` has no notion of propagation control or record
    enrichment; pipelines need both.

    What
    ----
    Adds ``bubble``, a processor stack (last pushed runs first) and
    :meth:`describe` for introspection. Subclasses implement :meth:`emit`.
    """

    formattable: ClassVar[bool] = True
    processable: ClassVar[bool] = True

    def __init__(self, level: int | str = DEBUG, bubble: bool = True) -> None:
        super().__init__(to_level(level))
        self.bubble = bool(bubble)
        self._processors: list[Processor] = []

    @property
    def processors(self) -> tuple[Processor, ...]:
        """Processors in execution order."""

        return tuple(self._processors)

    def push_processor(self, processor: Processor) -> None:
        """Put *processor* at the front of the stack so it runs first."""

        if not callable(processor):
            raise TypeError(f"Processor must be callable, got {type(processor).__name__}")
        self._processors.insert(0, processor)

    def pop_processor(self) -> Processor:
        """Remove and return the processor that currently runs first."""

        if not self._processors:
            raise IndexError("You tried to pop from an empty processor stack.")
        return self._processors.pop(0)

    def process_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """Run the processor chain on a copy of *record* and return the copy.

        Records are shared by every handler of a stack, so changes made here
        stay with this handler and the children it forwards to.
        """

        record = clone_record(record)
        for processor in self._processors:
            record = processor(record)
        return record

    def is_handling(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self.is_handling(record):
            return False
        record = prepare_record(record)
        if self._processors:
            record = self.process_record(record)
        if self.filter(record):
            self.acquire()
            try:
                self.emit(record)
            finally:
                self.release()
        return not self.bubble

    def handle_batch(self, records: Iterable[logging.LogRecord]) -> None:
        for record in records:
            self.handle(record)

    def batch_formatter(self) -> Any:
        """Return the attached formatter when it can render a whole batch, else ``None``."""

        formatter = self.formatter
        return formatter if callable(getattr(formatter, "format_batch", None)) else None

    def _accepted(self, records: Iterable[logging.LogRecord]) -> list[logging.LogRecord]:
        accepted: list[logging.LogRecord] = []
        for record in records:
            if not self.is_handling(record):
                continue
            record = prepare_record(record)
            if self._processors:
                record = self.process_record(record)
            if self.filter(record):
                accepted.append(record)
        return accepted

    def format(self, record: logging.LogRecord) -> str:
        formatter = self.formatter or self.default_formatter()
        return formatter.format(record)

    def default_formatter(self) -> logging.Formatter:
        return LineFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        """Return a JSON-friendly description of this handler and its attachments."""

        description: dict[str, Any] = {
            "class": type(self).__name__,
            "level": level_name(self.level),
            "bubble": self.bubble,
        }
        if self.formattable and self.formatter is not None:
            description["formatter"] = type(self.formatter).__name__
        if self._processors:
            description["processors"] = [_callable_name(p) for p in self._processors]
        return description


class NullHandler(Handler):
    """Handle records at or above its level and discard them without bubbling."""

    formattable = False
    processable = False

    def __init__(self, level: int | str = DEBUG) -> None:
        super().__init__(level, bubble=False)

    def handle(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return self.is_handling(record)

    def emit(self, record: logging.LogRecord) -> None:
        return None


class TestHandler(Handler):
    """Keep processed records in memory, mostly for tests and diagnostics."""

    __test__ = False

    def __init__(self, level: int | str = DEBUG, bubble: bool = True) -> None:
        super().__init__(level, bubble)
        self.records: list[logging.LogRecord] = []
        self.formatted: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)
        self.formatted.append(self.format(record))

    def handle_batch(self, records: Iterable[logging.LogRecord]) -> None:
        """Keep a batch; a batch-capable formatter renders it as one ``formatted`` entry."""

        formatter = self.batch_formatter()
        if formatter is None:
            super().handle_batch(records)
            return
        accepted = self._accepted(records)
        if accepted:
            self.records.extend(accepted)
            self.formatted.append(formatter.format_batch(accepted))

    def has_records(self, level: int | str) -> bool:
        wanted = to_level(level)
        return any(record.levelno == wanted for record in self.records)

    def messages(self) -> list[str]:
        return [record.getMessage() for record in self.records]

    def clear(self) -> None:
        self.records.clear()
        self.formatted.clear()


STDOUT: str = "ext://sys.stdout"
STDERR: str = "ext://sys.stderr"
MEMORY: str = "memory://"


class StreamHandler(Handler):
    """Write formatted records to a text stream or a file path.

    A path is opened lazily on the first write, creating parent directories
    and applying ``file_permission``.
    """

    terminator = "\n"

    def __init__(
        self,
        stream: IO[str] | str | os.PathLike[str],
        level: int | str = DEBUG,
        bubble: bool = True,
        file_permission: int | None = 0o644,
    ) -> None:
        super().__init__(level, bubble)
        self.file_permission = file_permission
        self.url: str | None = None
        self.stream: IO[str] | None = None
        self._owns_stream = False
        if isinstance(stream, (str, os.PathLike)):
            target = os.fspath(stream)
            if target == STDOUT:
                self.stream = sys.stdout
            elif target == MEMORY:
                self.stream = io.StringIO()
            elif target == STDERR:
                self.stream = sys.stderr
            elif not target.strip():
                raise ValueError("A stream must either be a writable object or a non-empty path")
            else:
                self.url = target
        elif hasattr(stream, "write"):
            self.stream = stream
        else:
            raise ValueError("A stream must either be a writable object or a path")

    def emit(self, record: logging.LogRecord) -> None:
        self._write(self.format(record))

    def handle_batch(self, records: Iterable[logging.LogRecord]) -> None:
        """Write a batch in one go when the formatter renders batches (JSON arrays)."""

        formatter = self.batch_formatter()
        if formatter is None:
            super().handle_batch(records)
            return
        accepted = self._accepted(records)
        if not accepted:
            return
        self.acquire()
        try:
            self._write(formatter.format_batch(accepted))
        finally:
            self.release()

    def _write(self, text: str) -> None:
        if self.stream is None:
            self.stream = self._open()
        if not text.endswith(self.terminator):
            text += self.terminator
        self.stream.write(text)
        self.flush()

    def flush(self) -> None:
        if self.stream is not None and hasattr(self.stream, "flush"):
            self.stream.flush()

    def close(self) -> None:
        try:
            if self._owns_stream and self.stream is not None:
                self.stream.close()
                self.stream = None
        finally:
            super().close()

    def _open(self) -> IO[str]:
        if self.url is None:
            raise ValueError("The stream was closed and there is no path to reopen")
        path = Path(self.url)
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = path.open("a", encoding="utf-8")
        if self.file_permission is not None:
            os.chmod(path, self.file_permission)
        self._owns_stream = True
        return handle

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["stream"] = self.url if self.url is not None else _stream_name(self.stream)
        return description


class DelegatingHandler(Handler):
    """Forward processed records to a standard library handler.

    The delegate's own level and filters are bypassed; this handler's
    formatter (or the default line formatter) is applied before each emit.
    """

    def __init__(self, delegate: logging.Handler, level: int | str = DEBUG, bubble: bool = True) -> None:
        super().__init__(level, bubble)
        self.delegate = delegate

    def emit(self, record: logging.LogRecord) -> None:
        self.delegate.setFormatter(self.formatter or self.default_formatter())
        self.delegate.emit(record)

    def flush(self) -> None:
        self.delegate.flush()

    def close(self) -> None:
        try:
            self.delegate.close()
        finally:
            super().close()

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["delegate"] = type(self.delegate).__name__
        return description


class LoggingHandler(Handler):
    """Bridge processed records into a standard library :class:`logging.Logger`."""

    formattable = False

    def __init__(self, logger: logging.Logger, level: int | str = DEBUG, bubble: bool = True) -> None:
        super().__init__(level, bubble)
        self.logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        self.logger.handle(record)

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["logger"] = self.logger.name
        return description


def _callable_name(target: Any) -> str:
    name = getattr(target, "__qualname__", None)
    return name if isinstance(name, str) else type(target).__name__


def _stream_name(stream: Any) -> str:
    if isinstance(stream, io.StringIO):
        return "memory"
    return str(getattr(stream, "name", type(stream).__name__))
