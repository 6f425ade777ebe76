"""Record processors.

Each processor is a callable taking a :class:`logging.LogRecord` and returning
it with additional data under ``record.extra`` (or, for
:class:`PsrLogMessageProcessor`, an interpolated message).
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import socket
import sys
from datetime import datetime
from typing import Any, Iterable, Mapping

from .levels import DEBUG, to_level
from .records import prepare_record


class UidProcessor:
    """Add a per-instance unique identifier under ``extra["uid"]``."""

    def __init__(self, length: int = 7) -> None:
        if not isinstance(length, int) or isinstance(length, bool) or not 1 <= length <= 32:
            raise ValueError("The uid length must be an integer between 1 and 32")
        self.length = length
        self.uid = self._generate()

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        prepare_record(record).extra["uid"] = self.uid
        return record

    def reset(self) -> None:
        self.uid = self._generate()

    def _generate(self) -> str:
        return secrets.token_hex(16)[: self.length]


class ProcessIdProcessor:
    """Add the current process id under ``extra["process_id"]``."""

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        prepare_record(record).extra["process_id"] = os.getpid()
        return record


class HostnameProcessor:
    """Add the machine's hostname under ``extra["hostname"]``."""

    def __init__(self) -> None:
        self.hostname = socket.gethostname()

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        prepare_record(record).extra["hostname"] = self.hostname
        return record


class TagProcessor:
    """Merge static tags into ``extra["tags"]``."""

    def __init__(self, tags: Mapping[str, Any] | Iterable[Any] | None = None) -> None:
        self.tags: dict[Any, Any] = {}
        self.add_tags(tags or {})

    def add_tags(self, tags: Mapping[str, Any] | Iterable[Any]) -> None:
        if isinstance(tags, Mapping):
            self.tags.update(tags)
        else:
            offset = len(self.tags)
            self.tags.update({offset + index: tag for index, tag in enumerate(tags)})

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        prepare_record(record).extra["tags"] = dict(self.tags)
        return record


class PsrLogMessageProcessor:
    """Replace ``{placeholder}`` tokens in the message with ``context`` values.

    >>> record = logging.LogRecord("app", logging.INFO, "", 0, "User {user} logged in", None, None)
    >>> record.context = {"user": "ada"}
    >>> PsrLogMessageProcessor()(record).getMessage()
    'User ada logged in'
    """

    _PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_.]+)\}")

    def __init__(self, date_format: str | None = None, remove_used_context_fields: bool = False) -> None:
        self.date_format = date_format
        self.remove_used_context_fields = remove_used_context_fields

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        record = prepare_record(record)
        message = record.getMessage()
        if "{" not in message:
            return record
        context: dict[str, Any] = record.context
        used: list[str] = []

        def replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in context:
                return match.group(0)
            used.append(key)
            return self._stringify(context[key])

        record.msg = self._PLACEHOLDER.sub(replace, message)
        record.args = None
        if self.remove_used_context_fields:
            for key in used:
                context.pop(key, None)
        return record

    def _stringify(self, value: Any) -> str:
        if value is None or isinstance(value, (str, int, float, bool)):
            return "null" if value is None else str(value)
        if isinstance(value, datetime):
            return value.strftime(self.date_format) if self.date_format else value.isoformat()
        if isinstance(value, BaseException):
            return f"[object {type(value).__name__}]"
        return f"[{type(value).__name__}]"


class IntrospectionProcessor:
    """Add file, line and function of the first frame outside logging machinery."""

    _SKIPPED_MODULES = ("logging", "lib_logger_factory")

    def __init__(self, level: int | str = DEBUG, skip_modules: Iterable[str] = ()) -> None:
        self.level = to_level(level)
        self.skip_modules = self._SKIPPED_MODULES + tuple(skip_modules)

    def __call__(self, record: logging.LogRecord) -> logging.LogRecord:
        record = prepare_record(record)
        if record.levelno < self.level:
            return record
        frame = sys._getframe(1)
        while frame is not None and self._skipped(frame.f_globals.get("__name__", "")):
            frame = frame.f_back
        if frame is not None:
            record.extra.update(
                file=frame.f_code.co_filename,
                line=frame.f_lineno,
                function=frame.f_code.co_name,
            )
        return record

    def _skipped(self, module: str) -> bool:
        return any(module == name or module.startswith(name + ".") for name in self.skip_modules)
