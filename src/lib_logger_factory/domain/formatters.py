"""Formatters attached to pipeline handlers.

Contents
    - ``LineFormatter``: single-line text output with ``context``/``extra`` rendered as JSON.
    - ``JsonFormatter``: one JSON document per record (or per batch).
    - ``LogstashFormatter``: JSON shaped for logstash/ELK ingestion.

All three subclass :class:`logging.Formatter`, so they also work when attached
to plain standard library handlers.
"""

from __future__ import annotations

import json
import logging
import re
import socket
from datetime import datetime, timezone
from typing import Any, Final, Iterable, Mapping

from .levels import level_name

SIMPLE_FORMAT: Final[str] = "[%(datetime)s] %(name)s.%(level_name)s: %(message)s %(context)s %(extra)s"
SIMPLE_DATE: Final[str] = "%Y-%m-%dT%H:%M:%S.%f%z"

BATCH_MODE_JSON: Final[str] = "json"
BATCH_MODE_NEWLINES: Final[str] = "newlines"

_SPACES = re.compile(r" {2,}")


def _record_datetime(record: logging.LogRecord) -> datetime:
    value = getattr(record, "datetime", None)
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _to_json(data: Any) -> str:
    return json.dumps(data, default=str, ensure_ascii=False, separators=(",", ":"))


def normalize_record(record: logging.LogRecord, date_format: str = SIMPLE_DATE) -> dict[str, Any]:
    """Return the JSON-friendly view of *record* shared by the JSON formatters."""

    return {
        "message": record.getMessage(),
        "context": dict(getattr(record, "context", {}) or {}),
        "level": record.levelno,
        "level_name": level_name(record.levelno).upper(),
        "channel": record.name,
        "datetime": _record_datetime(record).strftime(date_format),
        "extra": dict(getattr(record, "extra", {}) or {}),
    }


class LineFormatter(logging.Formatter):
    """Format records into a single line of text.

    Placeholders use ``%``-style names; besides the standard
    :class:`logging.LogRecord` attributes, ``datetime``, ``level_name``,
    ``context`` and ``extra`` are available. ``asctime`` renders like
    ``datetime``, with ``date_format``.
    """

    def __init__(
        self,
        fmt: str | None = None,
        date_format: str | None = None,
        *,
        allow_inline_line_breaks: bool = False,
        ignore_empty_context_and_extra: bool = False,
        include_stacktraces: bool = False,
    ) -> None:
        super().__init__(fmt or SIMPLE_FORMAT, date_format or SIMPLE_DATE)
        self.allow_inline_line_breaks = allow_inline_line_breaks
        self.ignore_empty_context_and_extra = ignore_empty_context_and_extra
        self.include_stacktraces = include_stacktraces

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if not self.allow_inline_line_breaks:
            message = message.replace("\r\n", " ").replace("\n", " ")
        stamp = _record_datetime(record).strftime(self.datefmt or SIMPLE_DATE)
        values = dict(vars(record))
        if self.usesTime():
            values["asctime"] = stamp
        values.update(
            message=message,
            datetime=stamp,
            level_name=level_name(record.levelno).upper(),
            context=self._render(getattr(record, "context", None)),
            extra=self._render(getattr(record, "extra", None)),
        )
        text = self._style._fmt % values
        if self.ignore_empty_context_and_extra:
            text = _SPACES.sub(" ", text).rstrip()
        if self.include_stacktraces and record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text

    def _render(self, data: Mapping[str, Any] | None) -> str:
        if not data:
            return "" if self.ignore_empty_context_and_extra else "[]"
        return _to_json(dict(data))


class JsonFormatter(logging.Formatter):
    """Encode records as JSON documents."""

    def __init__(
        self,
        batch_mode: str = BATCH_MODE_JSON,
        append_newline: bool = True,
        *,
        ignore_empty_context_and_extra: bool = False,
        include_stacktraces: bool = False,
    ) -> None:
        if batch_mode not in (BATCH_MODE_JSON, BATCH_MODE_NEWLINES):
            raise ValueError(f"Unknown batch mode {batch_mode!r}, use 'json' or 'newlines'")
        super().__init__()
        self.batch_mode = batch_mode
        self.append_newline = append_newline
        self.ignore_empty_context_and_extra = ignore_empty_context_and_extra
        self.include_stacktraces = include_stacktraces

    def format(self, record: logging.LogRecord) -> str:
        text = _to_json(self._payload(record))
        return f"{text}\n" if self.append_newline else text

    def format_batch(self, records: Iterable[logging.LogRecord]) -> str:
        """Encode several records at once according to ``batch_mode``."""

        payloads = [self._payload(record) for record in records]
        if self.batch_mode == BATCH_MODE_NEWLINES:
            return "\n".join(_to_json(payload) for payload in payloads)
        return _to_json(payloads)

    def _payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload = normalize_record(record)
        if self.ignore_empty_context_and_extra:
            for key in ("context", "extra"):
                if not payload[key]:
                    del payload[key]
        if self.include_stacktraces and record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload


class LogstashFormatter(logging.Formatter):
    """Serialise records in the logstash ``@version: 1`` event layout."""

    def __init__(
        self,
        application_name: str,
        system_name: str | None = None,
        extra_key: str = "extra",
        context_key: str = "context",
    ) -> None:
        super().__init__()
        self.application_name = application_name
        self.system_name = system_name or socket.gethostname()
        self.extra_key = extra_key
        self.context_key = context_key

    def format(self, record: logging.LogRecord) -> str:
        data = normalize_record(record)
        message: dict[str, Any] = {
            "@timestamp": _record_datetime(record).isoformat(),
            "@version": 1,
            "host": self.system_name,
            "message": data["message"],
            "channel": data["channel"],
            "level": data["level_name"],
            "level_value": data["level"],
            "type": self.application_name,
        }
        if data["extra"]:
            message[self.extra_key] = data["extra"]
        if data["context"]:
            message[self.context_key] = data["context"]
        return _to_json(message) + "\n"
