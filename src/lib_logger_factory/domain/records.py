"""Log record helpers.

Pipelines operate on :class:`logging.LogRecord` instances enriched with three
attributes:

* ``context`` – caller-supplied structured data (dict).
* ``extra`` – data added by processors (dict).
* ``datetime`` – timezone-aware creation time.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Mapping

Processor = Callable[[logging.LogRecord], logging.LogRecord]
"""A processor receives a record and returns the (possibly new) record."""


def make_record(
    channel: str,
    level: int,
    message: str,
    context: Mapping[str, Any] | None = None,
    *,
    tz: tzinfo = timezone.utc,
) -> logging.LogRecord:
    """Create a record for *channel* carrying *context*.

    An ``exception`` entry in *context* is moved into ``exc_info`` so the
    formatters can render stack traces.
    """

    payload = dict(context or {})
    exc = payload.get("exception")
    exc_info = None
    if isinstance(exc, BaseException):
        exc_info = (type(exc), exc, exc.__traceback__)
    record = logging.LogRecord(channel, level, "", 0, message, None, exc_info)
    record.context = payload
    return prepare_record(record, tz)


def prepare_record(record: logging.LogRecord, tz: tzinfo = timezone.utc) -> logging.LogRecord:
    """Ensure *record* carries ``context``, ``extra`` and ``datetime``."""

    if not isinstance(getattr(record, "context", None), dict):
        record.context = {}
    if not isinstance(getattr(record, "extra", None), dict):
        record.extra = {}
    if not isinstance(getattr(record, "datetime", None), datetime):
        record.datetime = datetime.fromtimestamp(record.created, tz=tz)
    return record


def clone_record(record: logging.LogRecord) -> logging.LogRecord:
    """Return a shallow copy of *record* with its own ``context`` and ``extra`` dicts."""

    clone = copy.copy(record)
    clone.context = dict(getattr(record, "context", {}) or {})
    clone.extra = dict(getattr(record, "extra", {}) or {})
    return clone
