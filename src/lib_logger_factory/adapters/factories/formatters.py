"""Formatter factories registered under the ``formatter`` namespace."""

from __future__ import annotations

import logging
from typing import Any, Callable, Final, Mapping

from ...application.ports import Assembler
from ...domain.errors import ConfigurationError
from ...domain.formatters import BATCH_MODE_JSON, JsonFormatter, LineFormatter, LogstashFormatter

Options = Mapping[str, Any]


def create_line(options: Options, assembler: Assembler) -> LineFormatter:
    return LineFormatter(
        options.get("format"),
        options.get("date_format"),
        allow_inline_line_breaks=bool(options.get("allow_inline_line_breaks", False)),
        ignore_empty_context_and_extra=bool(options.get("ignore_empty_context_and_extra", False)),
        include_stacktraces=bool(options.get("include_stacktraces", False)),
    )


def create_json(options: Options, assembler: Assembler) -> JsonFormatter:
    return JsonFormatter(
        str(options.get("batch_mode", BATCH_MODE_JSON)),
        bool(options.get("append_newline", True)),
        ignore_empty_context_and_extra=bool(options.get("ignore_empty_context_and_extra", False)),
        include_stacktraces=bool(options.get("include_stacktraces", False)),
    )


def create_logstash(options: Options, assembler: Assembler) -> LogstashFormatter:
    application_name = options.get("application_name")
    if not application_name:
        raise ConfigurationError("No application name provided")
    return LogstashFormatter(
        str(application_name),
        options.get("system_name"),
        str(options.get("extra_key", "extra")),
        str(options.get("context_key", "context")),
    )


FORMATTER_FACTORIES: Final[dict[str, Callable[[Options, Assembler], logging.Formatter]]] = {
    "line": create_line,
    "json": create_json,
    "logstash": create_logstash,
}
