"""Processor factories registered under the ``processor`` namespace."""

from __future__ import annotations

from typing import Any, Callable, Final, Mapping

from ...application.ports import Assembler
from ...domain.errors import ConfigurationError
from ...domain.levels import DEBUG
from ...domain.processors import (
    HostnameProcessor,
    IntrospectionProcessor,
    ProcessIdProcessor,
    PsrLogMessageProcessor,
    TagProcessor,
    UidProcessor,
)
from ...domain.records import Processor

Options = Mapping[str, Any]


def create_uid(options: Options, assembler: Assembler) -> UidProcessor:
    return UidProcessor(int(options.get("length", 7)))


def create_process_id(options: Options, assembler: Assembler) -> ProcessIdProcessor:
    return ProcessIdProcessor()


def create_hostname(options: Options, assembler: Assembler) -> HostnameProcessor:
    return HostnameProcessor()


def create_tag(options: Options, assembler: Assembler) -> TagProcessor:
    tags = options.get("tags") or {}
    if isinstance(tags, (str, bytes)) or not isinstance(tags, (Mapping, list, tuple)):
        raise ConfigurationError("Tags must be a mapping or a list")
    return TagProcessor(tags)


def create_psr_log_message(options: Options, assembler: Assembler) -> PsrLogMessageProcessor:
    return PsrLogMessageProcessor(
        options.get("date_format"),
        bool(options.get("remove_used_context_fields", False)),
    )


def create_introspection(options: Options, assembler: Assembler) -> IntrospectionProcessor:
    return IntrospectionProcessor(options.get("level", DEBUG), options.get("skip_modules", ()))


PROCESSOR_FACTORIES: Final[dict[str, Callable[[Options, Assembler], Processor]]] = {
    "uid": create_uid,
    "process_id": create_process_id,
    "hostname": create_hostname,
    "tag": create_tag,
    "psr_log_message": create_psr_log_message,
    "introspection": create_introspection,
}
