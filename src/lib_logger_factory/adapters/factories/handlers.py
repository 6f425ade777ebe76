"""Handler factories registered under the ``handler`` namespace.

Purpose
-------
Translate validated option mappings into handler instances. Every factory has
the same shape: check required keys, resolve collaborators, apply defaults,
construct. Anything the constructor raises is wrapped by the registry.

Contents
--------
* Leaf sinks: ``null``, ``test``, ``stream``, ``rotating_file``, ``syslog``,
  ``socket``, ``smtp``, ``logging``.
* Composites: ``buffer``, ``fingers_crossed``, ``filter``, ``deduplication``,
  ``overflow``, ``sampling``, ``group``, ``fallback_group``.
* :data:`HANDLER_FACTORIES` – ``type`` → factory table.

System Role
-----------
Composite factories ask the assembler for their children first, so a
misconfigured child aborts the build before its parent exists. Network and
rotation protocols are delegated to :mod:`logging.handlers`.
"""

from __future__ import annotations

import logging
import logging.handlers
from typing import Any, Callable, Final, Mapping

from ...application.ports import Assembler
from ...domain.composite import (
    BufferHandler,
    DeduplicationHandler,
    FallbackGroupHandler,
    FilterHandler,
    FingersCrossedHandler,
    GroupHandler,
    OverflowHandler,
    SamplingHandler,
)
from ...domain.errors import ConfigurationError
from ...domain.handlers import (
    DelegatingHandler,
    Handler,
    LoggingHandler,
    NullHandler,
    StreamHandler,
    TestHandler,
)
from ...domain.levels import DEBUG, EMERGENCY, ERROR

Options = Mapping[str, Any]


def _level(options: Options, default: int | str = DEBUG) -> int | str:
    return options.get("level", default)


def _bubble(options: Options) -> bool:
    return bool(options.get("bubble", True))


def _require(options: Options, key: str, message: str) -> Any:
    value = options.get(key)
    if value is None or value == "":
        raise ConfigurationError(message)
    return value


def _permission(value: Any) -> int | None:
    """Accept ``0o644``, ``420`` or the octal string ``"0644"``.

    >>> _permission("0644") == 0o644
    True
    """

    if value is None or isinstance(value, int):
        return value
    return int(str(value), 8)


def create_null(options: Options, assembler: Assembler) -> NullHandler:
    return NullHandler(_level(options))


def create_test(options: Options, assembler: Assembler) -> TestHandler:
    return TestHandler(_level(options), _bubble(options))


def create_stream(options: Options, assembler: Assembler) -> StreamHandler:
    stream = _require(options, "stream", "The required stream is missing")
    if isinstance(stream, str) and assembler.can_resolve(stream):
        stream = assembler.resolve(stream)
    return StreamHandler(
        stream,
        _level(options),
        _bubble(options),
        _permission(options.get("file_permission", 0o644)),
    )


def create_rotating_file(options: Options, assembler: Assembler) -> DelegatingHandler:
    filename = _require(options, "filename", "No filename provided")
    delegate = logging.handlers.TimedRotatingFileHandler(
        str(filename),
        when=str(options.get("when", "midnight")),
        backupCount=int(options.get("max_files", 0)),
        encoding=str(options.get("encoding", "utf-8")),
        delay=True,
    )
    return DelegatingHandler(delegate, _level(options), _bubble(options))


def create_syslog(options: Options, assembler: Assembler) -> DelegatingHandler:
    ident = _require(options, "ident", "No ident provided")
    facility = options.get("facility", "user")
    if isinstance(facility, str):
        try:
            facility = logging.handlers.SysLogHandler.facility_names[facility.lower()]
        except KeyError:
            raise ConfigurationError(f"Unknown syslog facility '{facility}'") from None
    address = (str(options.get("host", "localhost")), int(options.get("port", 514)))
    delegate = logging.handlers.SysLogHandler(address=address, facility=facility)
    delegate.ident = f"{ident}: "
    return DelegatingHandler(delegate, _level(options), _bubble(options))


def create_socket(options: Options, assembler: Assembler) -> DelegatingHandler:
    host = _require(options, "host", "No host provided")
    port = _require(options, "port", "No port provided")
    delegate = logging.handlers.SocketHandler(str(host), int(port))
    return DelegatingHandler(delegate, _level(options), _bubble(options))


def create_smtp(options: Options, assembler: Assembler) -> DelegatingHandler:
    recipients = _require(options, "to", "No recipient provided")
    sender = _require(options, "from", "No sender provided")
    if isinstance(recipients, str):
        recipients = [recipients]
    mailhost: Any = str(options.get("mailhost", "localhost"))
    if options.get("port") is not None:
        mailhost = (mailhost, int(options["port"]))
    credentials = options.get("credentials")
    if credentials is not None:
        credentials = tuple(credentials)
    secure = options.get("secure")
    if secure is True:
        secure = ()
    elif secure is not None and secure is not False:
        secure = tuple(secure)
    else:
        secure = None
    delegate = logging.handlers.SMTPHandler(
        mailhost,
        str(sender),
        list(recipients),
        str(options.get("subject", "Log message")),
        credentials=credentials,
        secure=secure,
        timeout=float(options.get("timeout", 5.0)),
    )
    return DelegatingHandler(delegate, _level(options, ERROR), _bubble(options))


def create_logging(options: Options, assembler: Assembler) -> LoggingHandler:
    target = _require(options, "logger", "No logger provided")
    if isinstance(target, str):
        target = assembler.resolve(target) if assembler.can_resolve(target) else logging.getLogger(target)
    if not isinstance(target, logging.Logger):
        raise ConfigurationError(f"Logger must be a logging.Logger, got {type(target).__name__}")
    return LoggingHandler(target, _level(options), _bubble(options))


def create_buffer(options: Options, assembler: Assembler) -> BufferHandler:
    handler = assembler.child_handler(options)
    return BufferHandler(
        handler,
        int(options.get("buffer_limit", 0)),
        _level(options),
        _bubble(options),
        bool(options.get("flush_on_overflow", True)),
    )


def create_fingers_crossed(options: Options, assembler: Assembler) -> FingersCrossedHandler:
    handler = assembler.child_handler(options)
    return FingersCrossedHandler(
        handler,
        assembler.activation_strategy(options.get("activation_strategy")),
        int(options.get("buffer_size", 0)),
        _bubble(options),
        bool(options.get("stop_buffering", True)),
        options.get("passthru_level"),
    )


def create_filter(options: Options, assembler: Assembler) -> FilterHandler:
    handler = assembler.child_handler(options)
    return FilterHandler(
        handler,
        options.get("min_level_or_list", DEBUG),
        options.get("max_level", EMERGENCY),
        _bubble(options),
    )


def create_deduplication(options: Options, assembler: Assembler) -> DeduplicationHandler:
    handler = assembler.child_handler(options)
    return DeduplicationHandler(
        handler,
        options.get("deduplication_store"),
        options.get("deduplication_level", ERROR),
        int(options.get("time", 60)),
        _bubble(options),
    )


def create_overflow(options: Options, assembler: Assembler) -> OverflowHandler:
    handler = assembler.child_handler(options)
    threshold_map = options.get("threshold_map") or {}
    if not isinstance(threshold_map, Mapping):
        raise ConfigurationError("threshold_map must be a mapping of level to count")
    return OverflowHandler(handler, threshold_map, _level(options), _bubble(options))


def _factor(value: Any) -> int:
    """Accept a positive integer or its string form.

    >>> _factor("3")
    3
    """

    message = "Factor is missing or is less than 1"
    if value is None or isinstance(value, bool):
        raise ConfigurationError(message)
    try:
        factor = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(message) from None
    if factor < 1:
        raise ConfigurationError(message)
    return factor


def create_sampling(options: Options, assembler: Assembler) -> SamplingHandler:
    handler = assembler.child_handler(options)
    return SamplingHandler(handler, _factor(options.get("factor")))


def create_group(options: Options, assembler: Assembler) -> GroupHandler:
    return GroupHandler(assembler.child_handlers(options), _bubble(options))


def create_fallback_group(options: Options, assembler: Assembler) -> FallbackGroupHandler:
    return FallbackGroupHandler(assembler.child_handlers(options), _bubble(options))


HANDLER_FACTORIES: Final[dict[str, Callable[[Options, Assembler], Handler]]] = {
    "null": create_null,
    "test": create_test,
    "stream": create_stream,
    "rotating_file": create_rotating_file,
    "syslog": create_syslog,
    "socket": create_socket,
    "smtp": create_smtp,
    "logging": create_logging,
    "buffer": create_buffer,
    "fingers_crossed": create_fingers_crossed,
    "filter": create_filter,
    "deduplication": create_deduplication,
    "overflow": create_overflow,
    "sampling": create_sampling,
    "group": create_group,
    "fallback_group": create_fallback_group,
}
