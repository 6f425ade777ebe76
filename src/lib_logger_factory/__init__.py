"""Config-driven builder for logging pipelines.

A nested mapping describes a named logger, its handlers, their formatters and
processors; :func:`build_logger` turns it into a :class:`Logger`. Importing
the package also registers the ``NOTICE``, ``ALERT`` and ``EMERGENCY`` level
names with :mod:`logging`.
"""

from __future__ import annotations

from .adapters.factories import default_registry
from .adapters.resolvers.mapping import MappingResolver
from .application.assembler import PipelineAssembler
from .application.registry import Registry
from .core import build_logger, build_logger_from_config, load_logger, read_logger_config
from .domain.errors import (
    CollaboratorNotFoundError,
    ConfigurationError,
    ConstructionError,
    InvalidFormat,
    LoggerFactoryError,
    NotFoundError,
)
from .domain.handlers import Handler
from .domain.logger import Logger
from .observability import bind_trace_id, get_logger

__all__ = [
    "CollaboratorNotFoundError",
    "ConfigurationError",
    "ConstructionError",
    "Handler",
    "InvalidFormat",
    "Logger",
    "LoggerFactoryError",
    "MappingResolver",
    "NotFoundError",
    "PipelineAssembler",
    "Registry",
    "bind_trace_id",
    "build_logger",
    "build_logger_from_config",
    "default_registry",
    "get_logger",
    "load_logger",
    "read_logger_config",
]
