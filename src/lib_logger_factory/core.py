"""Composition root for ``lib_logger_factory``.

Purpose
-------
Provide the entry points that wire the registry, the collaborator resolver and
the pipeline assembler together, and that read logger configuration from
structured files.

Contents
--------
* :data:`CONFIG_SECTIONS` – keys searched for the logger section.
* :func:`build_logger` – assemble a :class:`Logger` from a configuration mapping.
* :func:`build_logger_from_config` – pick the logger section of an application
  configuration and assemble it.
* :func:`read_logger_config` – parse a TOML, JSON or YAML file.
* :func:`load_logger` – read a file and assemble the logger it describes.

System Role
-----------
Callers never construct the assembler themselves; each call here uses a fresh
one so builds share no mutable state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from .adapters.factories import default_registry
from .adapters.file_loaders.structured import LOGGER_SECTIONS, loader_for
from .adapters.resolvers.mapping import MappingResolver
from .application.assembler import PipelineAssembler
from .application.ports import Resolver
from .application.registry import Registry
from .domain.errors import (
    CollaboratorNotFoundError,
    ConfigurationError,
    ConstructionError,
    InvalidFormat,
    LoggerFactoryError,
    NotFoundError,
)
from .domain.logger import Logger
from .observability import bind_trace_id

CONFIG_SECTIONS = LOGGER_SECTIONS
"""Application configuration keys searched for the logger section, in order."""


def build_logger(
    config: Any,
    *,
    registry: Registry | None = None,
    resolver: Resolver | None = None,
    services: Mapping[str, Any] | None = None,
) -> Logger:
    """Assemble the :class:`Logger` described by *config*.

    Parameters
    ----------
    config:
        Logger configuration (``name``, ``timezone``, ``handlers``,
        ``processors``). Anything without ``name`` yields the no-op logger.
    registry:
        Factories to build from; defaults to :func:`default_registry`.
    resolver:
        Source of named collaborators.
    services:
        Shortcut for ``resolver=MappingResolver(services)``; ignored when
        *resolver* is given.

    Side Effects
    ------------
    Clears the active trace identifier via :func:`bind_trace_id`.

    Examples
    --------
    >>> logger = build_logger({"name": "app", "handlers": [{"type": "test"}]})
    >>> logger.name
    'app'
    >>> build_logger({}).name
    'null'
    """

    bind_trace_id(None)
    if resolver is None and services is not None:
        resolver = MappingResolver(services)
    assembler = PipelineAssembler(registry if registry is not None else default_registry(), resolver)
    return assembler.assemble(config)


def build_logger_from_config(
    app_config: Mapping[str, Any],
    *,
    registry: Registry | None = None,
    resolver: Resolver | None = None,
    services: Mapping[str, Any] | None = None,
) -> Logger:
    """Assemble the logger described by the ``log`` (or ``logger``) section of *app_config*.

    Examples
    --------
    >>> build_logger_from_config({"log": {"name": "a"}, "logger": {"name": "b"}}).name
    'a'
    >>> build_logger_from_config({"database": {}}).name
    'null'
    """

    section: Any = {}
    if isinstance(app_config, Mapping):
        for key in CONFIG_SECTIONS:
            if key in app_config:
                section = app_config[key]
                break
    return build_logger(section, registry=registry, resolver=resolver, services=services)


def read_logger_config(path: str | Path) -> Mapping[str, object]:
    """Parse the structured file at *path* into a mapping.

    Raises
    ------
    ConfigurationError
        When the suffix is unsupported or the file does not exist.
    InvalidFormat
        When the file cannot be parsed into a mapping, or its ``log``/``logger``
        section is not a mapping.
    """

    return loader_for(path).load(str(path))


def load_logger(
    path: str | Path,
    *,
    registry: Registry | None = None,
    resolver: Resolver | None = None,
    services: Mapping[str, Any] | None = None,
) -> Logger:
    """Read *path* and assemble the logger its ``log``/``logger`` section describes.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> config = Path(tmp.name) / "logging.toml"
    >>> _ = config.write_text('[log]\\nname = "svc"\\n[[log.handlers]]\\ntype = "test"\\n', encoding="utf-8")
    >>> logger = load_logger(config)
    >>> logger.name, len(logger.handlers)
    ('svc', 2)
    >>> tmp.cleanup()
    """

    data = read_logger_config(path)
    return build_logger_from_config(data, registry=registry, resolver=resolver, services=services)


__all__ = [
    "CollaboratorNotFoundError",
    "ConfigurationError",
    "ConstructionError",
    "InvalidFormat",
    "Logger",
    "LoggerFactoryError",
    "NotFoundError",
    "build_logger",
    "build_logger_from_config",
    "default_registry",
    "load_logger",
    "read_logger_config",
]
