"""Pipeline assembler: turns a whole logger configuration into a :class:`Logger`.

Purpose
-------
Own the recursion of composite handlers (children are built before their
parent) and the root of the tree: logger name, timezone, handler stack and
root processors.

Contents
--------
* :class:`PipelineAssembler` – ``child_handler``, ``child_handlers``,
  ``activation_strategy``, ``resolve`` and ``assemble``.

System Role
-----------
The composition root (:mod:`lib_logger_factory.core`) creates one assembler
per build. Factories receive it as their second argument and call back into it
for nested handlers and collaborators. The first error aborts the build.
"""

from __future__ import annotations

from datetime import timezone as _timezone
from datetime import tzinfo
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..domain.activation import ActivationStrategy
from ..domain.errors import CollaboratorNotFoundError, ConfigurationError
from ..domain.handlers import Handler, NullHandler
from ..domain.levels import to_level
from ..domain.logger import Logger
from ..observability import log_info, make_event
from .builder import NodeBuilder, node_options
from .ports import Resolver
from .registry import ACTIVATION_STRATEGY, Registry

NOOP_LOGGER_NAME = "null"


class PipelineAssembler:
    """Build loggers and nested handlers against one registry and resolver.

    Parameters
    ----------
    registry:
        Factories for every namespace.
    resolver:
        Optional source of named collaborators. Without one every
        collaborator lookup fails with :class:`CollaboratorNotFoundError`.

    Examples
    --------
    >>> from lib_logger_factory.adapters.factories import default_registry
    >>> assembler = PipelineAssembler(default_registry())
    >>> logger = assembler.assemble({"name": "app", "handlers": [{"type": "test"}]})
    >>> [type(handler).__name__ for handler in logger.handlers]
    ['TestHandler', 'NullHandler']
    """

    def __init__(self, registry: Registry, resolver: Resolver | None = None) -> None:
        self.registry = registry
        self.resolver = resolver
        self.builder = NodeBuilder(registry, self)

    def resolve(self, name: str) -> Any:
        """Return the collaborator registered as *name*."""

        if self.resolver is None:
            raise CollaboratorNotFoundError(f"Could not find service {name}: no resolver configured")
        return self.resolver.resolve(name)

    def can_resolve(self, name: str) -> bool:
        return self.resolver is not None and self.resolver.has(name)

    def child_handler(self, options: Mapping[str, Any]) -> Handler:
        """Build the child of a single-child composite from ``options["handler"]``."""

        if options.get("handler") is None:
            raise ConfigurationError("No handler provided")
        node = options["handler"]
        if not isinstance(node, (Mapping, Handler)):
            raise ConfigurationError("HandlerConfig must be an Array")
        handler = self.builder.build_handler(node)
        if handler is None:
            raise ConfigurationError("No active handler specified")
        return handler

    def child_handlers(self, options: Mapping[str, Any]) -> list[Handler]:
        """Build the active members of a group from ``options["handlers"]``."""

        nodes = options.get("handlers")
        if not isinstance(nodes, (list, tuple)):
            raise ConfigurationError("No Service names provided for the required handler classes")
        handlers: list[Handler] = []
        for node in nodes:
            if not isinstance(node, (Mapping, Handler)):
                raise ConfigurationError("HandlerConfig must be an Array")
            handler = self.builder.build_handler(node)
            if handler is not None:
                handlers.append(handler)
        if not handlers:
            raise ConfigurationError("No active handlers specified")
        return handlers

    def activation_strategy(self, value: Any) -> ActivationStrategy | int | None:
        """Normalise a fingers-crossed ``activation_strategy`` option.

        Accepts ``None``, an integer level, a strategy instance, a
        ``{type, options}`` mapping, a registered strategy name or a level name.
        """

        if value is None:
            return None
        if isinstance(value, ActivationStrategy) or (isinstance(value, int) and not isinstance(value, bool)):
            return value
        if isinstance(value, Mapping):
            type_name = value.get("type")
            if not isinstance(type_name, str) or not type_name:
                raise ConfigurationError("Options must contain a type for the ActivationStrategy")
            return self.registry.construct(ACTIVATION_STRATEGY, type_name, node_options(value), self)
        if isinstance(value, str):
            if self.registry.has(ACTIVATION_STRATEGY, value):
                return self.registry.construct(ACTIVATION_STRATEGY, value, {}, self)
            try:
                return to_level(value)
            except ValueError:
                pass
        raise ConfigurationError("Could not find Class for ActivationStrategy")

    def assemble(self, config: Any) -> Logger:
        """Build the :class:`Logger` described by *config*.

        A configuration without ``name`` yields a no-op logger named ``"null"``
        holding only a :class:`NullHandler`.
        """

        if not isinstance(config, Mapping) or "name" not in config:
            log_info("logger_noop", **make_event("logger", None, {"name": NOOP_LOGGER_NAME}))
            logger = Logger(NOOP_LOGGER_NAME)
            logger.push_handler(NullHandler())
            return logger

        logger = Logger(str(config["name"]), _timezone_from(config.get("timezone", _timezone.utc)))
        logger.push_handler(NullHandler())

        nodes = config.get("handlers")
        if nodes is not None:
            if not isinstance(nodes, (list, tuple)):
                raise ConfigurationError("Handlers must be iterable")
            for node in nodes:
                handler = self.builder.build_handler(node)
                if handler is not None:
                    logger.push_handler(handler)

        self.builder.attach_processors(logger, config)
        log_info(
            "logger_assembled",
            **make_event(
                "logger",
                None,
                {"name": logger.name, "handlers": len(logger.handlers), "processors": len(logger.processors)},
            ),
        )
        return logger


def _timezone_from(value: Any) -> tzinfo:
    """Return a :class:`tzinfo` for a zone name or instance.

    Examples
    --------
    >>> _timezone_from("UTC")
    zoneinfo.ZoneInfo(key='UTC')
    >>> _timezone_from(42)
    Traceback (most recent call last):
    ...
    lib_logger_factory.domain.errors.ConfigurationError: An invalid timezone was set
    """

    if isinstance(value, tzinfo):
        return value
    if isinstance(value, str):
        try:
            return ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise ConfigurationError("An invalid timezone was set") from exc
    raise ConfigurationError("An invalid timezone was set")


__all__ = ["NOOP_LOGGER_NAME", "PipelineAssembler"]
