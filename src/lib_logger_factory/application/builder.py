"""Node builder: one configuration node in, zero or one instance out.

Purpose
-------
Apply the rules every configuration node shares before and after its factory
runs: pass-through instances, the ``enabled`` gate, the required ``type``,
and attaching formatters and processors to the built handler.

Contents
--------
* :func:`node_options` – merged option view of a configuration node.
* :class:`NodeBuilder` – ``build_handler``, ``build_formatter``,
  ``build_processor``, ``attach_formatter``, ``attach_processors``, ``resolve``.

System Role
-----------
Owned by :class:`~lib_logger_factory.application.assembler.PipelineAssembler`;
factories reach it indirectly through the assembler when they build children.
A disabled node yields ``None`` ("no node") and never touches the registry.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Mapping

from ..domain.errors import ConfigurationError, ConstructionError
from ..domain.handlers import Handler
from ..domain.records import Processor
from ..observability import log_debug, make_event
from .ports import Assembler
from .registry import FORMATTER, HANDLER, PROCESSOR, Registry

STRUCTURAL_KEYS: Final[tuple[str, ...]] = ("handler", "handlers", "formatter", "processors")
"""Keys that may sit beside ``type`` instead of inside ``options``."""


def node_options(node: Mapping[str, Any]) -> dict[str, Any]:
    """Return the options of *node*, with structural keys lifted from the top level.

    Values inside ``options`` win over top-level ones.

    Examples
    --------
    >>> node_options({"type": "buffer", "handler": {"type": "null"}, "options": {"buffer_limit": 5}})
    {'handler': {'type': 'null'}, 'buffer_limit': 5}
    """

    raw = node.get("options")
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Options must be an Array")
    merged = {key: node[key] for key in STRUCTURAL_KEYS if key in node}
    merged.update(raw)
    return merged


def is_enabled(node: Mapping[str, Any]) -> bool:
    return bool(node.get("enabled", True))


class NodeBuilder:
    """Build handlers, formatters and processors from configuration nodes.

    Why
    ----
    Shared attachment logic lives here once instead of in every factory.

    Parameters
    ----------
    registry:
        Source of factories for every namespace.
    assembler:
        Passed to each factory so composite handlers can build children and
        resolve collaborators.
    """

    def __init__(self, registry: Registry, assembler: Assembler) -> None:
        self.registry = registry
        self.assembler = assembler

    def resolve(self, name: str) -> Any:
        """Return the collaborator registered as *name*."""

        return self.assembler.resolve(name)

    def build_handler(self, node: Any) -> Handler | None:
        """Build a handler node, attach its formatter and processors.

        Returns ``None`` for a disabled node.
        """

        if isinstance(node, Handler):
            return node
        prepared = self._prepare(HANDLER, node)
        if prepared is None:
            return None
        type_name, options = prepared
        handler = self.registry.construct(HANDLER, type_name, options, self.assembler)
        if not isinstance(handler, Handler):
            raise ConstructionError(
                f"Factory for handler type '{type_name}' returned {type(handler).__name__}, not a Handler",
                namespace=HANDLER,
                type_name=type_name,
            )
        self.attach_formatter(handler, options)
        self.attach_processors(handler, options)
        log_debug("node_built", **make_event(HANDLER, type_name, {"class": type(handler).__name__}))
        return handler

    def build_formatter(self, node: Any) -> logging.Formatter | None:
        if isinstance(node, logging.Formatter):
            return node
        prepared = self._prepare(FORMATTER, node)
        if prepared is None:
            return None
        type_name, options = prepared
        formatter = self.registry.construct(FORMATTER, type_name, options, self.assembler)
        if not isinstance(formatter, logging.Formatter):
            raise ConstructionError(
                f"Factory for formatter type '{type_name}' returned {type(formatter).__name__}, not a Formatter",
                namespace=FORMATTER,
                type_name=type_name,
            )
        log_debug("node_built", **make_event(FORMATTER, type_name, {"class": type(formatter).__name__}))
        return formatter

    def build_processor(self, node: Any) -> Processor | None:
        if callable(node):
            return node
        prepared = self._prepare(PROCESSOR, node)
        if prepared is None:
            return None
        type_name, options = prepared
        processor = self.registry.construct(PROCESSOR, type_name, options, self.assembler)
        if not callable(processor):
            raise ConstructionError(
                f"Factory for processor type '{type_name}' returned {type(processor).__name__}, not a callable",
                namespace=PROCESSOR,
                type_name=type_name,
            )
        log_debug("node_built", **make_event(PROCESSOR, type_name, {"class": type(processor).__name__}))
        return processor

    def attach_formatter(self, handler: Handler, options: Mapping[str, Any]) -> None:
        """Attach ``options["formatter"]`` when *handler* accepts a formatter."""

        if not handler.formattable:
            return
        node = options.get("formatter")
        if node is None:
            return
        if not isinstance(node, (Mapping, logging.Formatter)):
            raise ConfigurationError("Formatter must be an Array or an Instance of logging.Formatter")
        formatter = self.build_formatter(node)
        if formatter is None:
            return
        handler.setFormatter(formatter)
        log_debug(
            "formatter_attached",
            **make_event(FORMATTER, type(formatter).__name__, {"handler": type(handler).__name__}),
        )

    def attach_processors(self, target: Any, options: Mapping[str, Any]) -> None:
        """Push ``options["processors"]`` onto *target* so they run in declared order.

        *target* is a handler or a logger; handlers that are not processable
        are left untouched.
        """

        if not getattr(target, "processable", True):
            return
        nodes = options.get("processors")
        if nodes is None:
            return
        if not isinstance(nodes, (list, tuple)):
            raise ConfigurationError("Processors must be an Array")
        attached = 0
        for node in reversed(nodes):
            processor = self.build_processor(node)
            if processor is None:
                continue
            target.push_processor(processor)
            attached += 1
        if attached:
            log_debug(
                "processors_attached",
                **make_event(PROCESSOR, None, {"target": type(target).__name__, "count": attached}),
            )

    def _prepare(self, namespace: str, node: Any) -> tuple[str, dict[str, Any]] | None:
        if not isinstance(node, Mapping):
            raise ConfigurationError("Options must be an Array")
        if not is_enabled(node):
            log_debug("node_skipped", **make_event(namespace, _type_of(node), {"enabled": False}))
            return None
        type_name = node.get("type")
        if not isinstance(type_name, str) or not type_name:
            raise ConfigurationError(f"Options must contain a type for the {namespace}")
        return type_name, node_options(node)


def _type_of(node: Mapping[str, Any]) -> str | None:
    value = node.get("type")
    return value if isinstance(value, str) else None
