"""Type-name registry mapping configuration ``type`` values to factories.

Purpose
-------
Replace reflection-based instantiation with an explicit table per namespace.
Applications register factories at startup; the assembler only reads.

Contents
--------
* :data:`NAMESPACES` – the namespaces a registry knows about.
* :class:`Registry` – register, inspect, resolve and construct entries.
"""

from __future__ import annotations

from typing import Any, Final, Mapping

from ..domain.errors import ConstructionError, LoggerFactoryError, NotFoundError
from ..observability import log_debug, log_error, make_event
from .ports import Assembler, Factory

HANDLER: Final[str] = "handler"
FORMATTER: Final[str] = "formatter"
PROCESSOR: Final[str] = "processor"
ACTIVATION_STRATEGY: Final[str] = "activation_strategy"

NAMESPACES: Final[tuple[str, ...]] = (HANDLER, FORMATTER, PROCESSOR, ACTIVATION_STRATEGY)


class Registry:
    """Flat ``type`` → factory tables, one per namespace.

    Examples
    --------
    >>> registry = Registry()
    >>> registry.register("processor", "noop", lambda options, assembler: (lambda record: record))
    >>> registry.has("processor", "noop"), registry.has("handler", "noop")
    (True, False)
    >>> registry.types("processor")
    ('noop',)
    """

    def __init__(self) -> None:
        self._factories: dict[str, dict[str, Factory]] = {namespace: {} for namespace in NAMESPACES}

    def register(self, namespace: str, type_name: str, factory: Factory) -> None:
        """Register *factory* as *type_name*, replacing any previous entry."""

        if not callable(factory):
            raise TypeError(f"Factory for {namespace} '{type_name}' must be callable")
        self._table(namespace)[type_name] = factory

    def has(self, namespace: str, type_name: str) -> bool:
        return type_name in self._factories.get(namespace, {})

    def types(self, namespace: str) -> tuple[str, ...]:
        return tuple(sorted(self._table(namespace)))

    def resolve(self, namespace: str, type_name: str) -> Factory:
        """Return the factory for *type_name* or raise :class:`NotFoundError`."""

        try:
            return self._table(namespace)[type_name]
        except KeyError:
            log_debug("registry_miss", **make_event(namespace, type_name))
            raise NotFoundError(f"No {namespace} registered for type '{type_name}'") from None

    def construct(
        self,
        namespace: str,
        type_name: str,
        options: Mapping[str, Any],
        assembler: Assembler,
    ) -> Any:
        """Resolve *type_name* and call its factory with *options*.

        Library errors raised by the factory (for example a nested child that
        is misconfigured) propagate unchanged; anything else is wrapped in
        :class:`ConstructionError` with the original exception as cause.
        """

        factory = self.resolve(namespace, type_name)
        try:
            return factory(options, assembler)
        except LoggerFactoryError:
            raise
        except Exception as exc:
            log_error("construction_failed", **make_event(namespace, type_name, {"error": str(exc)}))
            raise ConstructionError(
                f"Could not create {namespace} of type '{type_name}': {exc}",
                namespace=namespace,
                type_name=type_name,
            ) from exc

    def copy(self) -> Registry:
        """Return an independent registry with the same entries."""

        clone = Registry()
        for namespace, table in self._factories.items():
            clone._factories[namespace] = dict(table)
        return clone

    def _table(self, namespace: str) -> dict[str, Factory]:
        try:
            return self._factories[namespace]
        except KeyError:
            raise ValueError(f"Unknown registry namespace '{namespace}', use one of: {', '.join(NAMESPACES)}") from None
