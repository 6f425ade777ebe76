"""Collaborator resolver backed by a plain mapping.

Purpose
-------
Implement the :class:`~lib_logger_factory.application.ports.Resolver` port for
applications that wire their services by hand: streams, standard library
loggers or pre-built strategies are registered under a name and referenced
from handler options.

Key behaviours
--------------
* Missing names raise :class:`CollaboratorNotFoundError` chained to the
  original :class:`KeyError`.
* Each lookup emits a ``collaborator_resolved`` debug event.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...domain.errors import CollaboratorNotFoundError
from ...observability import log_debug


class MappingResolver:
    """Resolve collaborators from an in-memory mapping.

    Examples
    --------
    >>> import sys
    >>> resolver = MappingResolver({"out": sys.stdout})
    >>> resolver.has("out"), resolver.has("missing")
    (True, False)
    >>> resolver.resolve("out") is sys.stdout
    True
    """

    def __init__(self, services: Mapping[str, Any] | None = None) -> None:
        self._services: dict[str, Any] = dict(services or {})

    def has(self, name: str) -> bool:
        return name in self._services

    def resolve(self, name: str) -> Any:
        """Return the service registered as *name*.

        Raises
        ------
        CollaboratorNotFoundError
            When nothing is registered under *name*.
        """

        try:
            service = self._services[name]
        except KeyError as exc:
            raise CollaboratorNotFoundError(f"Could not find service {name}") from exc
        log_debug("collaborator_resolved", name=name, kind=type(service).__name__)
        return service

    def register(self, name: str, service: Any) -> None:
        self._services[name] = service

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._services))
