"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the pipeline
assembler can orchestrate construction without depending on concrete
implementations.

Contents
--------
* :class:`Resolver` – supplies named collaborators (streams, loggers, ...).
* :class:`Assembler` – the surface factories use to build nested nodes.
* :class:`Factory` – callable registered under a ``type`` name.
* :class:`FileLoader` – parses structured configuration files.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Factories receive the
assembler through :class:`Assembler` and never import it directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..domain.handlers import Handler


@runtime_checkable
class Resolver(Protocol):
    """Look up collaborators referenced by name in handler options.

    Why
    ----
    Keep service lookup explicit and injectable instead of relying on an
    ambient global container.
    """

    def has(self, name: str) -> bool:
        """Return ``True`` when *name* can be resolved."""

    def resolve(self, name: str) -> Any:
        """Return the collaborator registered as *name* or raise ``CollaboratorNotFoundError``."""


@runtime_checkable
class Assembler(Protocol):
    """Operations available to factories while a pipeline is being built."""

    def resolve(self, name: str) -> Any:
        """Return a named collaborator."""

    def can_resolve(self, name: str) -> bool:
        """Return ``True`` when a collaborator named *name* is available."""

    def child_handler(self, options: Mapping[str, Any]) -> Handler:
        """Build the single child handler referenced by ``options["handler"]``."""

    def child_handlers(self, options: Mapping[str, Any]) -> list[Handler]:
        """Build the active child handlers referenced by ``options["handlers"]``."""

    def activation_strategy(self, value: Any) -> Any:
        """Normalise an ``activation_strategy`` option."""


class Factory(Protocol):
    """Construct one handler, formatter, processor or activation strategy."""

    def __call__(self, options: Mapping[str, Any], assembler: Assembler) -> Any:
        """Return the instance described by *options*."""


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from orchestration logic.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""
