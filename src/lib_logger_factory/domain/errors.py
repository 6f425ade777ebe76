"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the registry, the node builder, the
pipeline assembler and consuming applications. The hierarchy lives in the
domain layer so every outer layer may depend on it.

Contents
--------
* :class:`LoggerFactoryError` – umbrella base class for all library failures.
* :class:`ConfigurationError` – the configuration shape is invalid.
* :class:`NotFoundError` – a ``type`` is not registered in a namespace.
* :class:`CollaboratorNotFoundError` – a named collaborator could not be resolved.
* :class:`ConstructionError` – a registered factory raised while constructing.
* :class:`InvalidFormat` – a configuration file could not be parsed.

System Role
-----------
Every failure aborts the whole assembly (first failure wins). Callers catch
:class:`LoggerFactoryError` to handle all library failures uniformly.
"""

from __future__ import annotations


class LoggerFactoryError(Exception):
    """Base type for all exceptions emitted by ``lib_logger_factory``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class ConfigurationError(LoggerFactoryError):
    """Raised when a configuration node is missing a key or has the wrong shape.

    The message always names the offending field (``"No handler provided"``,
    ``"Options must contain a type for the formatter"`` ...).
    """


class NotFoundError(LoggerFactoryError):
    """Raised by the registry when a ``type`` is unknown in a namespace."""


class CollaboratorNotFoundError(LoggerFactoryError):
    """Raised when a resolver cannot supply a named collaborator.

    Why
    ----
    Handler options may reference services (streams, standard library loggers)
    by name instead of embedding an instance. Missing services must surface
    with the library's error taxonomy rather than a bare ``KeyError``.
    """


class ConstructionError(LoggerFactoryError):
    """Raised when a registered factory fails while building its instance.

    Attributes
    ----------
    namespace:
        Registry namespace of the failing entry (``"handler"`` ...).
    type_name:
        Registered type name of the failing entry.
    """

    def __init__(self, message: str, *, namespace: str, type_name: str) -> None:
        super().__init__(message)
        self.namespace = namespace
        self.type_name = type_name


class InvalidFormat(LoggerFactoryError):
    """Raised when a configuration file cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`).
    """
