"""Built-in factories and the pre-populated registry.

Expose :func:`default_registry` so applications start from every built-in
handler, formatter, processor and activation strategy and register their own
types on top.
"""

from __future__ import annotations

from ...application.registry import ACTIVATION_STRATEGY, FORMATTER, HANDLER, PROCESSOR, Registry
from .activation import ACTIVATION_FACTORIES
from .formatters import FORMATTER_FACTORIES
from .handlers import HANDLER_FACTORIES
from .processors import PROCESSOR_FACTORIES


def default_registry() -> Registry:
    """Return a fresh registry holding every built-in factory.

    Examples
    --------
    >>> registry = default_registry()
    >>> registry.has("handler", "fingers_crossed")
    True
    >>> registry.types("formatter")
    ('json', 'line', 'logstash')
    """

    registry = Registry()
    for namespace, table in (
        (HANDLER, HANDLER_FACTORIES),
        (FORMATTER, FORMATTER_FACTORIES),
        (PROCESSOR, PROCESSOR_FACTORIES),
        (ACTIVATION_STRATEGY, ACTIVATION_FACTORIES),
    ):
        for type_name, factory in table.items():
            registry.register(namespace, type_name, factory)
    return registry


__all__ = ["default_registry"]
