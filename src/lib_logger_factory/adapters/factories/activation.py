"""Activation strategy factories registered under ``activation_strategy``."""

from __future__ import annotations

from typing import Any, Callable, Final, Mapping

from ...application.ports import Assembler
from ...domain.activation import (
    ActivationStrategy,
    ChannelLevelActivationStrategy,
    ErrorLevelActivationStrategy,
)
from ...domain.errors import ConfigurationError
from ...domain.levels import DEBUG

Options = Mapping[str, Any]


def create_error_level(options: Options, assembler: Assembler) -> ErrorLevelActivationStrategy:
    return ErrorLevelActivationStrategy(options.get("action_level", DEBUG))


def create_channel_level(options: Options, assembler: Assembler) -> ChannelLevelActivationStrategy:
    mapping = options.get("channel_to_action_level") or {}
    if not isinstance(mapping, Mapping):
        raise ConfigurationError("channel_to_action_level must be a mapping of channel to level")
    return ChannelLevelActivationStrategy(options.get("default_action_level", DEBUG), mapping)


ACTIVATION_FACTORIES: Final[dict[str, Callable[[Options, Assembler], ActivationStrategy]]] = {
    "error_level": create_error_level,
    "channel_level": create_channel_level,
}
