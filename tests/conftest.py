"""Shared fixtures for the pipeline builder test-suite."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import pytest

from lib_logger_factory.adapters.factories import default_registry
from lib_logger_factory.application.assembler import PipelineAssembler
from lib_logger_factory.application.registry import Registry
from lib_logger_factory.domain.levels import INFO
from lib_logger_factory.domain.records import make_record


@pytest.fixture()
def registry() -> Registry:
    """Fresh registry with every built-in factory."""

    return default_registry()


@pytest.fixture()
def assembler(registry: Registry) -> PipelineAssembler:
    return PipelineAssembler(registry)


@pytest.fixture()
def record() -> Callable[..., logging.LogRecord]:
    """Factory for pipeline records: ``record("msg", level, context, channel=...)``."""

    def _make(
        message: str = "message",
        level: int = INFO,
        context: Mapping[str, Any] | None = None,
        *,
        channel: str = "app",
    ) -> logging.LogRecord:
        return make_record(channel, level, message, context)

    return _make
