"""Pipeline assembler: composite children, activation strategies, logger root."""

from __future__ import annotations

import io
import json
from datetime import timezone
from zoneinfo import ZoneInfo

import pytest

from lib_logger_factory.adapters.resolvers.mapping import MappingResolver
from lib_logger_factory.application.assembler import PipelineAssembler
from lib_logger_factory.domain.activation import ChannelLevelActivationStrategy, ErrorLevelActivationStrategy
from lib_logger_factory.domain.composite import (
    BufferHandler,
    FallbackGroupHandler,
    FingersCrossedHandler,
    GroupHandler,
)
from lib_logger_factory.domain.errors import CollaboratorNotFoundError, ConfigurationError, NotFoundError
from lib_logger_factory.domain.handlers import NullHandler, StreamHandler, TestHandler
from lib_logger_factory.domain.levels import ERROR, WARNING


@pytest.mark.parametrize("composite", ["buffer", "fingers_crossed", "filter", "deduplication", "overflow", "sampling"])
def test_single_child_composites_require_a_handler(assembler, composite) -> None:
    with pytest.raises(ConfigurationError, match="No handler provided"):
        assembler.builder.build_handler({"type": composite, "options": {"factor": 2}})
    with pytest.raises(ConfigurationError, match="HandlerConfig must be an Array"):
        assembler.builder.build_handler({"type": composite, "options": {"handler": "stream", "factor": 2}})
    with pytest.raises(ConfigurationError, match="No active handler specified"):
        assembler.builder.build_handler(
            {"type": composite, "options": {"handler": {"type": "test", "enabled": False}, "factor": 2}}
        )


@pytest.mark.parametrize("group", ["group", "fallback_group"])
def test_groups_require_active_members(assembler, group) -> None:
    with pytest.raises(ConfigurationError, match="No Service names provided for the required handler classes"):
        assembler.builder.build_handler({"type": group})
    with pytest.raises(ConfigurationError, match="No Service names provided for the required handler classes"):
        assembler.builder.build_handler({"type": group, "options": {"handlers": "test"}})
    with pytest.raises(ConfigurationError, match="No active handlers specified"):
        assembler.builder.build_handler(
            {"type": group, "options": {"handlers": [{"type": "test", "enabled": False}, {"enabled": False}]}}
        )
    with pytest.raises(ConfigurationError, match="HandlerConfig must be an Array"):
        assembler.builder.build_handler({"type": group, "options": {"handlers": ["test"]}})


def test_group_skips_disabled_members(assembler) -> None:
    group = assembler.builder.build_handler(
        {
            "type": "group",
            "handlers": [
                {"type": "stream", "enabled": False},
                {"type": "stream", "options": {"stream": "memory://"}},
            ],
        }
    )
    assert isinstance(group, GroupHandler)
    assert len(group.handlers) == 1
    assert isinstance(group.handlers[0], StreamHandler)
    assert isinstance(group.handlers[0].stream, io.StringIO)


def test_group_takes_processors_but_no_formatter(assembler) -> None:
    group = assembler.builder.build_handler(
        {
            "type": "fallback_group",
            "options": {
                "handlers": [{"type": "test"}],
                "formatter": {"type": "json"},
                "processors": [{"type": "uid"}],
            },
        }
    )
    assert isinstance(group, FallbackGroupHandler)
    assert group.formatter is None
    assert group.handlers[0].formatter is None
    assert len(group.processors) == 1


def test_composite_children_are_fully_built(assembler) -> None:
    buffer = assembler.builder.build_handler(
        {
            "type": "buffer",
            "options": {
                "buffer_limit": 3,
                "handler": {"type": "test", "options": {"formatter": {"type": "json"}, "processors": [{"type": "tag"}]}},
            },
        }
    )
    assert isinstance(buffer, BufferHandler)
    assert buffer.buffer_limit == 3
    assert buffer.flush_on_overflow is True
    assert buffer.handler.formatter.__class__.__name__ == "JsonFormatter"
    assert len(buffer.handler.processors) == 1


def test_pass_through_child_handler(assembler) -> None:
    child = TestHandler()
    buffer = assembler.builder.build_handler({"type": "buffer", "handler": child})
    assert buffer.handler is child


def test_nested_child_errors_propagate_unchanged(assembler) -> None:
    with pytest.raises(NotFoundError, match="No handler registered for type 'missing'"):
        assembler.builder.build_handler({"type": "buffer", "handler": {"type": "buffer", "handler": {"type": "missing"}}})


def test_activation_strategy_variants(assembler) -> None:
    strategy = ErrorLevelActivationStrategy("error")
    assert assembler.activation_strategy(None) is None
    assert assembler.activation_strategy(strategy) is strategy
    assert assembler.activation_strategy(ERROR) == ERROR
    assert assembler.activation_strategy("warning") == WARNING
    built = assembler.activation_strategy(
        {"type": "channel_level", "options": {"default_action_level": "error", "channel_to_action_level": {"db": "info"}}}
    )
    assert isinstance(built, ChannelLevelActivationStrategy)
    assert built.channel_to_action_level == {"db": 20}
    assert isinstance(assembler.activation_strategy("error_level"), ErrorLevelActivationStrategy)


def test_activation_strategy_errors(assembler) -> None:
    with pytest.raises(ConfigurationError, match="Options must contain a type for the ActivationStrategy"):
        assembler.activation_strategy({"options": {}})
    with pytest.raises(ConfigurationError, match="Could not find Class for ActivationStrategy"):
        assembler.activation_strategy("sometimes")
    with pytest.raises(ConfigurationError, match="Could not find Class for ActivationStrategy"):
        assembler.activation_strategy(1.5)


def test_fingers_crossed_buffers_until_activation_level(assembler) -> None:
    logger = assembler.assemble(
        {
            "name": "app",
            "handlers": [
                {"type": "fingers_crossed", "options": {"activation_strategy": "error", "handler": {"type": "test"}}}
            ],
        }
    )
    handler = logger.handlers[0]
    assert isinstance(handler, FingersCrossedHandler)
    sink = handler.handler
    logger.debug("d")
    logger.info("i")
    assert sink.records == []
    logger.error("e")
    assert sink.messages() == ["d", "i", "e"]


def test_assemble_pushes_handlers_over_a_null_handler(assembler) -> None:
    logger = assembler.assemble(
        {"name": "app", "handlers": [{"type": "test", "options": {"level": "error"}}, {"type": "test"}]}
    )
    first_declared, second_declared = logger.handlers[1], logger.handlers[0]
    assert isinstance(logger.handlers[-1], NullHandler)
    assert first_declared.level == ERROR
    logger.error("boom")
    assert second_declared.messages() == ["boom"]
    assert first_declared.messages() == ["boom"]


def test_non_bubbling_handler_stops_later_declared_ones(assembler) -> None:
    logger = assembler.assemble(
        {"name": "app", "handlers": [{"type": "test"}, {"type": "test", "options": {"bubble": False}}]}
    )
    stopper, below = logger.handlers[0], logger.handlers[1]
    logger.info("only once")
    assert stopper.messages() == ["only once"]
    assert below.records == []


def test_assemble_without_name_returns_noop_logger(assembler) -> None:
    for config in ({}, {"handlers": [{"type": "test"}]}, None, ["name"]):
        logger = assembler.assemble(config)
        assert logger.name == "null"
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], NullHandler)


def test_assemble_timezone_handling(assembler) -> None:
    assert assembler.assemble({"name": "a"}).timezone is timezone.utc
    assert assembler.assemble({"name": "a", "timezone": "Europe/Berlin"}).timezone == ZoneInfo("Europe/Berlin")
    zone = ZoneInfo("America/New_York")
    assert assembler.assemble({"name": "a", "timezone": zone}).timezone is zone
    for bad in ("Mars/Olympus_Mons", 5, True):
        with pytest.raises(ConfigurationError, match="An invalid timezone was set"):
            assembler.assemble({"name": "a", "timezone": bad})


def test_assemble_rejects_non_list_handlers(assembler) -> None:
    with pytest.raises(ConfigurationError, match="Handlers must be iterable"):
        assembler.assemble({"name": "a", "handlers": {"type": "test"}})


def test_assemble_skips_disabled_handlers_and_attaches_root_processors(assembler) -> None:
    logger = assembler.assemble(
        {
            "name": "a",
            "handlers": [{"type": "test", "enabled": False}, {"type": "test"}],
            "processors": [{"type": "process_id"}, {"type": "uid", "enabled": False}, {"type": "hostname"}],
        }
    )
    assert len(logger.handlers) == 2
    assert [type(p).__name__ for p in logger.processors] == ["ProcessIdProcessor", "HostnameProcessor"]


def test_collaborators_come_from_the_resolver(registry) -> None:
    stream = io.StringIO()
    assembler = PipelineAssembler(registry, MappingResolver({"audit_stream": stream}))
    logger = assembler.assemble(
        {"name": "a", "handlers": [{"type": "stream", "options": {"stream": "audit_stream", "formatter": {"type": "line", "options": {"format": "%(message)s"}}}}]}
    )
    logger.info("resolved")
    assert stream.getvalue() == "resolved\n"
    with pytest.raises(CollaboratorNotFoundError):
        assembler.resolve("missing")


def test_handler_processors_stay_with_their_handler(assembler) -> None:
    logger = assembler.assemble(
        {
            "name": "app",
            "handlers": [
                {"type": "test"},
                {"type": "test", "processors": [{"type": "tag", "options": {"tags": {"env": "prod"}}}]},
            ],
        }
    )
    tagged, plain = logger.handlers[0], logger.handlers[1]
    logger.info("hello")
    assert tagged.records[0].extra == {"tags": {"env": "prod"}}
    assert plain.records[0].extra == {}


def test_context_consumed_by_one_handler_is_intact_for_the_next(assembler) -> None:
    logger = assembler.assemble(
        {
            "name": "app",
            "handlers": [
                {"type": "test"},
                {
                    "type": "test",
                    "processors": [{"type": "psr_log_message", "options": {"remove_used_context_fields": True}}],
                },
            ],
        }
    )
    interpolating, plain = logger.handlers[0], logger.handlers[1]
    logger.info("{user} signed in", {"user": "ada"})
    assert interpolating.messages() == ["ada signed in"]
    assert interpolating.records[0].context == {}
    assert plain.messages() == ["{user} signed in"]
    assert plain.records[0].context == {"user": "ada"}


def test_buffered_stream_writes_json_array_on_close(assembler) -> None:
    buffer = assembler.builder.build_handler(
        {
            "type": "buffer",
            "options": {
                "handler": {
                    "type": "stream",
                    "options": {"stream": "memory://"},
                    "formatter": {"type": "json", "options": {"batch_mode": "json"}},
                }
            },
        }
    )
    stream = buffer.handler.stream
    logger = assembler.assemble({"name": "app"})
    logger.push_handler(buffer)
    logger.info("one")
    logger.warning("two")
    assert stream.getvalue() == ""
    buffer.close()
    payload = json.loads(stream.getvalue())
    assert [entry["message"] for entry in payload] == ["one", "two"]


def test_buffered_stream_writes_json_lines_in_newlines_mode(assembler) -> None:
    buffer = assembler.builder.build_handler(
        {
            "type": "buffer",
            "options": {
                "handler": {
                    "type": "stream",
                    "options": {"stream": "memory://"},
                    "formatter": {"type": "json", "options": {"batch_mode": "newlines"}},
                }
            },
        }
    )
    stream = buffer.handler.stream
    logger = assembler.assemble({"name": "app"})
    logger.push_handler(buffer)
    logger.info("one")
    logger.info("two")
    buffer.close()
    lines = stream.getvalue().splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["one", "two"]
