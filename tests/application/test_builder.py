"""Node builder behaviour: enabled gate, required type, attachment rules."""

from __future__ import annotations

import logging

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_logger_factory.adapters.factories import default_registry
from lib_logger_factory.application.assembler import PipelineAssembler
from lib_logger_factory.application.builder import node_options
from lib_logger_factory.application.registry import Registry
from lib_logger_factory.domain.errors import CollaboratorNotFoundError, ConfigurationError, ConstructionError
from lib_logger_factory.domain.formatters import JsonFormatter, LineFormatter
from lib_logger_factory.domain.handlers import LoggingHandler, TestHandler
from lib_logger_factory.domain.records import make_record


class SpyRegistry(Registry):
    """Registry recording every resolve call."""

    def __init__(self, source: Registry) -> None:
        super().__init__()
        self._factories = source.copy()._factories
        self.calls: list[tuple[str, str]] = []

    def resolve(self, namespace, type_name):
        self.calls.append((namespace, type_name))
        return super().resolve(namespace, type_name)


class SpyResolver:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def has(self, name: str) -> bool:
        self.calls.append(name)
        return False

    def resolve(self, name: str):
        self.calls.append(name)
        raise AssertionError("resolver must not be used")


def _naming(name: str):
    def processor(record: logging.LogRecord) -> logging.LogRecord:
        record.extra.setdefault("order", []).append(name)
        return record

    processor.__qualname__ = name
    return processor


@pytest.fixture()
def spy(registry: Registry) -> SpyRegistry:
    return SpyRegistry(registry)


@pytest.fixture()
def builder(spy: SpyRegistry):
    return PipelineAssembler(spy, SpyResolver()).builder


@pytest.mark.parametrize("namespace", ["handler", "formatter", "processor"])
def test_disabled_nodes_yield_nothing_without_registry_calls(builder, spy, namespace) -> None:
    build = getattr(builder, f"build_{namespace}")
    assert build({"type": "anything", "enabled": False}) is None
    assert build({"enabled": False}) is None
    assert build({"enabled": 0, "options": {"stream": "x"}}) is None
    assert spy.calls == []
    assert builder.assembler.resolver.calls == []


@pytest.mark.parametrize("namespace", ["handler", "formatter", "processor"])
def test_missing_type_fails_before_registry(builder, spy, namespace) -> None:
    with pytest.raises(ConfigurationError, match=f"Options must contain a type for the {namespace}"):
        getattr(builder, f"build_{namespace}")({"options": {}})
    assert spy.calls == []


@pytest.mark.parametrize("namespace", ["handler", "formatter", "processor"])
def test_non_mapping_nodes_are_rejected(builder, namespace) -> None:
    with pytest.raises(ConfigurationError, match="Options must be an Array"):
        getattr(builder, f"build_{namespace}")(42)


def test_options_must_be_a_mapping(builder) -> None:
    with pytest.raises(ConfigurationError, match="Options must be an Array"):
        builder.build_handler({"type": "test", "options": ["level", "info"]})


def test_pass_through_instances_are_returned_as_is(builder, spy) -> None:
    handler, formatter, processor = TestHandler(), JsonFormatter(), _naming("p")
    assert builder.build_handler(handler) is handler
    assert builder.build_formatter(formatter) is formatter
    assert builder.build_processor(processor) is processor
    assert spy.calls == []


def test_formatter_attach_uses_registry_instance(spy) -> None:
    made: list[logging.Formatter] = []

    def factory(options, assembler):
        formatter = LineFormatter(options.get("format"))
        made.append(formatter)
        return formatter

    spy.register("formatter", "T", factory)
    builder = PipelineAssembler(spy).builder
    node = {"type": "test", "options": {"formatter": {"type": "T", "options": {"format": "%(message)s"}}}}
    handler = builder.build_handler(node)
    assert handler.formatter is made[0]
    assert ("formatter", "T") in spy.calls


def test_formatter_accepts_instance_and_rejects_other_values(builder) -> None:
    formatter = JsonFormatter()
    handler = builder.build_handler({"type": "test", "options": {"formatter": formatter}})
    assert handler.formatter is formatter
    with pytest.raises(ConfigurationError, match="Formatter must be an Array or an Instance of logging.Formatter"):
        builder.build_handler({"type": "test", "options": {"formatter": "json"}})


def test_disabled_formatter_leaves_handler_unformatted(builder) -> None:
    handler = builder.build_handler({"type": "test", "options": {"formatter": {"type": "json", "enabled": False}}})
    assert handler.formatter is None


def test_formatter_is_not_attached_to_unformattable_handlers(builder) -> None:
    handler = builder.build_handler(
        {"type": "logging", "options": {"logger": "tests.builder", "formatter": {"type": "nonexistent"}}}
    )
    assert isinstance(handler, LoggingHandler)
    assert handler.formatter is None


def test_processors_must_be_a_list(builder) -> None:
    with pytest.raises(ConfigurationError, match="Processors must be an Array"):
        builder.build_handler({"type": "test", "options": {"processors": {"type": "uid"}}})


def test_processor_entries_must_be_mappings_or_callables(builder) -> None:
    with pytest.raises(ConfigurationError, match="Options must be an Array"):
        builder.build_handler({"type": "test", "options": {"processors": ["uid"]}})
    with pytest.raises(ConfigurationError, match="Options must contain a type for the processor"):
        builder.build_handler({"type": "test", "options": {"processors": [{"options": {}}]}})


def test_processors_run_in_declared_order(builder, record) -> None:
    handler = builder.build_handler(
        {"type": "test", "options": {"processors": [_naming("x"), {"type": "uid", "enabled": False}, _naming("y")]}}
    )
    handler.handle(record())
    assert handler.records[0].extra["order"] == ["x", "y"]
    assert [p.__qualname__ for p in handler.processors] == ["x", "y"]


@given(st.lists(st.text(alphabet="abcdefgh", min_size=1, max_size=4), min_size=1, max_size=6))
def test_processor_order_property(names) -> None:
    builder = PipelineAssembler(default_registry()).builder
    handler = builder.build_handler({"type": "test", "options": {"processors": [_naming(n) for n in names]}})
    handler.handle(make_record("app", logging.INFO, "m"))
    assert handler.records[0].extra["order"] == names


def test_structural_keys_may_sit_beside_type_with_options_winning() -> None:
    merged = node_options({"type": "buffer", "handler": {"type": "null"}, "options": {"handler": {"type": "test"}}})
    assert merged == {"handler": {"type": "test"}}
    assert node_options({"type": "test", "processors": []}) == {"processors": []}
    assert node_options({"type": "test", "level": "info"}) == {}


def test_top_level_formatter_and_processors_are_attached(builder, record) -> None:
    handler = builder.build_handler({"type": "test", "formatter": {"type": "json"}, "processors": [_naming("top")]})
    handler.handle(record())
    assert isinstance(handler.formatter, JsonFormatter)
    assert handler.records[0].extra["order"] == ["top"]


def test_factories_must_return_the_right_kind(spy) -> None:
    spy.register("handler", "bad", lambda options, assembler: "not a handler")
    spy.register("formatter", "bad", lambda options, assembler: object())
    spy.register("processor", "bad", lambda options, assembler: 42)
    builder = PipelineAssembler(spy).builder
    for namespace in ("handler", "formatter", "processor"):
        with pytest.raises(ConstructionError):
            getattr(builder, f"build_{namespace}")({"type": "bad"})


def test_resolve_delegates_to_the_assembler(registry) -> None:
    builder = PipelineAssembler(registry).builder
    with pytest.raises(CollaboratorNotFoundError):
        builder.resolve("stdout")
