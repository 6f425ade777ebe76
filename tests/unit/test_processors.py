from __future__ import annotations

import os
import socket
from datetime import datetime, timezone

import pytest

from lib_logger_factory.domain.levels import ERROR, INFO
from lib_logger_factory.domain.processors import (
    HostnameProcessor,
    IntrospectionProcessor,
    ProcessIdProcessor,
    PsrLogMessageProcessor,
    TagProcessor,
    UidProcessor,
)


def test_uid_processor_is_stable_per_instance(record) -> None:
    processor = UidProcessor(12)
    first = processor(record()).extra["uid"]
    second = processor(record()).extra["uid"]
    assert first == second
    assert len(first) == 12
    processor.reset()
    assert len(processor.uid) == 12


@pytest.mark.parametrize("length", [0, 33, True])
def test_uid_processor_validates_length(length) -> None:
    with pytest.raises(ValueError):
        UidProcessor(length)


def test_process_id_and_hostname(record) -> None:
    rec = HostnameProcessor()(ProcessIdProcessor()(record()))
    assert rec.extra["process_id"] == os.getpid()
    assert rec.extra["hostname"] == socket.gethostname()


def test_tag_processor_accepts_mapping_and_list(record) -> None:
    assert TagProcessor({"env": "prod"})(record()).extra["tags"] == {"env": "prod"}
    processor = TagProcessor(["a", "b"])
    processor.add_tags(["c"])
    assert processor(record()).extra["tags"] == {0: "a", 1: "b", 2: "c"}


def test_psr_log_message_interpolates_context(record) -> None:
    rec = record(
        "{user} paid {amount} at {when} ({missing})",
        context={"user": "ada", "amount": 12.5, "when": datetime(2024, 1, 2, tzinfo=timezone.utc)},
    )
    result = PsrLogMessageProcessor(date_format="%Y-%m-%d")(rec)
    assert result.getMessage() == "ada paid 12.5 at 2024-01-02 ({missing})"
    assert result.context["user"] == "ada"


def test_psr_log_message_can_remove_used_fields(record) -> None:
    rec = record("{user} logged in", context={"user": "ada", "ip": "10.0.0.1"})
    result = PsrLogMessageProcessor(remove_used_context_fields=True)(rec)
    assert result.getMessage() == "ada logged in"
    assert result.context == {"ip": "10.0.0.1"}


def test_psr_log_message_renders_non_scalars_by_type(record) -> None:
    rec = record("{items} {nothing} {error}", context={"items": [1, 2], "nothing": None, "error": KeyError("k")})
    assert PsrLogMessageProcessor()(rec).getMessage() == "[list] null [object KeyError]"


def test_introspection_reports_calling_frame(record) -> None:
    rec = IntrospectionProcessor()(record())
    assert rec.extra["function"] == "test_introspection_reports_calling_frame"
    assert rec.extra["file"].endswith("test_processors.py")
    assert isinstance(rec.extra["line"], int)


def test_introspection_respects_level(record) -> None:
    rec = IntrospectionProcessor(level=ERROR)(record(level=INFO))
    assert "function" not in rec.extra
