from __future__ import annotations

import json
from pathlib import Path

import pytest

from lib_logger_factory.adapters.file_loaders import structured as structured_module
from lib_logger_factory.adapters.file_loaders.structured import JSONFileLoader, TOMLFileLoader, YAMLFileLoader
from lib_logger_factory.domain.errors import ConfigurationError, InvalidFormat


def test_toml_loader(tmp_path: Path) -> None:
    path = tmp_path / "logging.toml"
    path.write_text('[log]\nname = "app"\n\n[[log.handlers]]\ntype = "test"\n')
    loader = TOMLFileLoader()
    data = loader.load(str(path))
    assert data["log"]["name"] == "app"
    assert data["log"]["handlers"] == [{"type": "test"}]


def test_toml_loader_missing_file(tmp_path: Path) -> None:
    loader = TOMLFileLoader()
    missing = tmp_path / "missing.toml"
    with pytest.raises(ConfigurationError, match="Logger configuration file not found"):
        loader.load(str(missing))


def test_toml_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "logging.toml"
    path.write_text("[log\nname =")
    with pytest.raises(InvalidFormat, match="Invalid TOML logger configuration"):
        TOMLFileLoader().load(str(path))


def test_json_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "logging.json"
    path.write_text("{invalid}")
    loader = JSONFileLoader()
    with pytest.raises(InvalidFormat):
        loader.load(str(path))


def test_json_loader_valid(tmp_path: Path) -> None:
    path = tmp_path / "logging.json"
    with path.open("w", encoding="utf-8") as handle:
        json.dump({"log": {"name": "app", "timezone": "UTC"}}, handle)
    loader = JSONFileLoader()
    data = loader.load(str(path))
    assert data["log"]["timezone"] == "UTC"


def test_json_loader_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "logging.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(InvalidFormat, match="did not produce a mapping"):
        JSONFileLoader().load(str(path))


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_loader_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "logging.yaml"
    path.write_text("# empty file\n")
    loader = YAMLFileLoader()
    data = loader.load(str(path))
    assert data == {}


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "logging.yaml"
    path.write_text("log: [unclosed\n")
    with pytest.raises(InvalidFormat, match="Invalid YAML logger configuration"):
        YAMLFileLoader().load(str(path))


def test_yaml_loader_without_pyyaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "logging.yaml"
    path.write_text("log:\n  name: app\n")
    monkeypatch.setattr(structured_module, "yaml", None)
    with pytest.raises(ConfigurationError, match="PyYAML is required"):
        YAMLFileLoader().load(str(path))


@pytest.mark.parametrize("section", ["log", "logger"])
def test_loader_rejects_logger_section_that_is_not_a_mapping(tmp_path: Path, section: str) -> None:
    path = tmp_path / "logging.json"
    path.write_text(json.dumps({section: ["app"]}))
    with pytest.raises(InvalidFormat, match=f"Section '{section}' of logger configuration .* must be a mapping, got list"):
        JSONFileLoader().load(str(path))


def test_toml_scalar_log_section_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "logging.toml"
    path.write_text('log = "app"\n')
    with pytest.raises(InvalidFormat, match="must be a mapping, got str"):
        TOMLFileLoader().load(str(path))


def test_unrelated_sections_pass_through(tmp_path: Path) -> None:
    path = tmp_path / "logging.json"
    path.write_text(json.dumps({"database": "sqlite://", "log": {"name": "app"}}))
    data = JSONFileLoader().load(str(path))
    assert data["database"] == "sqlite://"


def test_loader_for_picks_by_suffix_case_insensitively() -> None:
    assert isinstance(structured_module.loader_for("logging.TOML"), TOMLFileLoader)
    assert isinstance(structured_module.loader_for("logging.yml"), YAMLFileLoader)
    with pytest.raises(ConfigurationError, match="Unsupported configuration format '.ini'"):
        structured_module.loader_for("logging.ini")
