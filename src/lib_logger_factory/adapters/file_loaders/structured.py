"""Readers for logger configuration files.

Purpose
-------
Turn a TOML, JSON or YAML file into the mapping the pipeline assembler
consumes, and reject files whose logger section cannot describe a logger
before any handler is built.

Contents
--------
* :data:`LOGGER_SECTIONS` – top-level keys holding the logger configuration,
  in lookup order.
* :class:`BaseFileLoader` – read, decode, shape-check, report.
* :class:`TOMLFileLoader`, :class:`JSONFileLoader`, :class:`YAMLFileLoader` –
  format-specific decoding (YAML needs PyYAML).
* :func:`loader_for` – pick the loader for a path by suffix.

System Role
-----------
Used by :func:`lib_logger_factory.core.read_logger_config`. Decoding errors
become :class:`InvalidFormat`; a missing file, an unsupported suffix or a
missing optional parser become :class:`ConfigurationError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, ClassVar, Final, Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[assignment]

from ...domain.errors import ConfigurationError, InvalidFormat
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]

LOGGER_SECTIONS: Final[tuple[str, ...]] = ("log", "logger")


class BaseFileLoader:
    """Shared pipeline of every loader: read bytes, decode, check the logger sections.

    Subclasses set :attr:`format_name` and :attr:`decode_errors` and implement
    :meth:`_decode`.
    """

    format_name: ClassVar[str] = ""
    decode_errors: ClassVar[tuple[type[BaseException], ...]] = ()

    def load(self, path: str) -> Mapping[str, object]:
        """Return the logger configuration stored at *path*.

        Side Effects
        ------------
        Emits ``config_file_read`` and ``config_file_loaded`` debug events, or
        ``config_file_invalid`` when decoding fails.
        """

        payload = self._read(path)
        try:
            data = self._decode(payload)
        except (UnicodeDecodeError, *self.decode_errors) as exc:
            log_error("config_file_invalid", path=path, format=self.format_name, error=str(exc))
            raise InvalidFormat(
                f"Invalid {self.format_name.upper()} logger configuration in {path}: {exc}"
            ) from exc
        result = self._check_sections(self._ensure_mapping(data, path=path), path=path)
        log_debug(
            "config_file_loaded",
            path=path,
            format=self.format_name,
            sections=[key for key in LOGGER_SECTIONS if key in result],
        )
        return result

    def _decode(self, payload: bytes) -> Any:
        raise NotImplementedError

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`ConfigurationError` when the file is missing.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"[log]")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)
        b'[log]'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise ConfigurationError(f"Logger configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", path=path, size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure the document root is a mapping.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_logger_factory.domain.errors.InvalidFormat: Logger configuration demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"Logger configuration {path} did not produce a mapping")
        return data  # type: ignore[return-value]

    @staticmethod
    def _check_sections(data: Mapping[str, object], *, path: str) -> Mapping[str, object]:
        """Reject ``log``/``logger`` sections that are present but not mappings.

        Examples
        --------
        >>> BaseFileLoader._check_sections({"log": {"name": "app"}}, path="demo")
        {'log': {'name': 'app'}}
        >>> BaseFileLoader._check_sections({"log": ["app"]}, path="demo")
        Traceback (most recent call last):
        ...
        lib_logger_factory.domain.errors.InvalidFormat: Section 'log' of logger configuration demo must be a mapping, got list
        """

        for key in LOGGER_SECTIONS:
            if key in data and not isinstance(data[key], Mapping):
                raise InvalidFormat(
                    f"Section '{key}' of logger configuration {path} must be a mapping, "
                    f"got {type(data[key]).__name__}"
                )
        return data


class TOMLFileLoader(BaseFileLoader):
    """Decode TOML with ``tomllib`` (``tomli`` before Python 3.11).

    Examples
    --------
    >>> from tempfile import NamedTemporaryFile
    >>> tmp = NamedTemporaryFile('w', suffix='.toml', delete=False, encoding='utf-8')
    >>> _ = tmp.write('[log]\\nname = "app"')
    >>> tmp.close()
    >>> TOMLFileLoader().load(tmp.name)["log"]["name"]
    'app'
    >>> Path(tmp.name).unlink()
    """

    format_name = "toml"
    decode_errors = (tomllib.TOMLDecodeError,)

    def _decode(self, payload: bytes) -> Any:
        return tomllib.loads(payload.decode("utf-8"))


class JSONFileLoader(BaseFileLoader):
    format_name = "json"
    decode_errors = (json.JSONDecodeError,)

    def _decode(self, payload: bytes) -> Any:
        return json.loads(payload)


class _YAMLDecodeError(ValueError):
    """YAML failure re-raised under a type that exists without PyYAML."""


class YAMLFileLoader(BaseFileLoader):
    """Decode YAML with ``yaml.safe_load``; an empty document is an empty configuration."""

    format_name = "yaml"
    decode_errors = (_YAMLDecodeError,)

    def load(self, path: str) -> Mapping[str, object]:
        if yaml is None:
            raise ConfigurationError("PyYAML is required to read YAML logger configuration")
        return super().load(path)

    def _decode(self, payload: bytes) -> Any:
        try:
            data = yaml.safe_load(payload)  # type: ignore[union-attr]
        except yaml.YAMLError as exc:  # type: ignore[union-attr]
            raise _YAMLDecodeError(str(exc)) from exc
        return {} if data is None else data


# Loaders keyed by lower-case file suffix.
_LOADERS: Final[dict[str, BaseFileLoader]] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


def loader_for(path: str | Path) -> BaseFileLoader:
    """Return the loader matching the suffix of *path*.

    Examples
    --------
    >>> type(loader_for("logging.YML")).__name__
    'YAMLFileLoader'
    >>> loader_for("logging.ini")
    Traceback (most recent call last):
    ...
    lib_logger_factory.domain.errors.ConfigurationError: Unsupported configuration format '.ini', use one of: .json, .toml, .yaml, .yml
    """

    suffix = Path(path).suffix
    loader = _LOADERS.get(suffix.lower())
    if loader is None:
        supported = ", ".join(sorted(_LOADERS))
        raise ConfigurationError(f"Unsupported configuration format '{suffix}', use one of: {supported}")
    return loader
