"""CLI adapter for ``lib_logger_factory`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators check a logger configuration file without writing Python: list
the registered types, print the pipeline a file assembles into, or push one
message through it.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_types` – lists registered types per namespace.
* :func:`cli_build` – assembles a configuration file and prints the pipeline tree.
* :func:`cli_emit` – assembles a configuration file and logs one message.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It calls the composition root
(:mod:`lib_logger_factory.core`) only; ``lib_cli_exit_tools`` centralises the
exit code strategy so every command behaves consistently across shells and CI.
"""

from __future__ import annotations

import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.factories import default_registry
from .application.registry import NAMESPACES
from .core import load_logger
from .domain.handlers import Handler, NullHandler
from .domain.levels import LEVELS, to_level
from .domain.logger import Logger

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

_CONFIG_PATH = click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True)


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_logger_factory")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Config-driven logging pipeline builder",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_logger_factory",
    message="lib_logger_factory version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_logger_factory")
    except metadata.PackageNotFoundError:
        click.echo("lib_logger_factory (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_logger_factory')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("types", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--namespace",
    type=click.Choice(NAMESPACES, case_sensitive=False),
    default=None,
    help="Only list types of this namespace",
)
def cli_types(namespace: Optional[str]) -> None:
    """List the registered types as JSON, grouped by namespace.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["types", "--namespace", "formatter"])
    >>> json.loads(result.output)
    {'formatter': ['json', 'line', 'logstash']}
    """

    registry = default_registry()
    selected = (namespace.lower(),) if namespace else NAMESPACES
    click.echo(json.dumps({name: list(registry.types(name)) for name in selected}, indent=2))


@cli.command("build", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--config", "config_path", type=_CONFIG_PATH, required=True, help="Logger configuration file")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_build(config_path: Path, indent: Optional[int]) -> None:
    """Assemble *config_path* and print the resulting pipeline as JSON."""

    logger = load_logger(config_path)
    try:
        click.echo(json.dumps(logger.describe(), indent=indent))
    finally:
        logger.close()


@cli.command("emit", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--config", "config_path", type=_CONFIG_PATH, required=True, help="Logger configuration file")
@click.option(
    "--level",
    type=click.Choice(tuple(LEVELS), case_sensitive=False),
    default="info",
    show_default=True,
    help="Severity of the message",
)
@click.option("--context", "context_json", default=None, help="JSON object attached as record context")
@click.argument("message")
def cli_emit(config_path: Path, level: str, context_json: Optional[str], message: str) -> None:
    """Assemble *config_path* and send MESSAGE through the pipeline."""

    context = _parse_context(context_json)
    logger = load_logger(config_path)
    try:
        sinks = _accepting_handlers(logger, level)
        logger.log(level.lower(), message, context)
    finally:
        logger.close()
    if not sinks:
        click.echo(f"No handler of logger '{logger.name}' accepted a {level.lower()} record", err=True)


def _accepting_handlers(logger: Logger, level: str) -> list[Handler]:
    """Return the handlers other than the bottom null handler that accept *level*."""

    sample = logging.LogRecord(logger.name, to_level(level), "", 0, "", None, None)
    return [
        handler
        for handler in logger.handlers
        if not isinstance(handler, NullHandler) and handler.is_handling(sample)
    ]


def _parse_context(raw: Optional[str]) -> dict[str, object]:
    """Decode the ``--context`` option into a dictionary."""

    if raw is None:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--context") from exc
    if not isinstance(value, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--context")
    return value


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_logger_factory",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
