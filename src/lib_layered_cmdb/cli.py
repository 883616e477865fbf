"""Command line front end for ``lib_layered_cmdb``.

Operators use it to see what a host resolves to (``get``), which candidate
files a lookup walks (``paths``), and to scaffold a starter tree
(``generate-examples``). Exit codes and error rendering are delegated to
``lib_cli_exit_tools``; ``--traceback`` switches from a one-line summary to
the full, colourised traceback.

Lookup options shared by ``get`` and ``paths``:

* ``--root DIR`` selects the four-tier cascade, ``--pattern P`` (repeatable)
  the explicit pattern list; exactly one of the two is required.
* ``--set KEY=VALUE`` adds settings on top of ``LIB_LAYERED_CMDB_SET_*``
  environment variables; ``--fact KEY=VALUE`` adds server facts.
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Iterator, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.context.default import EnvSettings, coerce
from .adapters.templating.jinja import MUSTACHE, SYNTAXES, JinjaTemplateRenderer
from .application.merge import BUILTIN_BEHAVIORS
from .core import YAMLCMDB
from .examples import DEFAULT_ENVIRONMENT, DEFAULT_HOST_PLACEHOLDER
from .examples import generate_examples as _generate_examples
from .observability import bind_trace_id

PROG_NAME: Final[str] = "lib_layered_cmdb"
CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_SUMMARY_LIMIT: Final[int] = 500
_VERBOSE_LIMIT: Final[int] = 10_000


def _version() -> str:
    try:
        return metadata.version(PROG_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(help="Layered CMDB lookups for hosts and environments", context_settings=CLICK_CONTEXT_SETTINGS)
@click.version_option(version=_version(), prog_name=PROG_NAME, message=f"{PROG_NAME} version %(version)s")
@click.option("--traceback/--no-traceback", default=False, help="Print the full Python traceback on errors")
@click.option("--trace-id", default=None, help="Identifier attached to every log event of this run")
def cli(traceback: bool, trace_id: Optional[str]) -> None:
    """Configure error rendering and log correlation for the subcommands."""

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if trace_id:
        bind_trace_id(trace_id)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Show the installed distribution's name, version and Python requirement."""

    try:
        meta = metadata.metadata(PROG_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{PROG_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', PROG_NAME)}:")
    for label, field in (("Version", "Version"), ("Requires-Python", "Requires-Python"), ("Summary", "Summary")):
        value = meta.get(field)
        if value:
            click.echo(f"  {label:<16}: {value}")


def _lookup_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by commands that build a CMDB."""

    options = [
        click.option("--server", required=True, help="Server identity (hostname) to resolve"),
        click.option(
            "--root",
            type=click.Path(path_type=Path, file_okay=False, dir_okay=True),
            default=None,
            help="CMDB base directory (enables the four-tier cascade)",
        ),
        click.option(
            "--pattern",
            "patterns",
            multiple=True,
            help="Explicit candidate path pattern, most specific first (repeatable)",
        ),
        click.option(
            "--environment",
            default=None,
            help="Environment name (defaults to $LIB_LAYERED_CMDB_ENVIRONMENT or 'default')",
        ),
        click.option("--set", "settings", multiple=True, metavar="KEY=VALUE", help="Template variable (repeatable)"),
        click.option("--fact", "facts", multiple=True, metavar="KEY=VALUE", help="Server fact (repeatable)"),
        click.option(
            "--merge-behavior",
            type=click.Choice(list(BUILTIN_BEHAVIORS), case_sensitive=False),
            default=None,
            help="Built-in merge behavior (defaults to FIRST_FOUND_WINS)",
        ),
        click.option(
            "--template-syntax",
            type=click.Choice(SYNTAXES, case_sensitive=False),
            default=MUSTACHE,
            show_default=True,
            help="Delimiters used when templating source content",
        ),
        click.option("--extension", default=".yml", show_default=True, help="File extension for the cascade"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("item", required=False)
@_lookup_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_get(item: Optional[str], indent: Optional[int], **lookup: Any) -> None:
    """Resolve ITEM (or the full tree when omitted) for a server and print JSON.

    A missing item prints ``null``; a malformed source aborts with an error.
    """

    cmdb = _build_cmdb(**lookup)
    result = cmdb.get(item, lookup["server"])
    click.echo(json.dumps(result, indent=indent, separators=(",", ":"), ensure_ascii=False, default=str))


@cli.command("paths", context_settings=CLICK_CONTEXT_SETTINGS)
@_lookup_options
def cli_paths(**lookup: Any) -> None:
    """Print the rendered candidate paths for a server, most specific first."""

    cmdb = _build_cmdb(**lookup)
    click.echo(json.dumps(cmdb.candidates(None, lookup["server"]), indent=2))


@cli.command("generate-examples", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--destination",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True, resolve_path=True),
    required=True,
    help="Directory receiving the example CMDB tree",
)
@click.option("--environment", default=DEFAULT_ENVIRONMENT, show_default=True, help="Environment directory name")
@click.option("--server", default=DEFAULT_HOST_PLACEHOLDER, show_default=True, help="Host file name")
@click.option("--force/--no-force", default=False, show_default=True, help="Replace files that already exist")
def cli_generate_examples(destination: Path, environment: str, server: str, force: bool) -> None:
    """Write an example CMDB tree under DESTINATION and print the files written."""

    created = _generate_examples(destination, environment=environment, server=server, force=force)
    click.echo(json.dumps([str(path) for path in created], indent=2))


def _build_cmdb(
    *,
    server: str,
    root: Optional[Path],
    patterns: Sequence[str],
    environment: Optional[str],
    settings: Sequence[str],
    facts: Sequence[str],
    merge_behavior: Optional[str],
    template_syntax: str,
    extension: str,
) -> YAMLCMDB:
    """Translate CLI options into a :class:`YAMLCMDB`."""

    if (root is None) == (not patterns):
        raise click.UsageError("Pass either --root or at least one --pattern.")
    path: Any = str(root) if root is not None else list(patterns)
    variables = dict(EnvSettings().settings())
    variables.update(_parse_pairs(settings, "--set"))
    return YAMLCMDB(
        path,
        merge_behavior,
        environment=environment,
        settings=variables,
        facts=_parse_pairs(facts, "--fact"),
        renderer=JinjaTemplateRenderer(template_syntax),
        extension=extension,
    )


def _parse_pairs(values: Sequence[str], option: str) -> dict[str, object]:
    """Parse ``KEY=VALUE`` arguments with light scalar coercion."""

    parsed: dict[str, object] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {value!r}", param_hint=option)
        parsed[key.strip()] = coerce(raw)
    return parsed


@contextmanager
def _exit_tools_state(restore: bool) -> Iterator[None]:
    """Put ``lib_cli_exit_tools.config`` and the trace binding back after a run."""

    config = lib_cli_exit_tools.config
    saved = (getattr(config, "traceback", False), getattr(config, "traceback_force_color", False))
    try:
        yield
    finally:
        if restore:
            config.traceback, config.traceback_force_color = saved
            bind_trace_id(None)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Run the CLI and return its exit code; errors are printed, not raised."""

    with _exit_tools_state(restore_traceback):
        try:
            return lib_cli_exit_tools.run_cli(cli, argv=None if argv is None else list(argv), prog_name=PROG_NAME)
        except BaseException as exc:  # noqa: BLE001 - lib_cli_exit_tools renders and maps every failure
            verbose = lib_cli_exit_tools.config.traceback
            lib_cli_exit_tools.print_exception_message(
                trace_back=verbose,
                length_limit=_VERBOSE_LIMIT if verbose else _SUMMARY_LIMIT,
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
