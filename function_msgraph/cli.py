"""fn-msgraph CLI — run the function locally against request files."""

from __future__ import annotations

import click
import yaml
from rich.console import Console
from rich.markup import escape

from function_msgraph import __version__
from function_msgraph.config import ConfigError, load_settings
from function_msgraph.graph.errors import UnsupportedQueryError
from function_msgraph.log import configure_logging

console = Console()


class StaticQuery:
    """Answers queries from a mapping of query type to records."""

    def __init__(self, results: dict):
        self.results = results

    def query(self, credentials, params, timeout=None) -> list[dict]:
        if params.query_type not in self.results:
            raise UnsupportedQueryError(params.query_type)
        return list(self.results[params.query_type])


def _load(path: str):
    with open(path) as f:
        return yaml.safe_load(f)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="YAML settings file")
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """function-msgraph — query Microsoft Graph from Crossplane pipelines.

    Render requests offline, resolve paths against documents, and validate
    function inputs.
    """
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    configure_logging(level=settings.log_level, format=settings.log_format, force=True)
    ctx.obj = settings


# ── Render ───────────────────────────────────────────────────────────


@main.command()
@click.argument("request_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--results", "results_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="YAML mapping of query type to records; skips calling Graph")
@click.option("--timeout", default=None, type=float, help="Deadline in seconds for Graph calls")
@click.pass_obj
def render(settings, request_path: str, results_path: str | None, timeout: float | None):
    """Run the function on a RunFunctionRequest YAML/JSON file.

    Prints the RunFunctionResponse as YAML. Exits non-zero on a fatal result.
    """
    from function_msgraph.function import Function

    query = StaticQuery(_load(results_path) or {}) if results_path else None
    function = Function(query=query, settings=settings)
    rsp = function.run_function(_load(request_path) or {}, timeout=timeout)

    click.echo(yaml.safe_dump(rsp.dump(), sort_keys=False))
    if rsp.is_fatal:
        raise SystemExit(1)


# ── Resolve ──────────────────────────────────────────────────────────


@main.command()
@click.argument("document_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("path")
def resolve(document_path: str, path: str):
    """Resolve PATH against a document file.

    The file holds a ``resource`` (with spec/status) and an optional
    ``context`` mapping.
    """
    from function_msgraph.document import Document, DocumentError, parse_path
    from function_msgraph.document import resolve as resolve_path

    data = _load(document_path) or {}
    document = Document(resource=data.get("resource") or {}, context=data.get("context") or {})
    try:
        value = resolve_path(document, parse_path(path), path)
    except DocumentError as e:
        console.print(f"[red]x[/] {escape(str(e))}")
        raise SystemExit(1)
    click.echo(yaml.safe_dump(value, sort_keys=False))


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
def validate(input_path: str):
    """Validate a function Input file against the schema."""
    from function_msgraph.document import UnrecognizedTargetError, parse_target
    from function_msgraph.spec.schema_validator import validate_input

    try:
        data = _load(input_path)
    except yaml.YAMLError as e:
        console.print(f"  [red]Failed to parse:[/] {escape(str(e))}")
        raise SystemExit(1)

    if not isinstance(data, dict):
        console.print("  [red]x[/] input must be a mapping")
        raise SystemExit(1)

    issues = validate_input(data)
    try:
        parse_target(data.get("target"))
    except UnrecognizedTargetError as e:
        issues.append(str(e))

    if issues:
        console.print("[red]Input validation FAILED:[/]")
        for issue in issues:
            console.print(f"  [red]x[/] {escape(issue)}")
        raise SystemExit(1)
    console.print("  [green]v[/] Input is valid")
