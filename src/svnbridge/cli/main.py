"""
Typer application for inspecting a Subversion repository through the adapter.

Every command goes through :class:`SubversionAdapter`, so the output shows
exactly what a host application would receive: structured results are printed
as JSON, raw content (``cat``, ``diff``) is written as-is.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import typer

from .. import __version__
from ..adapters import AdapterError, SubversionAdapter
from ..config import RepositorySettings
from ..core.logging import configure_logging
from ..core.models import RevisionQueryOptions
from .adapters import resolve_adapter, resolve_settings

_T = TypeVar("_T")

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Query a Subversion repository through the svnbridge adapter.\n\n"
        "Connection settings default to .secrets/secret.toml ([subversion] table) and SVNBRIDGE_* variables."
    ),
)


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Repository URL relative paths resolve against."),
    root_url: Optional[str] = typer.Option(None, "--root-url", help="Repository root URL used for absolute paths."),
    username: Optional[str] = typer.Option(None, "--username", help="Username answered to authentication prompts."),
    password: Optional[str] = typer.Option(None, "--password", help="Password answered to authentication prompts."),
    trust_server_cert: Optional[bool] = typer.Option(
        None,
        "--trust-server-cert/--no-trust-server-cert",
        help="Accept invalid server certificates for this session.",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG or INFO."),
) -> None:
    """
    Resolve connection settings.

    The callback stores the merged settings in Typer's state so child commands
    can build the adapter via :func:`resolve_adapter`.
    """

    if log_level:
        configure_logging(log_level, force=True)
    settings = resolve_settings(
        url=url,
        root_url=root_url,
        username=username,
        password=password,
        trust_server_cert=trust_server_cert,
    )
    state = ctx.ensure_object(dict)
    state["settings"] = settings


def _require_adapter(ctx: typer.Context) -> SubversionAdapter:
    state = ctx.ensure_object(dict)
    settings = state.get("settings")
    if not isinstance(settings, RepositorySettings):
        raise typer.Exit(code=2)
    if not settings.url:
        typer.echo("No repository URL configured. Pass --url or set SVNBRIDGE_URL.", err=True)
        raise typer.Exit(code=2)
    return resolve_adapter(settings)


def _run(action: Callable[[], _T]) -> _T:
    try:
        return action()
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serialisable")


def _to_payload(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)) or (hasattr(value, "__iter__") and not isinstance(value, (str, bytes, dict))):
        return [_to_payload(item) for item in value]
    return value


def _echo_json(value: Any) -> None:
    typer.echo(json.dumps(_to_payload(value), ensure_ascii=False, indent=2, default=_json_default))


@app.command("info")
def info_command(ctx: typer.Context) -> None:
    """Show the repository root and last changed revision."""

    adapter = _require_adapter(ctx)
    _echo_json(_run(adapter.info))


@app.command("ls")
def ls_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Directory path; a leading '/' resolves from the repository root."),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision number (HEAD when omitted)."),
) -> None:
    """List directory entries sorted by name."""

    adapter = _require_adapter(ctx)
    entries = _run(lambda: adapter.entries(path, rev))
    if entries is None:
        typer.echo(f"Path '{path}' does not exist.", err=True)
        raise typer.Exit(code=1)
    _echo_json(entries)


@app.command("log")
def log_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Path whose history is listed."),
    rev_from: Optional[str] = typer.Option(None, "--from", help="Newest revision (HEAD when omitted)."),
    rev_to: Optional[str] = typer.Option(None, "--to", help="Oldest revision (0 when omitted)."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=0, help="Maximum number of revisions."),
    with_paths: bool = typer.Option(False, "--with-paths", help="Include changed paths for each revision."),
) -> None:
    """Show revision history."""

    adapter = _require_adapter(ctx)
    options = RevisionQueryOptions(limit=limit, with_paths=with_paths)
    _echo_json(_run(lambda: adapter.revisions(path, rev_from, rev_to, options)))


@app.command("cat")
def cat_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path."),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision number (HEAD when omitted)."),
) -> None:
    """Print file content."""

    adapter = _require_adapter(ctx)
    typer.echo(_run(lambda: adapter.cat(path, rev)), nl=False)


@app.command("blame")
def blame_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path."),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision number (HEAD when omitted)."),
) -> None:
    """Annotate each line of a file with the revision that last changed it."""

    adapter = _require_adapter(ctx)
    annotate = _run(lambda: adapter.annotate(path, rev))
    for item in annotate:
        line = item.line.rstrip("\r\n")
        typer.echo(f"{item.revision.identifier:>6} {item.revision.author or '-':<12} {line}")


@app.command("diff")
def diff_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Path to diff."),
    rev_from: Optional[str] = typer.Option(None, "--from", help="Newer revision (last changed revision when omitted)."),
    rev_to: Optional[str] = typer.Option(None, "--to", help="Older revision (FROM - 1 when omitted)."),
) -> None:
    """Print a unified diff between two revisions."""

    adapter = _require_adapter(ctx)
    lines = _run(lambda: adapter.diff(path, rev_from, rev_to))
    typer.echo("".join(lines), nl=False)


@app.command("proplist")
def proplist_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Path whose properties are listed."),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision number (HEAD when omitted)."),
) -> None:
    """Show versioned properties of a single path."""

    adapter = _require_adapter(ctx)
    _echo_json(_run(lambda: adapter.properties(path, rev)))


@app.command("verify")
def verify_command(ctx: typer.Context) -> None:
    """Check that the repository is reachable with the configured credentials."""

    adapter = _require_adapter(ctx)
    result = adapter.verify()
    typer.echo(result.message)
    if result.details:
        typer.echo(f"Details: {json.dumps(result.details, ensure_ascii=False)}")
    if not result.success:
        raise typer.Exit(code=1)


@app.command("version")
def version_command(ctx: typer.Context) -> None:
    """Show the svnbridge and Subversion client versions."""

    typer.echo(f"svnbridge {__version__}")
    settings = ctx.ensure_object(dict).get("settings")
    adapter = resolve_adapter(settings if isinstance(settings, RepositorySettings) else RepositorySettings())
    try:
        major, minor, patch = adapter.client_version()
    except AdapterError as exc:
        typer.echo(f"Subversion client unavailable: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Subversion client {major}.{minor}.{patch}")


if __name__ == "__main__":  # pragma: no cover
    app()
