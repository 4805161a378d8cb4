"""Typer CLI entrypoints for linechat."""

from __future__ import annotations

import json
import sys
from typing import Optional

import typer

from linechat.app import start_chat
from linechat.config import ConfigError, Settings, initialize_config, load_settings
from linechat.ui.render import render_notice, render_settings

app = typer.Typer(
    invoke_without_command=True,
    no_args_is_help=False,
    help="Line-oriented terminal chat client",
)


def _load_settings_or_exit(host: Optional[str] = None, port: Optional[int] = None) -> Settings:
    try:
        return load_settings(host=host, port=port)
    except ConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)


def _execute_chat(host: Optional[str], port: Optional[int]) -> int:
    settings = _load_settings_or_exit(host=host, port=port)
    try:
        return start_chat(settings)
    except KeyboardInterrupt:
        typer.echo("", err=True)
        return 130


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Server host (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port (default from config)"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    raise typer.Exit(code=_execute_chat(host=host, port=port))


@app.command("init")
def init_cmd(
    force: bool = typer.Option(
        False,
        "--force",
        help="Recreate .linechat_config (removes the existing directory first)",
    ),
) -> None:
    """Write the default config file."""
    try:
        config_root = initialize_config(force=force)
    except ConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)

    typer.echo(render_notice("success", "Initialized config at: {0}".format(config_root)))


@app.command("config")
def config_cmd(
    host: Optional[str] = typer.Option(None, "--host", help="Override server host"),
    port: Optional[int] = typer.Option(None, "--port", help="Override server port"),
    output_format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show resolved settings."""
    normalized_format = output_format.strip().lower()
    if normalized_format not in {"json", "text"}:
        typer.echo(
            render_notice("error", "Unsupported format: {0}".format(output_format)),
            err=True,
        )
        raise typer.Exit(code=2)

    report = _load_settings_or_exit(host=host, port=port).as_dict()
    if normalized_format == "json":
        typer.echo(json.dumps(report, ensure_ascii=True, indent=2))
        return
    render_settings(report, stream=sys.stdout)


if __name__ == "__main__":
    app()
