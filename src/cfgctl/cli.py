from __future__ import annotations

import json
import logging
import os
from typing import Any, NoReturn, Optional

import click
from tabulate import tabulate

import jsoncfg.locations as locations
from jsoncfg.config import Config, load_config, load_or_create
from jsoncfg.errors import (
    ConfigError,
    ConfigPathError,
    format_config_error,
    suggest_troubleshooting_steps,
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (what the CLI is doing)",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    """JSON config file utility.

    Inspect and edit simple JSON config files. The file is taken from --file
    or the CFGCTL_CONFIG environment variable. JSON output is always pretty-printed.
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


file_option = click.option(
    "--file",
    "file_path",
    type=click.Path(dir_okay=False),
    help="Config file; defaults to $CFGCTL_CONFIG",
)


def _resolve_file(file_path: Optional[str]) -> str:
    path = file_path or os.environ.get("CFGCTL_CONFIG")
    if not path:
        raise ConfigPathError("no config file given")
    return path


def _fail(ctx: click.Context, operation: str, error: ConfigError) -> NoReturn:
    click.echo(format_config_error(error), err=True)
    if ctx.obj.get("verbose"):
        suggestions = suggest_troubleshooting_steps(operation, error)
        if suggestions:
            click.echo("\nTroubleshooting suggestions:", err=True)
            for suggestion in suggestions[:3]:  # Show top 3 suggestions
                click.echo(f"  • {suggestion}", err=True)
    raise SystemExit(2)


def _open(ctx: click.Context, operation: str, file_path: Optional[str], create: bool = False) -> Config:
    log = logging.getLogger("cfgctl.files")
    try:
        path = _resolve_file(file_path)
        log.info("Loading config from %s", path)
        cfg = load_or_create(path) if create else load_config(path)
        log.info("Loaded %d keys from %s", len(cfg), cfg.path)
    except ConfigError as e:
        _fail(ctx, operation, e)
    return cfg


def _parse_value(raw: str) -> Any:
    """Interpret a command-line value as JSON, falling back to a plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@cli.command("dirs")
@click.pass_context
def dirs(ctx: click.Context) -> None:
    """List the standard user and system config directories."""
    log = logging.getLogger("cfgctl.dirs")
    user = [str(p) for p in locations.user_config_dirs()]
    system = [str(p) for p in locations.system_config_dirs()]
    log.info("Found %d user and %d system directories", len(user), len(system))

    if ctx.obj.get("json"):
        click.echo(json.dumps({"user": user, "system": system}, indent=2, sort_keys=True))
        return

    rows = [["user", p] for p in user] + [["system", p] for p in system]
    click.echo(tabulate(rows, headers=["SCOPE", "PATH"]))


@cli.command("show")
@file_option
@click.pass_context
def show(ctx: click.Context, file_path: Optional[str]) -> None:
    """Show every key in a config file."""
    log = logging.getLogger("cfgctl.show")
    cfg = _open(ctx, "show config", file_path)

    if ctx.obj.get("json"):
        click.echo(cfg.to_json())
        return

    rows = [[key, json.dumps(cfg.value(key), ensure_ascii=False)] for key in sorted(cfg.keys())]
    log.info("Rendering %d keys", len(rows))
    click.echo(tabulate(rows, headers=["KEY", "VALUE"]))


@cli.command("get")
@click.argument("key")
@file_option
@click.pass_context
def get(ctx: click.Context, key: str, file_path: Optional[str]) -> None:
    """Print the value of KEY as JSON."""
    cfg = _open(ctx, "get value", file_path)
    if key not in cfg:
        click.echo(f"Key not found: {key}", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(cfg.value(key), indent=2, ensure_ascii=False))


@cli.command("set")
@click.argument("key")
@click.argument("value")
@file_option
@click.option("--create", is_flag=True, help="Create the file if it does not exist")
@click.pass_context
def set_(ctx: click.Context, key: str, value: str, file_path: Optional[str], create: bool) -> None:
    """Set KEY to VALUE and save the file.

    VALUE is parsed as JSON (numbers, true/false, null, arrays, objects);
    anything that is not valid JSON is stored as a string.
    """
    log = logging.getLogger("cfgctl.set")
    cfg = _open(ctx, "set value", file_path, create=create)
    cfg.set_value(key, _parse_value(value))
    try:
        cfg.save()
        log.info("Saved %s to %s", key, cfg.path)
    except ConfigError as e:
        _fail(ctx, "set value", e)

    if ctx.obj.get("json"):
        click.echo(json.dumps({"key": key, "value": cfg.value(key)}, indent=2, sort_keys=True))


def main() -> None:  # entry point
    cli(standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    main()
