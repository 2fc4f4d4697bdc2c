"""CLI entry point for directory-acl.

Invoked as::

    dir-acl [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m directory_acl.cli.main

Commands
--------
- init           Write a default acl.yaml
- server probe   Check that a directory host answers
- server record  Probe a host and record it in the ACL store
- server show    Show the recorded directory server
- grant          Add or update a user/group permission
- lookup         Show the permission stored for a user/group
- list           List every ACL entry
- clear          Remove every ACL entry
- version        Show version information

Every command exits with status 0 on success and 1 on failure; failures
print the stable error code and message to stderr.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from directory_acl.config import AclConfig, ConfigLoader
from directory_acl.response import AuthResponse
from directory_acl.service import AclService

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("acl.yaml")


def _config_option(func: object) -> object:
    return click.option(
        "--config",
        "-c",
        "config_path",
        default=str(_DEFAULT_CONFIG),
        show_default=True,
        type=click.Path(),
        help="Path to acl.yaml (defaults apply when the file is absent).",
    )(func)


def _load_config(config_path: str) -> AclConfig:
    loader = ConfigLoader()
    cfg_path = Path(config_path)
    config = loader.load(cfg_path) if cfg_path.exists() else loader.defaults()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _service(config_path: str) -> AclService:
    return AclService.from_config(_load_config(config_path))


def _fail_if_needed(response: AuthResponse) -> None:
    if not response.success:
        err_console.print(
            f"[red]Error {response.error_code}:[/red] {response.error_message}"
        )
        sys.exit(1)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="directory-acl")
def cli() -> None:
    """Directory ACL CLI: server setup and permission administration."""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from directory_acl import __version__

    console.print(
        Panel(
            f"[bold]directory-acl[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Directory-backed user and group authorization.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    help="Output config file path.",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(),
    default=None,
    help="ACL store location to write into the config.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init_command(output: str, store_path: str | None, force: bool) -> None:
    """Write a default configuration file."""
    output_path = Path(output)
    if output_path.exists() and not force:
        err_console.print(f"[red]Refusing to overwrite[/red] {output_path} (use --force).")
        sys.exit(1)

    config = ConfigLoader().defaults()
    if store_path:
        config.store.path = Path(store_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        yaml.dump(
            config.model_dump(mode="json"),
            fh,
            default_flow_style=False,
            sort_keys=False,
        )

    console.print(f"[green]Initialised[/green] config: [bold]{output_path}[/bold]")
    console.print(f"  ACL store: [cyan]{config.store.path}[/cyan]")


# ---------------------------------------------------------------------------
# server group
# ---------------------------------------------------------------------------


@cli.group(name="server")
def server_group() -> None:
    """Directory server commands."""


@server_group.command(name="probe")
@click.argument("host")
@_config_option
def server_probe_command(host: str, config_path: str) -> None:
    """Check that HOST answers, without recording it."""
    response = _service(config_path).test_connection(host)
    _fail_if_needed(response)
    console.print(f"[green]Reachable[/green] {response.result_string}")


@server_group.command(name="record")
@click.argument("host")
@_config_option
def server_record_command(host: str, config_path: str) -> None:
    """Probe HOST and record it in the ACL store header."""
    service = _service(config_path)
    response = service.record_server(host)
    _fail_if_needed(response)
    if response.result_bool:
        console.print(f"[green]Recorded[/green] server in [bold]{service.store.path}[/bold]")
    else:
        console.print("[yellow]Server details unchanged.[/yellow]")
    console.print(f"  {response.result_string}")


@server_group.command(name="show")
@_config_option
def server_show_command(config_path: str) -> None:
    """Show the directory server recorded in the ACL store."""
    service = _service(config_path)
    if not service.is_server_recorded().result_bool:
        err_console.print("[yellow]No server recorded.[/yellow] Run 'dir-acl server record HOST'.")
        sys.exit(1)

    record = service.store.server_record()
    table = Table(title="Recorded Server", box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Host name", record.host_name)
    table.add_row("Addresses", ", ".join(record.addresses))
    table.add_row("Directory URL", service.engine.directory_url())
    table.add_row("Store", str(service.store.path))
    console.print(table)


# ---------------------------------------------------------------------------
# ACL entries
# ---------------------------------------------------------------------------

_KIND_CHOICE = click.Choice(["U", "G"], case_sensitive=False)
_PERMISSION_CHOICE = click.Choice(["A", "O"], case_sensitive=False)


@cli.command(name="grant")
@click.argument("name")
@click.option("--kind", "-k", required=True, type=_KIND_CHOICE, help="U = user, G = group.")
@click.option(
    "--permission", "-p", required=True, type=_PERMISSION_CHOICE, help="A = Admin, O = Operator."
)
@_config_option
def grant_command(name: str, kind: str, permission: str, config_path: str) -> None:
    """Add or update the permission of NAME."""
    response = _service(config_path).upsert_permission(name, kind, permission)
    _fail_if_needed(response)
    console.print(f"[green]Saved[/green] {response.result_string}")


@cli.command(name="lookup")
@click.argument("name")
@click.option("--kind", "-k", required=True, type=_KIND_CHOICE, help="U = user, G = group.")
@_config_option
def lookup_command(name: str, kind: str, config_path: str) -> None:
    """Show the permission stored for NAME."""
    response = _service(config_path).lookup(name, kind)
    _fail_if_needed(response)
    if not response.result_bool:
        console.print(f"[yellow]No entry[/yellow] for {name} ({kind.upper()}).")
        sys.exit(1)
    console.print(f"{name},{kind.upper()},{response.result_string}")


@cli.command(name="list")
@_config_option
def list_command(config_path: str) -> None:
    """List every ACL entry."""
    response = _service(config_path).list_entries()
    _fail_if_needed(response)
    if not response.result_array:
        console.print("[yellow]No ACL entries found.[/yellow]")
        return

    table = Table(title="Access Control List", box=box.SIMPLE)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Permission")
    kinds = {"U": "User", "G": "Group"}
    permissions = {"A": "Admin", "O": "Operator"}
    for row in response.result_array:
        name, kind, permission = row.split(",")
        table.add_row(name, kinds[kind], permissions[permission])
    console.print(table)


@cli.command(name="clear")
@click.confirmation_option(prompt="Delete all users and groups from the ACL store?")
@_config_option
def clear_command(config_path: str) -> None:
    """Remove every user and group entry."""
    response = _service(config_path).clear_all_entries()
    _fail_if_needed(response)
    console.print(f"[green]Cleared[/green] {response.result_string} entries.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
