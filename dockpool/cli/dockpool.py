"""
Dockpool CLI: inspect pool configuration and placement decisions.

Usage:
    dockpool status        Show pool configuration and preconfigured images
    dockpool bindings      Validate directory binding text
    dockpool images        List image labels found in a label expression
    dockpool check         Check whether the pool can run a job label
    dockpool rank          Probe Docker hosts and rank them by free capacity
    dockpool validate      Validate configuration
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..bindings import parse_bindings
from ..clients import DockerClientFactory
from ..config import get_config
from ..errors import BindingSyntaxError, DockpoolError, LabelSyntaxError
from ..hosts import HttpDockerStatus
from ..labels import list_potential_images, parse_label
from ..scheduler import StaticDockerCloud, rank_hosts

console = Console()
cli = typer.Typer(
    name="dockpool",
    help="Capacity-aware placement of build jobs on Docker hosts.",
    no_args_is_help=True,
)


@cli.command()
def status():
    """Show pool configuration and preconfigured images."""
    config = get_config()
    cloud = config.cloud

    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Name", cloud.name)
    table.add_row("Docker port", str(cloud.docker_port))
    table.add_row("Labels", " ".join(sorted(str(label) for label in cloud.labels)) or "-")
    table.add_row("Max executors per host", str(cloud.max_executors))
    table.add_row("TLS", _bool_badge(cloud.tls_enabled))
    table.add_row("Credentials", cloud.credentials_id or "-")
    table.add_row("Directory bindings", str(len(cloud.directory_bindings)))
    table.add_row("Status query workers", str(cloud.status_query_workers))

    console.print(Panel(table, title="Pool Configuration", border_style="blue"))

    if not config.images:
        console.print("Preconfigured Images: [dim]none[/dim]")
        return

    images = Table(title="Preconfigured Images", box=box.ROUNDED, min_width=40)
    images.add_column("Image", style="bold")
    images.add_column("Labels")

    for image in config.images:
        images.add_row(image.image_name, image.label_string or "-")

    console.print(images)


@cli.command()
def bindings(
    text: Optional[str] = typer.Argument(None, help="Binding text (one binding per line)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read bindings from a file"),
):
    """Validate directory binding text and show the parsed bindings."""
    if file is not None:
        text = file.read_text()
    elif text is None:
        text = get_config().cloud.directory_mappings

    try:
        parsed = parse_bindings(text)
    except BindingSyntaxError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Directory Bindings", box=box.ROUNDED)
    table.add_column("Host path", style="bold")
    table.add_column("Container path")
    table.add_column("Access")

    for binding in parsed:
        table.add_row(
            binding.host_path,
            binding.container_path,
            "read-only" if binding.read_only else "read-write",
        )

    console.print(table)


@cli.command()
def images(expression: str = typer.Argument(..., help="Job label expression")):
    """List image labels found in a label expression."""
    label = _parse_or_exit(expression)

    candidates = list_potential_images(label)
    if not candidates:
        console.print("[yellow]No image labels found.[/yellow]")
        return

    for atom in candidates:
        console.print(atom.name)


@cli.command()
def check(expression: str = typer.Argument(..., help="Job label expression")):
    """Check whether the configured pool can run a job with this label."""
    config = get_config()
    label = _parse_or_exit(expression)

    cloud = StaticDockerCloud(config.cloud, [], config.images)
    match = cloud.match_image(label)

    if match is None:
        console.print(f"[red]Not eligible:[/red] pool {cloud.name} cannot run {expression}")
        raise typer.Exit(code=1)

    table = Table(title="Eligible", box=box.ROUNDED)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Pool", cloud.name)
    table.add_row("Image", match.image_name)
    table.add_row("Preconfigured", _bool_badge(match.preconfigured))
    table.add_row("Node labels", " ".join(sorted(str(label) for label in match.node_labels)))

    console.print(table)


@cli.command()
def rank(hosts: List[str] = typer.Argument(..., help="Docker host addresses")):
    """Probe Docker hosts and rank them by free capacity."""
    config = get_config()
    factory = DockerClientFactory(config.cloud)

    try:
        docker_hosts = [
            HttpDockerStatus(address, factory.build(address), job_label=config.cloud.job_label)
            for address in hosts
        ]
    except DockpoolError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    try:
        ranked = rank_hosts(
            docker_hosts,
            config.cloud.max_executors,
            max_workers=config.cloud.status_query_workers,
        )
    finally:
        for host in docker_hosts:
            host.close()

    if not ranked:
        console.print("[yellow]No host has free capacity.[/yellow]")
        return

    table = Table(title="Available Hosts", box=box.ROUNDED)
    table.add_column("#", style="dim")
    table.add_column("Host", style="bold")
    table.add_column("Free executors")

    for i, host in enumerate(ranked):
        table.add_row(str(i + 1), str(host.host), str(host.capacity))

    console.print(table)


@cli.command()
def validate():
    """Validate configuration."""
    config = get_config()

    console.print("[bold]Running validation checks...[/bold]\n")
    errors = config.validate()

    for err in errors:
        console.print(f"  [red]FAIL[/red] {err}")

    if not errors:
        console.print("  [green]PASS[/green] Configuration is valid")

    console.print()
    if errors:
        console.print(f"[red]Validation failed with {len(errors)} error(s).[/red]")
        raise typer.Exit(code=1)

    console.print("[green]All validation checks passed.[/green]")


def _parse_or_exit(expression: str):
    try:
        return parse_label(expression)
    except LabelSyntaxError as e:
        console.print(f"[red]Invalid label expression:[/red] {e}")
        raise typer.Exit(code=1)


def _bool_badge(value: bool) -> str:
    """Return a colored badge for a boolean value."""
    if value:
        return "[green]enabled[/green]"
    return "[red]disabled[/red]"


if __name__ == "__main__":
    cli()
