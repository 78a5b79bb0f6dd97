"""Main CLI implementation using Typer."""

from pathlib import Path
from typing import Any, Callable, List, Optional

import typer
from rich.console import Console

from phoenix.cli.commands import (
    destroy_container,
    provision_containers,
    show_plan,
    show_status,
    validate_config,
)
from phoenix.errors import ProvisioningError
from phoenix.provisioner.main import Provisioner


# Create Typer app
app = typer.Typer(
    name="phoenixctl",
    help="Phoenix - idempotent Proxmox LXC provisioning with GPU passthrough",
    add_completion=False,
)

# Console for rich output
console = Console()

ConfigDirOption = typer.Option(
    None, "--config-dir", "-c", help="Directory containing config.yaml", envvar="PHOENIX_CONFIG_DIR"
)
ContainersFileOption = typer.Option(
    None, "--containers-file", "-f", help="Multi-container JSON file", envvar="PHOENIX_CONTAINERS_FILE"
)


def _run_cli_command(
    handler: Callable[..., Any],
    config_dir: Optional[Path],
    containers_file: Optional[Path],
    **kwargs: Any,
) -> Any:
    """Helper to run a CLI command with a provisioner and error handling."""
    try:
        provisioner = Provisioner(config_dir=config_dir, containers_file=containers_file)
        return handler(provisioner, **kwargs)
    except ProvisioningError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command("provision")
def provision_command(
    ids: Optional[List[int]] = typer.Argument(None, help="Container IDs to provision"),
    all: bool = typer.Option(False, "--all", help="Provision all configured containers"),
    config_dir: Optional[Path] = ConfigDirOption,
    containers_file: Optional[Path] = ContainersFileOption,
):
    """Create, start and configure container(s)."""
    if not ids and not all:
        console.print("[red]Error:[/red] Specify container IDs or use --all")
        raise typer.Exit(1)
    results = _run_cli_command(
        provision_containers,
        config_dir=config_dir,
        containers_file=containers_file,
        container_ids=ids,
        all_containers=all,
    )
    if any(not result.success for result in results.values()):
        raise typer.Exit(1)


@app.command("validate")
def validate_command(
    config_dir: Optional[Path] = ConfigDirOption,
    containers_file: Optional[Path] = ContainersFileOption,
):
    """Validate configuration and container entries."""
    valid = _run_cli_command(validate_config, config_dir=config_dir, containers_file=containers_file)
    if not valid:
        raise typer.Exit(1)


@app.command("status")
def status_command(
    container_id: Optional[int] = typer.Argument(None, help="Show status for specific container"),
    config_dir: Optional[Path] = ConfigDirOption,
    containers_file: Optional[Path] = ContainersFileOption,
):
    """Show container status."""
    _run_cli_command(
        show_status,
        config_dir=config_dir,
        containers_file=containers_file,
        container_id=container_id,
    )


@app.command("plan")
def plan_command(
    container_id: int = typer.Argument(..., help="Container ID"),
    config_dir: Optional[Path] = ConfigDirOption,
    containers_file: Optional[Path] = ContainersFileOption,
):
    """Show the GPU passthrough lines that would be written."""
    _run_cli_command(
        show_plan,
        config_dir=config_dir,
        containers_file=containers_file,
        container_id=container_id,
    )


@app.command("destroy")
def destroy_command(
    container_id: int = typer.Argument(..., help="Container ID"),
    force: bool = typer.Option(False, "--force", help="Destroy without confirmation"),
    config_dir: Optional[Path] = ConfigDirOption,
    containers_file: Optional[Path] = ContainersFileOption,
):
    """Stop and destroy a container."""
    if not force:
        confirm = typer.confirm(f"Destroy container {container_id}?")
        if not confirm:
            raise typer.Abort()
    _run_cli_command(
        destroy_container,
        config_dir=config_dir,
        containers_file=containers_file,
        container_id=container_id,
    )


def main():
    """Main entry point for CLI."""
    app()
