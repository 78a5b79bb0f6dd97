"""Command implementations for CLI."""

import asyncio
from typing import Dict, List, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from phoenix.models.state import ProvisionResult
from phoenix.provisioner.main import Provisioner


console = Console()


def _progress(quiet: bool = False) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=quiet,
    )


def provision_containers(
    provisioner: Provisioner,
    container_ids: Optional[List[int]] = None,
    all_containers: bool = False,
    quiet: bool = False,
) -> Dict[int, ProvisionResult]:
    """Provision ids (or all) and print a result table."""
    with _progress(quiet) as progress:
        label = "all containers" if all_containers else ", ".join(str(i) for i in container_ids)
        task = progress.add_task(f"Provisioning {label}...", total=None)

        results = asyncio.run(provisioner.provision(None if all_containers else container_ids))

        progress.update(task, completed=True)

    if not quiet:
        table = Table(title="Provisioning Results")
        table.add_column("ID", style="cyan")
        table.add_column("Result")
        table.add_column("State")
        table.add_column("Warnings", justify="right")
        table.add_column("Details", style="dim", max_width=60)

        for container_id, result in results.items():
            if result.success:
                outcome = "[green]✓[/green]"
                details = "created" if result.created else ""
            else:
                outcome = "[red]✗[/red]"
                stage = result.failed_stage.value if result.failed_stage else "unknown"
                details = f"{stage}: {result.reason}"
            table.add_row(
                str(container_id),
                outcome,
                result.state.value,
                str(len(result.warnings)),
                details,
            )

        console.print(table)

        for container_id, result in results.items():
            for warning in result.warnings:
                console.print(f"  [yellow]![/yellow] {container_id}: {warning}")

    return results


def validate_config(provisioner: Provisioner):
    """Validate configuration and every container entry."""
    with _progress() as progress:
        task = progress.add_task("Validating configuration...", total=None)

        asyncio.run(provisioner.initialize(configure_logging=False))

        progress.update(task, completed=True)

    store = provisioner.config_store
    table = Table(title=f"Containers ({store.containers_file})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Valid")
    table.add_column("Problem", style="dim")

    for container_id in store.container_ids:
        if container_id in store.invalid:
            error = store.invalid[container_id]
            table.add_row(str(container_id), "", "[red]✗[/red]", f"{error.field}: {error.message}")
        else:
            spec = store.containers[container_id]
            table.add_row(str(container_id), spec.name, "[green]✓[/green]", "")

    console.print(table)
    if store.invalid:
        console.print(f"[red]✗[/red] {len(store.invalid)} invalid container entries")
    else:
        console.print(f"[green]✓[/green] Configuration is valid ({len(store.containers)} containers)")
    return not store.invalid


def show_status(provisioner: Provisioner, container_id: Optional[int] = None):
    """Show container status."""

    async def collect():
        await provisioner.initialize(configure_logging=False)
        if container_id is not None:
            return {container_id: await provisioner.orchestrator.get_container_status(container_id)}
        return await provisioner.orchestrator.get_all_container_statuses()

    statuses = asyncio.run(collect())

    table = Table(title="Containers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Exists")
    table.add_column("Running")
    table.add_column("Status")
    table.add_column("GPUs", style="magenta")

    for cid, info in statuses.items():
        if not info.get("valid"):
            table.add_row(str(cid), "", "", "", f"[red]invalid: {info.get('error')}[/red]", "")
            continue
        running = "[green]●[/green]" if info["running"] else "[red]○[/red]"
        exists = "✓" if info["exists"] else "✗"
        table.add_row(str(cid), info["name"], exists, running, info["status"], info["gpu_assignment"])

    console.print(table)


def show_plan(provisioner: Provisioner, container_id: int):
    """Print the passthrough lines provisioning would write."""

    async def compute():
        await provisioner.initialize(configure_logging=False)
        return await provisioner.orchestrator.plan_passthrough(container_id)

    plan = asyncio.run(compute())
    if plan is None:
        console.print(f"Container {container_id} has no GPU assignment, nothing to write")
        return

    path = provisioner.registry.get_provider("passthrough").config_path(container_id)
    console.print(f"[bold]{path}[/bold]")
    for line in plan.lines():
        console.print(line, markup=False, highlight=False)
    for warning in plan.warnings:
        console.print(f"[yellow]![/yellow] {warning}")


def destroy_container(provisioner: Provisioner, container_id: int):
    """Destroy a container."""
    with _progress() as progress:
        task = progress.add_task(f"Destroying container {container_id}...", total=None)

        async def destroy():
            await provisioner.initialize(configure_logging=False)
            return await provisioner.orchestrator.destroy_container(container_id)

        destroyed = asyncio.run(destroy())

        progress.update(task, completed=True)

    if destroyed:
        console.print(f"[green]✓[/green] Container {container_id} destroyed")
    else:
        console.print(f"Container {container_id} does not exist")
