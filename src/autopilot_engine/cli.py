"""Command-line interface using Typer."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from autopilot_engine import __version__
from autopilot_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="autopilot-engine",
    help="Autopilot Engine - chained video generation and autopilot scheduling CLI",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Autopilot Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Autopilot Engine - generate, schedule and publish product videos."""
    pass


def _run_task(task: Any, enqueue: bool, title: str, **kwargs: Any) -> None:
    """Run a Celery task in-process, or enqueue it, and print its result."""
    if enqueue:
        result = task.delay(**kwargs)
        console.print(f"[green]Task enqueued: {result.id}[/green]")
        return

    task_result = task.apply(kwargs=kwargs).get()
    if not task_result.get("success"):
        console.print(f"[bold red]✗ {title} failed: {task_result.get('error')}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in task_result.items():
        if key != "success":
            table.add_row(key, str(value))
    console.print(table)


@app.command("run-cycle")
def run_cycle(
    enqueue: bool = typer.Option(False, "--enqueue", "-e", help="Enqueue instead of running here"),
) -> None:
    """Generate for every due autopilot config."""
    try:
        from autopilot_engine.jobs.autopilot_tasks import run_cycle_task

        _run_task(run_cycle_task, enqueue, "Autopilot Cycle")
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def poll(
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum jobs to check"),
    enqueue: bool = typer.Option(False, "--enqueue", "-e", help="Enqueue instead of running here"),
) -> None:
    """Re-check every processing media asset with its provider."""
    try:
        from autopilot_engine.jobs.autopilot_tasks import poll_generation_jobs_task

        _run_task(poll_generation_jobs_task, enqueue, "Generation Poll", limit=limit)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def reconcile(
    enqueue: bool = typer.Option(False, "--enqueue", "-e", help="Enqueue instead of running here"),
) -> None:
    """Merge publishing provider status into in-flight publish jobs."""
    try:
        from autopilot_engine.jobs.autopilot_tasks import reconcile_publish_jobs_task

        _run_task(reconcile_publish_jobs_task, enqueue, "Publish Reconciliation")
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def sweep(
    enqueue: bool = typer.Option(False, "--enqueue", "-e", help="Enqueue instead of running here"),
) -> None:
    """Fail jobs whose provider submission was never acknowledged."""
    try:
        from autopilot_engine.jobs.autopilot_tasks import sweep_orphaned_submissions_task

        _run_task(sweep_orphaned_submissions_task, enqueue, "Orphaned Submission Sweep")
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command("pool-stats")
def pool_stats(
    store_id: str = typer.Argument(..., help="Store UUID"),
) -> None:
    """Show rotation pool statistics for a store."""
    try:
        from autopilot_engine.db.session import get_session_context
        from autopilot_engine.repositories.sql import SqlProductRepository
        from autopilot_engine.services.rotation import ProductRotationPool

        with get_session_context() as session:
            pool = ProductRotationPool(SqlProductRepository(session))
            stats = pool.get_pool_stats(UUID(store_id))
            next_product = pool.get_next_product(UUID(store_id))

        table = Table(title=f"Rotation Pool {store_id}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Total products", str(stats.total))
        table.add_row("Active", str(stats.active))
        table.add_row("Used", str(stats.used))
        table.add_row("Unused", str(stats.unused))
        table.add_row("Total uses", str(stats.total_use_count))
        table.add_row("Min use count", str(stats.min_use_count))
        table.add_row("Next product", next_product.title if next_product else "-")
        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command("next-run")
def next_run(
    videos_per_week: int = typer.Argument(..., help="Cadence in videos per week"),
    from_time: Optional[str] = typer.Option(
        None, "--from", "-f", help="ISO 8601 start time (default: now, UTC)"
    ),
) -> None:
    """Show when the next generation would be scheduled for a cadence."""
    from autopilot_engine.domain.models import utcnow
    from autopilot_engine.services.scheduler import (
        ConfigurationError,
        calculate_next_scheduled,
        validate_cadence,
    )

    try:
        validate_cadence(videos_per_week)
        start = datetime.fromisoformat(from_time) if from_time else utcnow()
    except (ConfigurationError, ValueError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    next_time = calculate_next_scheduled(videos_per_week, start)
    console.print(f"From:  {start.isoformat()}")
    console.print(f"[green]Next:  {next_time.isoformat()}[/green]")


if __name__ == "__main__":
    app()
