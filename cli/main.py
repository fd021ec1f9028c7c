"""JobStream CLI - Main Entry Point"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from .client.endpoints import JobStreamClient, JobStreamError
from .commands import config, jobs
from .utils.config_manager import config as config_manager
from .utils.formatting import print_error, print_info

console = Console()

app = typer.Typer(
    name="jobstream",
    help="JobStream - queued text jobs with live progress",
    rich_markup_mode="rich",
)

app.add_typer(jobs.app, name="jobs")
app.add_typer(config.app, name="config")


@app.command()
def status():
    """📊 Check system status and connectivity"""
    base_url = config_manager.get("api.base_url")
    print_info(f"Checking connection to: {base_url}")

    try:
        with JobStreamClient(base_url) as client:
            health = client.health_check()
    except JobStreamError as e:
        print_error(f"Failed to connect: {e}")
        console.print(Panel(
            f"🚫 [red]Connection Failed[/red]\n\n"
            f"Make sure the JobStream API is running at:\n"
            f"[blue]{base_url}[/blue]\n\n"
            f"You can update the API URL with:\n"
            f"[cyan]jobstream config set api.base_url <url>[/cyan]",
            title="Connection Error",
            border_style="red"
        ))
        raise typer.Exit(1) from None

    worker = health.get("worker", {})
    console.print(Panel(
        f"🚀 [green]Connected Successfully![/green]\n\n"
        f"• Version: [cyan]{health.get('version', 'unknown')}[/cyan]\n"
        f"• Environment: [yellow]{health.get('environment', 'unknown')}[/yellow]\n"
        f"• Worker running: [cyan]{worker.get('running', False)}[/cyan]\n"
        f"• Active jobs: [cyan]{worker.get('active_jobs', 0)}[/cyan]\n"
        f"• Queue depth: [cyan]{worker.get('queue_depth', 0)}[/cyan]\n"
        f"• API URL: [blue]{base_url}[/blue]",
        title="System Status",
        border_style="green"
    ))


@app.command()
def quickstart():
    """🚀 Quick start guide"""
    console.print(Panel(
        "🧵 [bold cyan]JobStream Quick Start[/bold cyan]\n\n"
        "[bold]1. Check Status[/bold]\n"
        "   [dim]jobstream status[/dim]\n\n"
        "[bold]2. Submit a Job[/bold]\n"
        "   [dim]jobstream jobs submit \"Hello, World!\" --watch[/dim]\n\n"
        "[bold]3. Inspect Jobs[/bold]\n"
        "   [dim]jobstream jobs list[/dim]\n\n"
        "[bold]4. Cancel a Job[/bold]\n"
        "   [dim]jobstream jobs cancel <job-id>[/dim]\n\n"
        "[bold yellow]Tip:[/bold yellow] Use [cyan]--help[/cyan] with any command for more options!",
        title="Quick Start Guide",
        border_style="green"
    ))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show version and exit"
    ),
):
    """
    🧵 JobStream CLI

    Submit text jobs, follow their progress and cancel them.
    """
    if version:
        from . import __version__
        console.print(f"JobStream CLI v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
