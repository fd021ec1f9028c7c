"""Rich Formatting Utilities for CLI Output"""

from typing import Any

from rich import box
from rich.panel import Panel
from rich.console import Console
from rich.table import Table

console = Console()

STATUS_STYLES = {
    "queued": "yellow",
    "processing": "cyan",
    "completed": "green",
    "cancelled": "magenta",
    "failed": "red",
}

TERMINAL_STATUSES = {"completed", "cancelled", "failed"}


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    """Print warning message with yellow styling"""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str):
    """Print info message with blue styling"""
    console.print(f"[blue]ℹ {message}[/blue]")


def format_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def create_jobs_table(jobs: list[dict[str, Any]]) -> Table:
    """Create a formatted table for the jobs list"""
    table = Table(title="Jobs", box=box.ROUNDED)

    table.add_column("ID", justify="left", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Progress", justify="right", style="yellow")
    table.add_column("Input", justify="left", style="white")

    for job in jobs:
        table.add_row(
            job.get("job_id", "")[:8],  # Short ID
            format_status(job.get("status", "")),
            f"{job.get('progress_percentage', 0):.0f}%",
            _truncate(job.get("input", ""), 40),
        )

    return table


def create_job_panel(job: dict[str, Any]) -> Panel:
    """Create a detail panel for one job"""
    lines = [
        f"• ID: [cyan]{job.get('job_id')}[/cyan]",
        f"• Status: {format_status(job.get('status', ''))}",
        f"• Progress: [yellow]{job.get('processed_units', 0)}/"
        f"{job.get('total_units', 0)} ({job.get('progress_percentage', 0):.1f}%)[/yellow]",
        f"• Input: {_truncate(job.get('input', ''), 60)}",
        f"• Created: [dim]{job.get('created_at')}[/dim]",
    ]
    if job.get("result") is not None:
        lines.append(f"• Result: [green]{job['result']}[/green]")
    if job.get("error_message"):
        lines.append(f"• Error: [red]{job['error_message']}[/red]")

    return Panel("\n".join(lines), title="Job", border_style="cyan")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"
