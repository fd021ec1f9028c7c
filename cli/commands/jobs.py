"""Job Commands - submit, inspect, watch and cancel jobs"""

import time

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from ..client.endpoints import JobStreamClient, JobStreamError
from ..utils.config_manager import config
from ..utils.formatting import (
    TERMINAL_STATUSES,
    create_job_panel,
    create_jobs_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

console = Console()
app = typer.Typer(name="jobs", help="Job submission and monitoring commands")


@app.command("submit")
def submit_job(
    text: str = typer.Argument(..., help="Input text to process"),
    watch: bool = typer.Option(
        False, "--watch", "-w", help="Follow progress until the job finishes"
    ),
):
    """🚀 Queue a new job"""
    try:
        with JobStreamClient() as client:
            job = client.create_job(text)
            print_success(f"Job queued: {job['job_id']}")
            console.print(f"Hub: [blue]{job.get('hub_url')}[/blue]")

            if watch:
                _follow(client, job["job_id"])

    except JobStreamError as e:
        print_error(f"Failed to submit job: {e}")
        raise typer.Exit(1) from None


@app.command("show")
def show_job(job_id: str = typer.Argument(..., help="Job ID")):
    """🔎 Show job status"""
    try:
        with JobStreamClient() as client:
            console.print(create_job_panel(client.get_job(job_id)))

    except JobStreamError as e:
        print_error(f"Failed to get job: {e}")
        raise typer.Exit(1) from None


@app.command("list")
def list_jobs():
    """📋 List jobs"""
    try:
        with JobStreamClient() as client:
            data = client.list_jobs()
            jobs = data.get("jobs", [])
            if not jobs:
                print_info("No jobs yet")
                return
            console.print(create_jobs_table(jobs))

    except JobStreamError as e:
        print_error(f"Failed to list jobs: {e}")
        raise typer.Exit(1) from None


@app.command("cancel")
def cancel_job(job_id: str = typer.Argument(..., help="Job ID")):
    """🛑 Cancel a queued or running job"""
    try:
        with JobStreamClient() as client:
            response = client.cancel_job(job_id)
            if response.get("success"):
                print_success(response.get("message", "Job cancelled"))
            else:
                print_warning(response.get("message", "Job cannot be cancelled"))
                raise typer.Exit(1)

    except JobStreamError as e:
        print_error(f"Failed to cancel job: {e}")
        raise typer.Exit(1) from None


@app.command("watch")
def watch_job(job_id: str = typer.Argument(..., help="Job ID")):
    """⏳ Follow a job's progress until it finishes"""
    try:
        with JobStreamClient() as client:
            _follow(client, job_id)

    except JobStreamError as e:
        print_error(f"Failed to watch job: {e}")
        raise typer.Exit(1) from None


def _follow(client: JobStreamClient, job_id: str) -> dict:
    """Poll a job until it reaches a terminal status, drawing a progress bar."""
    interval = float(config.get("watch.poll_interval", 1.0))

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(job_id[:8], total=100)
        while True:
            job = client.get_job(job_id)
            progress.update(task, completed=job.get("progress_percentage", 0))
            if job.get("status") in TERMINAL_STATUSES:
                break
            time.sleep(interval)

    console.print(create_job_panel(job))
    return job
