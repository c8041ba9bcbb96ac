"""
Command Line Interface for Michishirube.
"""

import os
from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..data.models import Priority, Status, Task
from ..db.filters import TaskFilters
from ..db.migrations import applied_versions
from ..db.repository import SQLiteRepository, open_repository
from ..errors import MichishirubeError
from ..logging_setup import configure_logging
from ..services import TaskService

app = typer.Typer(help="Michishirube - track tasks, links and comments")
console = Console()

STATUS_STYLES = {
    "new": "cyan",
    "in_progress": "yellow",
    "blocked": "red",
    "done": "green",
    "archived": "dim",
}

PRIORITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "normal": "white",
    "minor": "dim",
}


@app.callback()
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None, "--db", help="Database URL (defaults to DATABASE_URL or DB_PATH)"
    ),
):
    """Michishirube command line."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    ctx.obj = {"database_url": db or settings.resolved_database_url()}


@contextmanager
def _repository(ctx: typer.Context) -> Iterator[SQLiteRepository]:
    """Open the repository for one command and report domain errors."""
    try:
        with open_repository(ctx.obj["database_url"]) as repository:
            yield repository
    except MichishirubeError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)


def _tasks_table(title: str, tasks: List[Task]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Jira", style="blue")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Tags", style="magenta")

    for task in tasks:
        table.add_row(
            task.id[:8],
            task.jira_id,
            task.title,
            f"[{PRIORITY_STYLES[task.priority.value]}]{task.priority.value}[/]",
            f"[{STATUS_STYLES[task.status.value]}]{task.status.value}[/]",
            ", ".join(task.tags),
        )
    return table


@app.command()
def migrate(ctx: typer.Context):
    """Apply pending schema migrations."""
    with _repository(ctx) as repository:
        versions = applied_versions(repository.engine)
        console.print(f"✅ Schema at version {repository.schema_version}")
        console.print(f"Applied migrations: {', '.join(str(v) for v in versions) or 'none'}")


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the HTTP API server."""
    import uvicorn

    settings = get_settings()
    settings.database_url = ctx.obj["database_url"]
    # A reloading server imports the app in a fresh process that only sees the environment.
    os.environ["DATABASE_URL"] = ctx.obj["database_url"]
    host = host or settings.host
    port = port or settings.port

    rprint(Panel.fit("🧭 Starting Michishirube", style="bold blue"))
    console.print(f"🚀 Serving on http://{host}:{port}")
    uvicorn.run("michishirube.main:app", host=host, port=port, reload=reload or settings.debug)


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    jira: str = typer.Option("", "--jira", "-j", help="Jira ticket reference"),
    priority: str = typer.Option(Priority.NORMAL.value, "--priority", "-p", help="minor/normal/high/critical"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    blocker: Optional[List[str]] = typer.Option(None, "--blocker", "-b", help="Blocker (repeatable)"),
):
    """Create a task."""
    task = Task(title=title, jira_id=jira, priority=priority, tags=tag or [], blockers=blocker or [])
    with _repository(ctx) as repository:
        repository.create_task(task)
    console.print(f"✅ Created task {task.id}")


@app.command("list")
def list_tasks(
    ctx: typer.Context,
    status: Optional[List[str]] = typer.Option(None, "--status", "-s", help="Status filter (repeatable)"),
    priority: Optional[List[str]] = typer.Option(None, "--priority", "-p", help="Priority filter (repeatable)"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Required tag (repeatable)"),
    include_archived: bool = typer.Option(False, "--all", "-a", help="Include archived tasks"),
    limit: int = typer.Option(0, help="Maximum number of tasks (0 = no limit)"),
):
    """List tasks, newest first."""
    filters = TaskFilters(
        status=status or [],
        priority=priority or [],
        tags=tag or [],
        include_archived=include_archived,
        limit=limit,
    )
    with _repository(ctx) as repository:
        tasks = repository.list_tasks(filters)

    if not tasks:
        console.print("No tasks found")
        return
    console.print(_tasks_table("Tasks", tasks))


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for in title, jira id and tags"),
    include_archived: bool = typer.Option(False, "--all", "-a", help="Include archived tasks"),
    limit: int = typer.Option(0, help="Maximum number of tasks (0 = no limit)"),
):
    """Search tasks by substring."""
    with _repository(ctx) as repository:
        tasks = repository.search_tasks(query, include_archived=include_archived, limit=limit)

    if not tasks:
        console.print(f"No tasks match '{query}'")
        return
    console.print(_tasks_table(f"Search: {query}", tasks))


@app.command()
def show(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
):
    """Show a task with its links and comments."""
    with _repository(ctx) as repository:
        details = TaskService(repository).get_details(task_id)

    task = details.task
    body = (
        f"[bold]{task.title}[/bold]\n"
        f"ID: {task.id}\n"
        f"Jira: {task.jira_id}\n"
        f"Priority: {task.priority.value}  Status: {task.status.value}\n"
        f"Tags: {', '.join(task.tags) or '-'}\n"
        f"Blockers: {', '.join(task.blockers) or '-'}"
    )
    rprint(Panel.fit(body, title="Task", style=STATUS_STYLES[task.status.value]))

    if details.links:
        links = Table(title="Links", show_header=True, header_style="bold cyan")
        links.add_column("Type", style="yellow")
        links.add_column("Title")
        links.add_column("Status", style="green")
        links.add_column("URL", style="blue")
        for link in details.links:
            links.add_row(link.type.value, link.title, link.status, link.url)
        console.print(links)

    for comment in details.comments:
        stamp = comment.created_at.strftime("%Y-%m-%d %H:%M") if comment.created_at else ""
        console.print(f"💬 [dim]{stamp}[/dim] {comment.content}")


@app.command()
def done(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
):
    """Mark a task as done."""
    with _repository(ctx) as repository:
        task = TaskService(repository).patch_task(task_id, {"status": Status.DONE.value})
    console.print(f"✅ Done: {task.title}")


@app.command()
def delete(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a task together with its links and comments."""
    if not yes:
        typer.confirm(f"Delete task {task_id}?", abort=True)
    with _repository(ctx) as repository:
        repository.delete_task(task_id)
    console.print(f"🗑️ Deleted task {task_id}")


@app.command()
def report(ctx: typer.Context):
    """Print the status report."""
    with _repository(ctx) as repository:
        result = TaskService(repository).generate_report()

    sections = (
        ("Working on", result.working_on),
        ("Next up", result.next_up),
        ("Blockers", result.blockers),
    )
    for title, entries in sections:
        if not entries:
            console.print(f"{title}: nothing")
            continue
        console.print(_tasks_table(title, [entry.task for entry in entries]))


@app.command()
def version():
    """Show version information."""
    from .. import __version__
    rprint(Panel.fit(f"Michishirube v{__version__}", style="bold green"))


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
