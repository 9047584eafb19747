"""``ntando`` command-line client."""

import re
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ntando import __version__
from ntando.cli.archive import create_archive
from ntando.cli.client import DEFAULT_API_URL, ApiClient, ApiError
from ntando.cli.config import CliConfig
from ntando.cli.templates import NEXT_STEPS, PROJECT_TYPES, scaffold
from ntando.models.deployment import PLATFORM_DOMAIN_SUFFIXES

app = typer.Typer(
    name="ntando",
    help="Ntando Computer CLI - deploy apps with free custom domains.",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    "live": "green",
    "building": "yellow",
    "deploying": "blue",
    "error": "red",
}
TERMINAL_STATUSES = ("live", "error")


@dataclass
class CliState:
    api_url: str = DEFAULT_API_URL


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"ntando {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    api_url: Annotated[
        str, typer.Option("--api", envvar="NTANDO_API", help="API base URL")
    ] = DEFAULT_API_URL,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True),
    ] = None,
) -> None:
    ctx.obj = CliState(api_url=api_url)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{message}[/red]")
    return typer.Exit(code=1)


def _require_login() -> CliConfig:
    config = CliConfig.load()
    if not config.logged_in:
        raise _fail("Please login first using: ntando login")
    return config


def _client(ctx: typer.Context, config: CliConfig | None = None) -> ApiClient:
    state: CliState = ctx.obj
    return ApiClient(state.api_url, token=config.token if config else None)


def _status_text(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def _format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9-]", "-", name.lower()).strip("-")


@app.command()
def login(
    ctx: typer.Context,
    email: Annotated[str, typer.Option(prompt="Enter your email")],
    password: Annotated[str, typer.Option(prompt="Enter your password", hide_input=True)],
) -> None:
    """Login to your Ntando Computer account."""
    if "@" not in email:
        raise _fail("Please enter a valid email")

    with _client(ctx) as client, console.status("Logging in..."):
        try:
            result = client.login(email, password)
        except ApiError as e:
            raise _fail(f"Login failed: {e.message}") from e

    CliConfig(token=result["token"], user=result["user"]).save()
    console.print("[green]Login successful![/green]")
    console.print(f"[dim]Welcome back, {result['user']['email']}![/dim]")


@app.command()
def logout() -> None:
    """Logout from your Ntando Computer account."""
    CliConfig.clear()
    console.print("[green]Logged out successfully[/green]")


@app.command()
def deploy(
    ctx: typer.Context,
    domain: Annotated[str | None, typer.Option("--domain", "-d", help="Domain name")] = None,
    path: Annotated[Path, typer.Option("--path", "-p", help="Project directory")] = Path("."),
    repo: Annotated[str | None, typer.Option("--repo", "-r", help="Git repository URL")] = None,
    branch: Annotated[str, typer.Option("--branch", "-b", help="Git branch")] = "main",
    build: Annotated[str | None, typer.Option("--build", help="Build command")] = None,
    output: Annotated[str, typer.Option("--output", help="Output directory")] = "dist",
    wait: Annotated[bool, typer.Option(help="Wait until the deployment is live")] = True,
    timeout: Annotated[float, typer.Option(help="Seconds to wait for the deployment")] = 300.0,
    poll_interval: Annotated[float, typer.Option(hidden=True)] = 2.0,
) -> None:
    """Deploy your project."""
    config = _require_login()

    project_path = path.resolve()
    if not project_path.is_dir():
        raise _fail(f"Path does not exist: {project_path}")

    if domain:
        domain = domain.strip().lower()
        project_name = domain.split(".")[0]
    else:
        project_name = typer.prompt("Project name", default=project_path.name)
        project_name = slugify(project_name)
        if len(project_name) < 3:
            raise _fail("Project name must be at least 3 characters")
        extension = typer.prompt(
            f"Choose domain extension ({', '.join(PLATFORM_DOMAIN_SUFFIXES)})",
            default=PLATFORM_DOMAIN_SUFFIXES[0],
        )
        if extension not in PLATFORM_DOMAIN_SUFFIXES:
            raise _fail(f"Unknown domain extension: {extension}")
        domain = project_name + extension

    with _client(ctx, config) as client:
        with console.status("Checking domain availability..."):
            try:
                available = client.check_domain(domain)
            except ApiError as e:
                raise _fail(f"Failed to check domain: {e.message}") from e
        if not available:
            raise _fail(f"Domain {domain} is already taken. Please choose another name.")
        console.print(f"[green]Domain {domain} is available[/green]")

        with tempfile.TemporaryDirectory() as tmpdir:
            with console.status("Preparing deployment..."):
                archive = create_archive(project_path, Path(tmpdir) / "deployment.zip")
            with console.status("Uploading files..."):
                try:
                    result = client.deploy(
                        archive,
                        {
                            "project_name": project_name,
                            "domain": domain,
                            "repository_url": repo,
                            "branch": branch,
                            "build_command": build,
                            "output_dir": output,
                        },
                    )
                except ApiError as e:
                    raise _fail(f"Deployment failed: {e.message}") from e

        console.print(
            Panel.fit(
                f"[green]Your app is being deployed![/green]\n\n"
                f"Domain: [cyan]{domain}[/cyan]\n"
                f"Status: {_status_text(result['status'])}\n\n"
                f"[dim]This usually takes about {result['estimated_seconds']} seconds[/dim]",
                border_style="green",
            )
        )

        if not wait:
            return

        deployment = _wait_for_deployment(
            client, result["deployment_id"], timeout=timeout, interval=poll_interval
        )

    if deployment["status"] == "live":
        console.print(
            Panel.fit(
                f"[green]Your app is now live![/green]\n\n"
                f"URL: [blue]{deployment['url']}[/blue]\n\n"
                "[dim]Free SSL certificate active[/dim]",
                border_style="green",
            )
        )
    elif deployment["status"] == "error":
        raise _fail(f"Deployment failed: {deployment.get('error') or 'unknown error'}")
    else:
        console.print(
            f"[yellow]Still {deployment['status']} after {timeout:.0f}s. "
            f"Check later with: ntando status {project_name}[/yellow]"
        )


def _wait_for_deployment(
    client: ApiClient, deployment_id: str, timeout: float, interval: float
) -> dict[str, Any]:
    deadline = time.monotonic() + timeout
    with console.status("Building project...") as spinner:
        while True:
            try:
                deployment = client.get_deployment(deployment_id)
            except ApiError as e:
                raise _fail(f"Failed to fetch deployment status: {e.message}") from e
            spinner.update(f"Deployment {deployment['status']}...")
            if deployment["status"] in TERMINAL_STATUSES or time.monotonic() >= deadline:
                return deployment
            time.sleep(interval)


@app.command("list")
def list_deployments(ctx: typer.Context) -> None:
    """List your deployments."""
    config = _require_login()

    with _client(ctx, config) as client, console.status("Fetching deployments..."):
        try:
            deployments = client.list_deployments()
        except ApiError as e:
            raise _fail(f"Failed to fetch deployments: {e.message}") from e

    if not deployments:
        console.print("[yellow]No deployments found. Deploy your first project with: ntando deploy[/yellow]")
        return

    table = Table(title="Your Deployments")
    table.add_column("#", justify="right")
    table.add_column("Project", style="cyan")
    table.add_column("Domain")
    table.add_column("Status")
    table.add_column("Created", style="dim")
    table.add_column("URL", style="blue")
    for index, deployment in enumerate(deployments, start=1):
        table.add_row(
            str(index),
            deployment["project_name"],
            deployment["domain"],
            _status_text(deployment["status"]),
            _format_date(deployment["created_at"]),
            deployment.get("url") or "",
        )
    console.print(table)


app.command("ls", hidden=True)(list_deployments)


@app.command()
def delete(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Project name or domain")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a deployment."""
    config = _require_login()

    with _client(ctx, config) as client:
        try:
            deployment = client.find_deployment(name)
        except ApiError as e:
            raise _fail(f"Failed to fetch deployments: {e.message}") from e
        if deployment is None:
            raise _fail(f'Deployment "{name}" not found')

        if not yes and not typer.confirm(
            f'Are you sure you want to delete "{deployment["project_name"]}"?', default=False
        ):
            console.print("[yellow]Deletion cancelled[/yellow]")
            return

        with console.status("Deleting deployment..."):
            try:
                client.delete_deployment(deployment["id"])
            except ApiError as e:
                raise _fail(f"Failed to delete deployment: {e.message}") from e

    console.print("[green]Deployment deleted successfully[/green]")


@app.command()
def status(
    ctx: typer.Context,
    name: Annotated[str | None, typer.Argument(help="Project name or domain")] = None,
) -> None:
    """Check account or deployment status."""
    config = _require_login()

    with _client(ctx, config) as client:
        try:
            if name is None:
                deployments = client.list_deployments()
                user = config.user or {}
                console.print("[bold]Account Status:[/bold]")
                console.print(f"   [dim]Email:[/dim] {user.get('email', '?')}")
                console.print(f"   [dim]Plan:[/dim] [cyan]{user.get('plan', '?')}[/cyan]")
                console.print(f"   [dim]Deployments:[/dim] [yellow]{len(deployments)}[/yellow]")
                return

            deployment = client.find_deployment(name)
        except ApiError as e:
            raise _fail(f"Failed to fetch deployments: {e.message}") from e

        if deployment is None:
            raise _fail(f'Deployment "{name}" not found')

        console.print(f"[bold]Deployment Status: {deployment['project_name']}[/bold]")
        console.print(f"   [dim]Domain:[/dim] {deployment['domain']}")
        console.print(f"   [dim]Status:[/dim] {_status_text(deployment['status'])}")
        console.print(f"   [dim]Created:[/dim] {_format_date(deployment['created_at'])}")
        if deployment.get("url"):
            console.print(f"   [dim]URL:[/dim] [blue]{deployment['url']}[/blue]")
        if deployment.get("error"):
            console.print(f"   [dim]Error:[/dim] [red]{deployment['error']}[/red]")

        try:
            analytics = client.analytics(deployment["id"])
        except ApiError as e:
            console.print(f"[dim]Analytics unavailable: {e.message}[/dim]")
            return

    console.print("\n[bold]Analytics:[/bold]")
    console.print(f"   [dim]Visitors:[/dim] [yellow]{analytics['visitors']:,}[/yellow]")
    console.print(f"   [dim]Page Views:[/dim] [yellow]{analytics['page_views']:,}[/yellow]")
    console.print(f"   [dim]Unique Visitors:[/dim] [yellow]{analytics['unique_visitors']:,}[/yellow]")
    console.print(f"   [dim]Bandwidth:[/dim] [yellow]{analytics['bandwidth']:,} MB[/yellow]")
    console.print(f"   [dim]Uptime:[/dim] [green]{analytics['uptime']}%[/green]")
    console.print(f"   [dim]Avg Load Time:[/dim] [cyan]{analytics['avg_load_time']}[/cyan]")


@app.command()
def init(
    name: Annotated[str | None, typer.Argument(help="Project name")] = None,
    project_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help=f"One of: {', '.join(PROJECT_TYPES)}"),
    ] = None,
) -> None:
    """Initialize a new project."""
    if name is None:
        name = typer.prompt("Project name")
    if len(name) < 3:
        raise _fail("Project name must be at least 3 characters")

    if project_type is None:
        for key, label in PROJECT_TYPES.items():
            console.print(f"   [cyan]{key}[/cyan]  {label}")
        project_type = typer.prompt("Choose project type", default="static")
    if project_type not in PROJECT_TYPES:
        raise _fail(f"Unknown project type: {project_type}")

    try:
        scaffold(name, project_type, Path.cwd())
    except FileExistsError as e:
        raise _fail(f'Directory "{name}" already exists') from e

    console.print(f'[green]Project "{name}" created successfully![/green]')
    console.print("\n[bold]Next steps:[/bold]")
    console.print(f"   [dim]1.[/dim] cd {name}")
    for index, step in enumerate(NEXT_STEPS[project_type], start=2):
        console.print(f"   [dim]{index}.[/dim] {step}")


if __name__ == "__main__":
    app()
