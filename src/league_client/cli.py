"""
League Client Command Line Interface.

Built with Typer. Token and league selection are kept in a JSON file so
they survive between invocations.
"""

import logging
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .api import FileStore, LeagueAPIError, SyncLeagueClient
from .config import get_settings
from .data import League, Organization

app = typer.Typer(
    name="league-client",
    help="Command line access to the league management API",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def get_client() -> SyncLeagueClient:
    """Build a client backed by the configured storage file."""
    settings = get_settings()
    return SyncLeagueClient(
        settings=settings, storage=FileStore(settings.storage.path)
    )


def _rows(data: Any) -> list[dict[str, Any]]:
    """Accept either a bare list or an {"items": [...]} envelope."""
    if isinstance(data, dict):
        data = data.get("items", [])
    return [row for row in data or [] if isinstance(row, dict)]


def _label(model: Organization | League | None) -> str:
    if model is None:
        return "-"
    return model.name or model.slug or str(model.id)


def _find(rows: list[dict[str, Any]], ref: str) -> dict[str, Any] | None:
    ref = ref.lower()
    for row in rows:
        if str(row.get("id")) == ref or str(row.get("slug", "")).lower() == ref:
            return row
    return None


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    League Client - browse and manage your leagues from the terminal.
    """
    level = "DEBUG" if verbose else get_settings().app.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def login(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Log in and remember the session token."""
    client = get_client()
    try:
        profile = client.login(username, password)
        name = (profile.username or profile.email) if profile else username
        console.print(f"[green]Logged in as {name}[/green]")
    except LeagueAPIError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def logout() -> None:
    """Forget the session token and league selection."""
    client = get_client()
    try:
        client.logout()
        console.print("[green]Logged out[/green]")
    finally:
        client.close()


@app.command()
def whoami() -> None:
    """Show the signed-in user and the selected league."""
    client = get_client()
    try:
        if not client.tokens.is_authenticated:
            console.print("[yellow]Not logged in. Run 'league-client login' first.[/yellow]")
            raise typer.Exit(1)

        profile = client.get_me()
        ctx = client.league_context.context

        table = Table(title="Session", show_header=False)
        table.add_column("Item", style="cyan")
        table.add_column("Value", style="white")
        user = (profile.username or profile.email) if profile else None
        table.add_row("User", str(user or "-"))
        table.add_row("Organization", _label(ctx.organization))
        table.add_row("League", _label(ctx.league))
        console.print(table)
    except LeagueAPIError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def organizations() -> None:
    """List your organizations and their leagues."""
    client = get_client()
    try:
        orgs = _rows(client.get_organizations())
        if not orgs:
            console.print("[yellow]No organizations found.[/yellow]")
            return

        table = Table(title="Organizations")
        table.add_column("ID", style="dim")
        table.add_column("Organization", style="cyan")
        table.add_column("Leagues", style="white")

        for org in orgs:
            leagues = _rows(client.get_organization_leagues(org["id"]))
            names = ", ".join(str(lg.get("slug") or lg.get("id")) for lg in leagues)
            table.add_row(str(org.get("id")), str(org.get("name") or org.get("slug")), names)

        console.print(table)
    except LeagueAPIError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def use(
    organization: str = typer.Argument(..., help="Organization id or slug"),
    league: Optional[str] = typer.Argument(None, help="League id or slug"),
) -> None:
    """Select the organization (and optionally league) later commands use."""
    client = get_client()
    try:
        org = _find(_rows(client.get_organizations()), organization)
        if org is None:
            console.print(f"[red]Unknown organization: {organization}[/red]")
            raise typer.Exit(1)
        client.league_context.set_organization(org)

        if league is not None:
            lg = _find(_rows(client.get_organization_leagues(org["id"])), league)
            if lg is None:
                console.print(f"[red]Unknown league: {league}[/red]")
                raise typer.Exit(1)
            client.league_context.set_league(lg)

        ctx = client.league_context.context
        label = _label(ctx.organization)
        if ctx.league is not None:
            label += f" / {_label(ctx.league)}"
        console.print(f"[green]Using {label}[/green]")
    except LeagueAPIError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def seasons(
    league: Optional[str] = typer.Option(None, "--league", "-l", help="League id (default: selected)"),
) -> None:
    """List the seasons of the selected league."""
    client = get_client()
    try:
        rows = _rows(client.get_seasons(league))
        table = Table(title="Seasons")
        table.add_column("ID", style="dim")
        table.add_column("Season", style="cyan")

        for row in rows:
            table.add_row(str(row.get("id")), str(row.get("name", "")))

        console.print(table)
    except LeagueAPIError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


@app.command()
def dashboard(
    season_id: str = typer.Argument(..., help="Season id"),
    league: Optional[str] = typer.Option(None, "--league", "-l", help="League id (default: selected)"),
) -> None:
    """Show the standings of a season."""
    client = get_client()
    try:
        data = client.get_season_dashboard(season_id, league)
        console.print(Panel(f"[bold]Season {season_id}[/bold]", style="green"))

        standings = data.get("standings", []) if isinstance(data, dict) else []
        table = Table(title="Standings")
        table.add_column("#", style="dim")
        table.add_column("Team", style="white")
        table.add_column("W", style="green")
        table.add_column("L", style="red")

        for i, row in enumerate(standings, 1):
            table.add_row(
                str(i),
                str(row.get("team") or row.get("name", "")),
                str(row.get("wins", "")),
                str(row.get("losses", "")),
            )

        console.print(table)
    except LeagueAPIError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
