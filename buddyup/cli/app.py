"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Annotated, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BuddyUpError
from ..domain.matcher import order_roster
from ..adapters.config_store import JsonFileConfigStore
from ..adapters.mock_slack_client import MockSlackClient
from ..adapters.roster_loader import SlackReportDelivery, SlackRosterLoader
from ..adapters.slack_client import SlackClient, SlackWebAPI
from ..services.buddy_up import BuddyUpService, InvocationOutcome, InvocationStatus

app = typer.Typer(
    name="buddyup",
    help="Pair Slack channel members who are farthest apart in timezone",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock workspace data instead of Slack."),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Compute and print the pairing without posting it."),
]
UserOption = Annotated[
    str,
    typer.Option("--user", "-u", help="Slack user id that receives failure notices."),
]


def configure_logging(level: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """
    Load the YAML config.

    In mock mode a missing config file is fine and defaults are used.
    """
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        config = AppConfig()
    else:
        config = AppConfig.load_from_yaml(config_path)

    configure_logging(config.log_level)
    return config


def _build_service(config: AppConfig, mock: bool) -> Tuple[BuddyUpService, SlackWebAPI]:
    """Wire adapters into the service."""
    if mock:
        client: SlackWebAPI = MockSlackClient()
    else:
        client = SlackClient(
            token=config.slack.resolve_bot_token(),
            timeout_seconds=config.slack.timeout_seconds,
            max_retries=config.slack.max_retries,
        )

    service = BuddyUpService(
        roster_loader=SlackRosterLoader(
            client,
            max_concurrency=config.slack.max_concurrency,
            exclude_users=config.exclude_users,
        ),
        delivery=SlackReportDelivery(client),
        config_store=JsonFileConfigStore(config.store_path),
    )
    return service, client


def _print_outcome(outcome: InvocationOutcome, *, channel: str, mock: bool) -> None:
    """Show an invocation outcome; exits with 1 on failure."""
    if outcome.status is InvocationStatus.NOT_CONFIGURED:
        console.print(f"[yellow]⚠ {escape(outcome.notice or '')}[/yellow]")
        return

    if outcome.result is not None:
        console.print()
        console.print(Panel(
            Text(outcome.result.report.rstrip("\n")),
            title=f"[bold cyan]Pairing for {escape(channel)}[/bold cyan]",
            title_align="left",
        ))

    if outcome.ok:
        if outcome.status is InvocationStatus.COMPUTED:
            console.print("[yellow]⊘ Dry run: report not posted[/yellow]")
        elif mock:
            console.print("[yellow]⊘ Mock mode: report recorded, not sent[/yellow]")
        else:
            console.print(f"[green]✓ Report posted to {channel}[/green]")
        return

    console.print(f"[bold red]Error:[/bold red] {escape(outcome.notice or '')}")
    raise typer.Exit(1)


@app.command()
def pair(
    channel: Annotated[str, typer.Argument(help="Slack channel id, e.g. C0123456")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    dry_run: DryRunOption = False,
    user: UserOption = "",
):
    """
    Pair the members of a channel and post the result.

    Examples:

        buddyup pair C0123456

        buddyup pair C0123456 --dry-run

        buddyup pair C0GENERAL --mock
    """
    try:
        config = _load_config(config_file, mock)
        service, _ = _build_service(config, mock)
        outcome = asyncio.run(
            service.handle_invocation(channel, user, deliver=not dry_run)
        )
    except (FileNotFoundError, BuddyUpError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    _print_outcome(outcome, channel=channel, mock=mock)


@app.command()
def roster(
    channel: Annotated[str, typer.Argument(help="Slack channel id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the members of a channel that would take part in a pairing.
    """
    try:
        config = _load_config(config_file, mock)
        service, _ = _build_service(config, mock)
        members = asyncio.run(service.load_roster(channel))
    except (FileNotFoundError, BuddyUpError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not members:
        console.print("[yellow]No eligible members in this channel.[/yellow]")
        return

    table = Table(
        title=f"Members of {channel}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold yellow")
    table.add_column("Offset")
    table.add_column("Local time")

    for member in order_roster(members):
        table.add_row(
            member.id,
            member.display_name,
            member.utc_offset_label(),
            member.local_time().format("ddd HH:mm"),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def configure(
    workflow_id: Annotated[str, typer.Argument(help="Workflow identifier")],
    channel: Annotated[str, typer.Argument(help="Slack channel id to pair")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Remember which channel a workflow pairs.
    """
    try:
        config = _load_config(config_file, mock)
        service, _ = _build_service(config, mock)
        workflow = service.configure(workflow_id, channel)
    except (FileNotFoundError, BuddyUpError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ Workflow {workflow_id} will pair {workflow.group_id}[/green] "
        f"[dim]({config.store_path})[/dim]"
    )


@app.command()
def execute(
    workflow_id: Annotated[str, typer.Argument(help="Workflow identifier")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    dry_run: DryRunOption = False,
    user: UserOption = "",
):
    """
    Run a previously configured workflow.
    """
    try:
        config = _load_config(config_file, mock)
        service, _ = _build_service(config, mock)
        workflow = service.load_configuration(workflow_id)
        outcome = asyncio.run(service.execute(workflow_id, user, deliver=not dry_run))
    except (FileNotFoundError, BuddyUpError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    channel = workflow.group_id if workflow else workflow_id
    _print_outcome(outcome, channel=channel, mock=mock)


@app.command()
def test_auth(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Test the Slack bot token.
    """
    try:
        config = _load_config(config_file, mock)
        _, client = _build_service(config, mock)
        identity = client.auth_test()
    except (FileNotFoundError, BuddyUpError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(e))}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Authentication successful![/bold green]\n\n"
        f"[bold]Bot:[/bold] {identity.get('user', 'N/A')}\n"
        f"[bold]Workspace:[/bold] {identity.get('team', 'N/A')}",
        title="✓ Connection test"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]buddyup[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
