"""list/get/remove/prune/settings commands — inspect and clean up local records."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from ticketlens_cli.runtime import domain_errors, get_config, get_store, print_data
from ticketlens_core.records import comment_records, edit_records, review_records, ticket_records
from ticketlens_core.utils.dates import older_than, relative_date

console = Console()

_RECORDS = {
    "issue": ticket_records,
    "edit": edit_records,
    "review": review_records,
    "comment": comment_records,
}

_SECRETS = ("jira_username", "jira_api_token", "github_token", "openai_api_key", "anthropic_api_key")


@click.group("list")
def list_cmd():
    """List locally stored records."""


def _ticket_table(title: str, tickets) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Summary", max_width=60)
    table.add_column("Updated")
    for ticket in tickets:
        table.add_row(ticket.key, ticket.summary, relative_date(ticket.updated))
    return table


@list_cmd.command("issues")
@click.option("--details", is_flag=True, help="Print full records instead of a table.")
@click.pass_context
def list_issues(ctx, details: bool):
    with domain_errors():
        tickets = ticket_records(get_store(ctx)).list()
    if details:
        print_data(ctx, [ticket.to_dict() for ticket in tickets])
        return
    console.print(_ticket_table("Issues", tickets))


@list_cmd.command("edits")
@click.option("--details", is_flag=True, help="Print full records instead of a table.")
@click.pass_context
def list_edits(ctx, details: bool):
    with domain_errors():
        tickets = edit_records(get_store(ctx)).list()
    if details:
        print_data(ctx, [ticket.to_dict() for ticket in tickets])
        return
    console.print(_ticket_table("Local edits", tickets))


@list_cmd.command("comments")
@click.option("--details", is_flag=True, help="Print full records instead of a table.")
@click.pass_context
def list_comments(ctx, details: bool):
    records = comment_records(get_store(ctx))
    with domain_errors():
        keys = records.keys()
        comments = [records.get(key) for key in keys]
    if details:
        print_data(ctx, {key: comment.to_dict() for key, comment in zip(keys, comments)})
        return
    table = Table(title="Published comments", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Comment")
    table.add_column("Link")
    for key, comment in zip(keys, comments):
        table.add_row(key, comment.id, comment.url)
    console.print(table)


@click.command("get")
@click.argument("kind", type=click.Choice(sorted(_RECORDS)))
@click.argument("key")
@click.pass_context
def get_cmd(ctx, kind: str, key: str):
    """Print one stored record (issue, edit, review or comment)."""
    with domain_errors():
        record = _RECORDS[kind](get_store(ctx)).get(key)
    print_data(ctx, record.to_dict())


@click.command("remove")
@click.argument("kind", type=click.Choice(sorted(_RECORDS)))
@click.argument("key", required=False)
@click.option("--all", "remove_all", is_flag=True, help="Remove every record of this kind.")
@click.option("--force", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def remove_cmd(ctx, kind: str, key: str | None, remove_all: bool, force: bool):
    """Remove stored records. Remote tickets and comments are never touched."""
    records = _RECORDS[kind](get_store(ctx))
    if not remove_all:
        if not key:
            raise click.UsageError("Key required when not using --all.")
        with domain_errors():
            records.get(key)
            records.remove(key)
        console.print(f"[green]Removed {kind} {key}.[/green]")
        return

    if not force and not click.confirm(f"Delete all {kind} records?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        return
    with domain_errors():
        removed = records.remove_all()
    console.print(f"[green]Removed {removed} {kind} records.[/green]")


@click.command("prune")
@click.argument("days", type=click.IntRange(min=0))
@click.option("--created", is_flag=True, help="Filter by created date instead of last updated date.")
@click.option("--remove", "remove_old", is_flag=True, help="Remove the listed issues from the local store.")
@click.pass_context
def prune_cmd(ctx, days: int, created: bool, remove_old: bool):
    """List mirrored issues not updated (or created) in the last DAYS days."""
    tickets = ticket_records(get_store(ctx))
    with domain_errors():
        mirrored = tickets.list()
    prunable = [ticket for ticket in mirrored if older_than(ticket.created if created else ticket.updated, days)]
    if not prunable:
        console.print("[yellow]No issues to prune.[/yellow]")
        return

    prunable.sort(key=lambda ticket: ticket.created)
    print_data(
        ctx,
        [
            {
                "key": ticket.key,
                "summary": ticket.summary,
                "created": {"date": ticket.created, "relative": relative_date(ticket.created)},
                "updated": {"date": ticket.updated, "relative": relative_date(ticket.updated)},
            }
            for ticket in prunable
        ],
    )
    if remove_old:
        with domain_errors():
            for ticket in prunable:
                tickets.remove(ticket.key)
        console.print(f"[green]Removed {len(prunable)} issues.[/green]")


@click.command("settings")
@click.pass_context
def settings_cmd(ctx):
    """Print the effective settings (defaults merged with .ticketlens.yml). Secrets are omitted."""
    config = {key: value for key, value in get_config(ctx).items() if key not in _SECRETS}
    print_data(ctx, config)
