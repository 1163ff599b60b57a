"""pull/push commands — mirror tickets between the tracker and the local store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from ticketlens_cli.runtime import get_source, get_store, print_data, run
from ticketlens_core.records import edit_records, ticket_records

console = Console()


@click.command("pull")
@click.argument("keys", nargs=-1)
@click.option("--query", "-q", default=None, help="Tracker search query (JQL for Jira, search syntax for GitHub).")
@click.option("--limit", default=50, show_default=True, help="Maximum number of tickets to pull with --query.")
@click.pass_context
def pull_cmd(ctx, keys: tuple[str, ...], query: str | None, limit: int):
    """Pull tickets from the tracker into the local store.

    Pass one or more ticket keys, or --query to pull every match. Local edits
    are left untouched.
    """
    if not keys and not query:
        raise click.UsageError("Pass one or more ticket keys or --query.")

    source = get_source(ctx)
    tickets = ticket_records(get_store(ctx))
    edits = edit_records(get_store(ctx))

    async def _pull():
        pulled = [await source.fetch_ticket(key) for key in keys]
        if query:
            pulled += await source.search(query, limit=limit)
        return pulled

    pulled = run(_pull())
    if not pulled:
        console.print("[yellow]No tickets found.[/yellow]")
        return

    if len(pulled) == 1 and not query:
        tickets.put(pulled[0].key, pulled[0])
        print_data(ctx, pulled[0].to_dict())
        return

    table = Table(title=f"Pulled {len(pulled)} tickets", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Summary", max_width=60)
    table.add_column("Edited", justify="center")
    for ticket in pulled:
        tickets.put(ticket.key, ticket)
        table.add_row(ticket.key, ticket.summary, "✎" if edits.find(ticket.key) else "")
    console.print(table)


@click.command("push")
@click.argument("key")
@click.pass_context
def push_cmd(ctx, key: str):
    """Publish the local edit of KEY to the tracker."""
    source = get_source(ctx)
    tickets = ticket_records(get_store(ctx))
    edits = edit_records(get_store(ctx))

    key = source.canonical_key(key)
    local = edits.find(key)
    if local is None:
        console.print("[yellow]Up to date.[/yellow]")
        return

    remote = run(source.fetch_ticket(key))
    if (remote.summary, remote.description) == (local.summary, local.description):
        edits.remove(key)
        console.print("[yellow]Up to date.[/yellow]")
        return

    run(source.push_ticket(local))
    tickets.put(key, run(source.fetch_ticket(key)))
    edits.remove(key)
    console.print(f"[green]Changes pushed to {local.self_link or key}[/green]")
