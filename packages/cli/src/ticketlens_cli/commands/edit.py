"""edit/diff/nitpick commands — work on a mirrored ticket offline.

Edits are stored whole in the ``edits`` namespace and only reach the tracker
through ``ticketlens push``.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.syntax import Syntax

from ticketlens_cli.runtime import get_codec, get_config, get_inference, get_store, run
from ticketlens_core.errors import MalformedEdit
from ticketlens_core.models import Ticket
from ticketlens_core.records import edit_records, ticket_records

console = Console()


def _mirrored(ctx, key: str) -> Ticket:
    ticket = ticket_records(get_store(ctx)).find(key)
    if ticket is None:
        raise click.ClickException(f"{key} is not in the local store. Run `ticketlens pull {key}` first.")
    return ticket


def _edit_loop(codec, key: str, text: str):
    """Open the editor until the document parses, the user gives up, or nothing changed."""
    original = text
    while True:
        edited = click.edit(text, extension=".md", require_save=True)
        if edited is None or edited == original:
            return None
        try:
            edit = codec.deserialize(edited)
            if edit.meta.key != key:
                raise MalformedEdit(f"header key {edit.meta.key!r} does not match {key!r}")
            return edit
        except MalformedEdit as e:
            console.print(f"[red]Error:[/red] {e}")
            if not click.confirm("Fix the document and try again?", default=True):
                raise click.Abort()
            text = edited


def _print_patch(patch: str) -> None:
    console.print(Syntax(patch, "diff", theme="ansi_dark", background_color="default"))


@click.command("edit")
@click.argument("key")
@click.pass_context
def edit_cmd(ctx, key: str):
    """Edit a mirrored ticket in $EDITOR.

    The ticket opens as markdown with a YAML header. Summary and description
    changes are saved as a local edit; nothing is stored if the document does
    not parse.
    """
    edits = edit_records(get_store(ctx))
    ticket = edits.find(key) or _mirrored(ctx, key)
    codec = get_codec(ctx)

    edit = _edit_loop(codec, key, codec.serialize(ticket))
    if edit is None:
        console.print("[yellow]No changes.[/yellow]")
        return

    edits.put(key, edit.apply(ticket))
    console.print("[green]Changes saved.[/green]")
    console.print(f"[blue]Next: `ticketlens diff {key}` or `ticketlens push {key}`[/blue]")


@click.command("diff")
@click.argument("key")
@click.pass_context
def diff_cmd(ctx, key: str):
    """Show the local edit of KEY against the mirrored ticket."""
    original = _mirrored(ctx, key)
    edited = edit_records(get_store(ctx)).find(key)
    if edited is None:
        console.print("[yellow]No local changes found.[/yellow]")
        return
    patch = get_codec(ctx).diff(original, edited)
    if patch is None:
        console.print("[yellow]No local changes found.[/yellow]")
        return
    _print_patch(patch)


@click.command("nitpick")
@click.argument("key")
@click.option("--model", default=None, help="Model to use. Overrides nitpick.model.")
@click.pass_context
def nitpick_cmd(ctx, key: str, model: str | None):
    """Restructure the description of KEY into the configured template.

    The result is saved as a local edit for review with `ticketlens diff`.
    """
    from ticketlens_core.nitpick import Nitpicker

    edits = edit_records(get_store(ctx))
    original = _mirrored(ctx, key)
    ticket = edits.find(key) or original
    codec = get_codec(ctx)
    inference = get_inference(ctx)
    nitpicker = Nitpicker(inference, codec, get_config(ctx)["nitpick"])

    async def _nitpick():
        await inference.liveness()
        return await nitpicker.nitpick(ticket, model)

    with console.status(f"Nitpicking {key}..."):
        nitpicked = run(_nitpick())

    patch = codec.diff(original, nitpicked)
    if patch is None:
        console.print("[yellow]Nothing to change.[/yellow]")
        return
    edits.put(key, nitpicked)
    _print_patch(patch)
    console.print(f"[green]Saved as a local edit.[/green] [blue]Next: `ticketlens push {key}`[/blue]")
