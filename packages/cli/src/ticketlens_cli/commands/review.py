"""review/status commands — score and estimate tickets, optionally publish."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.table import Table

from ticketlens_cli.runtime import get_config, get_engine, get_source, get_store, run
from ticketlens_core.errors import InferenceUnavailable, TicketLensError
from ticketlens_core.models import Ticket
from ticketlens_core.publishing import PublicationGate
from ticketlens_core.records import ticket_records
from ticketlens_core.reporting import FORMATS, ReportAssembler

console = Console()
logger = logging.getLogger(__name__)


@click.command("status")
@click.pass_context
def status_cmd(ctx):
    """Check that the inference backend is reachable."""
    run(get_engine(ctx).status())
    console.print(f"[green]{get_config(ctx)['inference']['provider']} is reachable.[/green]")


def _print_publish(key: str, result) -> None:
    if result.published:
        console.print(f"[green]Published {key}: {result.link}[/green]")
    else:
        console.print(f"[yellow]Already published {key}: {result.link}[/yellow]")


def _bulk_candidates(engine, tickets, reviewed_only: bool, force: bool) -> list[Ticket]:
    """Mirrored tickets whose stored review is missing or outdated (or all of them with force)."""
    mirrored = tickets.list()
    if reviewed_only:
        reviewed = {review.key for review in engine.list()}
        mirrored = [ticket for ticket in mirrored if ticket.key in reviewed]
    return [ticket for ticket in mirrored if force or engine.diff(ticket).is_outdated]


@click.command("review")
@click.argument("key", required=False)
@click.option("--force", is_flag=True, help="Compute a new review even if one is cached.")
@click.option("--outdated", is_flag=True, help="Re-review every ticket whose stored review is outdated.")
@click.option("--all", "review_all", is_flag=True, help="Review every mirrored ticket without an up-to-date review.")
@click.option("--model", default=None, help="Model to use for both checklist and estimate.")
@click.option(
    "--format",
    "-o",
    "fmt",
    type=click.Choice(FORMATS),
    default="markdown",
    show_default=True,
    help="Report format for a single review.",
)
@click.option("--publish", is_flag=True, help="Post the report as a comment on the ticket.")
@click.pass_context
def review_cmd(
    ctx,
    key: str | None,
    force: bool,
    outdated: bool,
    review_all: bool,
    model: str | None,
    fmt: str,
    publish: bool,
):
    """Review a ticket: score it against the checklist and estimate it.

    Reviews are cached per ticket; --force recomputes. With --all or
    --outdated, mirrored tickets are reviewed one at a time and a failure on
    one ticket does not stop the others, unless the inference backend is down.
    """
    if not key and not (review_all or outdated):
        raise click.UsageError("Ticket key required when not using --all or --outdated.")

    store = get_store(ctx)
    engine = get_engine(ctx)
    source = get_source(ctx)
    tickets = ticket_records(store)
    assembler = ReportAssembler(engine, source, store)
    gate = PublicationGate(source, store) if publish else None

    # Fail fast before touching any ticket.
    run(engine.status())

    if key and not (review_all or outdated):
        ticket = tickets.find(key) or Ticket(id="", key=key, summary="")

        async def _review_one():
            report = await assembler.collect(ticket, force=force, model=model)
            result = await gate.publish(report) if gate else None
            return report, result

        with console.status(f"Reviewing {key}..."):
            report, result = run(_review_one())
        if result is not None:
            _print_publish(key, result)
        else:
            console.print(assembler.format(report, fmt), markup=False, highlight=False, soft_wrap=True)
        return

    candidates = _bulk_candidates(engine, tickets, reviewed_only=outdated and not review_all, force=force)
    if not candidates:
        console.print("[yellow]Nothing to review.[/yellow]")
        return

    table = Table(title=f"Reviewed {len(candidates)} tickets", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Result")

    async def _review_many():
        failures = 0
        for ticket in candidates:
            console.print(f"reviewing {ticket.key} ...")
            try:
                report = await assembler.collect(ticket, force=True, model=model)
                result = await gate.publish(report) if gate else None
            except InferenceUnavailable:
                raise
            except TicketLensError as e:
                logger.warning("Review of %s failed: %s", ticket.key, e)
                table.add_row(ticket.key, "-", "-", "-", f"[red]{e}[/red]")
                failures += 1
                continue
            normalized = report.normalized_estimate
            status = "[green]ok[/green]"
            if result is not None:
                status = f"[green]published[/green] {result.link}" if result.published else f"unchanged {result.link}"
            table.add_row(
                ticket.key,
                f"{report.review.score:.0%}",
                f"{normalized.story_points:g}",
                f"{normalized.confidence}%",
                status,
            )
        return failures

    failures = run(_review_many())
    console.print(table)
    if failures:
        raise click.ClickException(f"{failures} of {len(candidates)} reviews failed.")
