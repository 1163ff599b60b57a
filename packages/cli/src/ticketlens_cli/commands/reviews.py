"""reviews command — list stored reviews, lowest score first."""

from __future__ import annotations

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ticketlens_cli.runtime import get_engine, get_source, get_store, run
from ticketlens_core.errors import NotFound
from ticketlens_core.records import review_records
from ticketlens_core.utils.dates import relative_date

console = Console()


def _score_style(score: float) -> str:
    if score >= 0.75:
        return "green"
    if score >= 0.5:
        return "yellow"
    return "red"


@click.command("reviews")
@click.option(
    "--threshold",
    type=click.FloatRange(0, 1),
    default=1.0,
    show_default=True,
    help="Only show reviews scoring at or below this value.",
)
@click.option("--outdated", is_flag=True, help="Only show reviews whose ticket changed remotely.")
@click.option("--diff", "show_diff", is_flag=True, help="With --outdated, print the change for each ticket.")
@click.pass_context
def reviews_cmd(ctx, threshold: float, outdated: bool, show_diff: bool):
    """Show stored reviews sorted by score (lowest first).

    With --outdated each reviewed ticket is fetched from the tracker and
    compared with the snapshot its review was computed from.
    """
    reviews = sorted(review_records(get_store(ctx)).list(), key=lambda review: review.score)
    reviews = [review for review in reviews if review.score <= threshold]

    patches: dict[str, str] = {}
    if outdated and reviews:
        engine = get_engine(ctx)
        source = get_source(ctx)

        async def _outdated():
            kept = []
            for review in reviews:
                try:
                    ticket = await source.fetch_ticket(review.key)
                except NotFound:
                    continue
                diff = engine.diff(ticket)
                if diff.is_outdated:
                    kept.append(review)
                    patches[review.key] = diff.patch or ""
            return kept

        reviews = run(_outdated())

    if not reviews:
        console.print("[yellow]No reviews found.[/yellow]")
        return

    table = Table(title="Reviews", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Summary", max_width=40)
    table.add_column("Score", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Model")
    table.add_column("Reviewed")

    for review in reviews:
        style = _score_style(review.score)
        table.add_row(
            review.key,
            review.ticket.summary[:40],
            f"[{style}]{review.score:.0%}[/{style}]",
            f"{review.normalized_estimate.story_points:g}",
            f"{review.normalized_estimate.confidence}%",
            review.model,
            relative_date(review.reviewed_at),
        )
    console.print(table)

    if outdated and show_diff:
        for review in reviews:
            console.print(f"\n[bold]{review.key}[/bold]")
            console.print(Syntax(patches[review.key], "diff", theme="ansi_dark", background_color="default"))
