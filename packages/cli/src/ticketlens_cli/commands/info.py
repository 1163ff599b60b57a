"""info command — summarise what the local store holds."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from ticketlens_cli.runtime import domain_errors, get_config, get_store
from ticketlens_core.records import COMMENTS, EDITS, REVIEWS, TICKETS, review_records

console = Console()

_SCORE_BANDS = (("0-49%", 0.0, 0.5), ("50-74%", 0.5, 0.75), ("75-100%", 0.75, 1.01))


@click.command("info")
@click.pass_context
def info_cmd(ctx):
    """Show record counts and review statistics for the local store.

    Useful for spotting how much of the backlog is under-specified: the score
    bands count reviewed tickets by checklist score.
    """
    config = get_config(ctx)
    store = get_store(ctx)

    with domain_errors():
        counts = {namespace: len(store.keys(namespace)) for namespace in (TICKETS, EDITS, REVIEWS, COMMENTS)}
        reviews = review_records(store).list()

    console.print("\n[bold]ticketlens store[/bold]")
    console.print(f"  Tracker:  {config.get('tracker')}")
    console.print(f"  Store:    {config.get('store')}")
    if config.get("store") == "sqlite":
        console.print(f"  Path:     {config.get('store_path')}")
    elif config.get("store") == "gist":
        console.print(f"  Gist:     {config.get('gist_id')}")

    count_table = Table(title="Records", show_header=True)
    count_table.add_column("Namespace", style="bold")
    count_table.add_column("Count", justify="right")
    for namespace, count in counts.items():
        count_table.add_row(namespace, str(count))
    console.print(count_table)

    if not reviews:
        return

    average = sum(review.score for review in reviews) / len(reviews)
    console.print(f"  Average score: {average:.0%}")

    band_table = Table(title="Score Bands", show_header=True)
    band_table.add_column("Score", style="bold")
    band_table.add_column("Reviews", justify="right")
    for label, low, high in _SCORE_BANDS:
        band_table.add_row(label, str(sum(1 for review in reviews if low <= review.score < high)))
    console.print(band_table)

    points: Counter[float] = Counter(review.normalized_estimate.story_points for review in reviews)
    points_table = Table(title="Story Points", show_header=True)
    points_table.add_column("Points", style="bold")
    points_table.add_column("Reviews", justify="right")
    for value in sorted(points):
        points_table.add_row(f"{value:g}", str(points[value]))
    console.print(points_table)
