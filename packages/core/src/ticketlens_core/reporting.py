"""Review reports: collection and rendering.

Rendering is a pure function of the Report, so the same report always formats
to the same bytes. Publishing relies on that to detect unchanged comments.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import yaml

from ticketlens_core.estimate import round_half_up
from ticketlens_core.markup import markdown_to_jira
from ticketlens_core.models import NormalizedEstimate, Review, Ticket
from ticketlens_core.records import ticket_records

if TYPE_CHECKING:
    from ticketlens_core.engine import ReviewEngine
    from ticketlens_core.sources.base import IssueSource
    from ticketlens_store.base import BaseStore

logger = logging.getLogger(__name__)

FORMATS = ("markdown", "jira", "wiki", "json", "yaml")
ATTRIBUTION = "*Generated by ticketlens. Scores and estimates are suggestions, not commitments.*"

_CHECK = "✓"
_CROSS = "✗"


@dataclass(frozen=True)
class Report:
    ticket: Ticket
    review: Review
    normalized_estimate: NormalizedEstimate

    def to_dict(self) -> dict:
        return {
            "ticket": self.ticket.to_dict(),
            "review": self.review.to_dict(),
            "normalized_estimate": {
                "confidence": self.normalized_estimate.confidence,
                "story_points": self.normalized_estimate.story_points,
            },
        }


def _number(value: float) -> str:
    return f"{value:g}"


def render_markdown(report: Report) -> str:
    review = report.review
    estimate = review.estimate
    normalized = report.normalized_estimate
    lines = [f"## Review of {report.ticket.key}", ""]
    for result in review.checklist:
        lines.append(f"- {_CHECK if result.value else _CROSS} {result.entry.description}")
    lines += [
        "",
        "### Details",
        "",
        f"- **Score:** {round_half_up(review.score * 100)}%",
        f"- **Story points:** {_number(normalized.story_points)} (raw {_number(estimate.story_points)})",
        f"- **Confidence:** {normalized.confidence}% (raw {_number(estimate.confidence)}%)",
        f"- **Review model:** {review.model}",
        f"- **Estimate model:** {estimate.model}",
        "",
        ATTRIBUTION,
    ]
    return "\n".join(lines)


class ReportAssembler:
    def __init__(self, engine: ReviewEngine, source: Optional[IssueSource] = None, store: Optional[BaseStore] = None):
        self.engine = engine
        self.source = source
        self.tickets = ticket_records(store) if store is not None else None

    async def collect(self, ticket: Ticket, force: bool = False, model: Optional[str] = None) -> Report:
        """Refresh ``ticket`` from the tracker, review it and package both."""
        if self.source is not None:
            ticket = await self.source.fetch_ticket(ticket.key)
            if self.tickets is not None:
                self.tickets.put(ticket.key, ticket)
        review = await self.engine.review(ticket, force=force, model=model)
        return Report(ticket=ticket, review=review, normalized_estimate=review.normalized_estimate)

    @staticmethod
    def from_review(review: Review) -> Report:
        return Report(ticket=review.ticket, review=review, normalized_estimate=review.normalized_estimate)

    @staticmethod
    def format(report: Report, fmt: str = "markdown") -> str:
        if fmt == "markdown":
            return render_markdown(report)
        if fmt in ("jira", "wiki"):
            return markdown_to_jira(render_markdown(report))
        if fmt == "json":
            return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
        if fmt == "yaml":
            return yaml.safe_dump(report.to_dict(), sort_keys=False, allow_unicode=True)
        raise ValueError(f"Unknown report format: {fmt!r}. Choose one of {', '.join(FORMATS)}.")
