"""Ticket and review data models.

Every record round-trips through ``to_dict`` / ``from_dict`` so stores can keep
them as opaque JSON values and the printer can dump them as JSON or YAML.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Author:
    account_id: str = ""
    display_name: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, d: dict | None) -> Author | None:
        if not d:
            return None
        return cls(
            account_id=d.get("account_id", ""),
            display_name=d.get("display_name", ""),
            email=d.get("email", ""),
        )


@dataclass(frozen=True)
class Ticket:
    """An immutable snapshot of a remote ticket as of one fetch.

    ``description`` is kept in the tracker's native markup (Jira wiki markup or
    GitHub markdown); the codec converts it for editing.
    """

    id: str
    key: str
    summary: str
    description: str = ""
    self_link: str = ""
    created: str = ""
    updated: str = ""
    creator: Author | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> Ticket:
        return cls(
            id=str(d.get("id", "")),
            key=d.get("key", ""),
            summary=d.get("summary", ""),
            description=d.get("description") or "",
            self_link=d.get("self_link", ""),
            created=d.get("created", ""),
            updated=d.get("updated", ""),
            creator=Author.from_dict(d.get("creator")),
        )


@dataclass(frozen=True)
class Comment:
    id: str
    body: str
    created: str = ""
    updated: str = ""
    author: Author | None = None
    url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> Comment:
        return cls(
            id=str(d.get("id", "")),
            body=d.get("body") or "",
            created=d.get("created", ""),
            updated=d.get("updated", ""),
            author=Author.from_dict(d.get("author")),
            url=d.get("url", ""),
        )


@dataclass(frozen=True)
class ChecklistEntry:
    key: str
    description: str
    weight: float

    @classmethod
    def from_dict(cls, d: dict) -> ChecklistEntry:
        return cls(key=d["key"], description=d["description"], weight=float(d["weight"]))


@dataclass(frozen=True)
class ChecklistResult:
    entry: ChecklistEntry
    value: bool

    @classmethod
    def from_dict(cls, d: dict) -> ChecklistResult:
        return cls(entry=ChecklistEntry.from_dict(d["entry"]), value=bool(d["value"]))


@dataclass(frozen=True)
class Estimate:
    """Raw model estimate: confidence on a 0-100 scale and story points."""

    model: str
    confidence: float
    story_points: float

    @classmethod
    def from_dict(cls, d: dict) -> Estimate:
        return cls(model=d.get("model", ""), confidence=d["confidence"], story_points=d["story_points"])


@dataclass(frozen=True)
class NormalizedEstimate:
    confidence: int
    story_points: float

    @classmethod
    def from_dict(cls, d: dict) -> NormalizedEstimate:
        return cls(confidence=d["confidence"], story_points=d["story_points"])


@dataclass(frozen=True)
class Review:
    """The unit of record: one per ticket key, replaced but never mutated.

    ``checksum`` fingerprints the ticket content together with the model that
    produced the review; ``ticket`` is the Review's own copy of the snapshot it
    was computed from, used for staleness detection.
    """

    key: str
    model: str
    score: float
    checklist: list[ChecklistResult]
    estimate: Estimate
    normalized_estimate: NormalizedEstimate
    checksum: str
    ticket: Ticket
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> Review:
        return cls(
            key=d["key"],
            model=d["model"],
            score=d["score"],
            checklist=[ChecklistResult.from_dict(c) for c in d.get("checklist", [])],
            estimate=Estimate.from_dict(d["estimate"]),
            normalized_estimate=NormalizedEstimate.from_dict(d["normalized_estimate"]),
            checksum=d["checksum"],
            ticket=Ticket.from_dict(d["ticket"]),
            reviewed_at=d.get("reviewed_at", ""),
        )


@dataclass(frozen=True)
class ReviewDiff:
    """Staleness of a stored Review against the current ticket. Never persisted."""

    key: str
    has_review: bool
    is_outdated: bool
    patch: str | None = None


@dataclass(frozen=True)
class EditMeta:
    id: str
    key: str
    summary: str


@dataclass(frozen=True)
class Edit:
    """The result of parsing an edited ticket document."""

    meta: EditMeta
    description: str

    def apply(self, ticket: Ticket) -> Ticket:
        """Return a copy of ``ticket`` carrying the edited summary and description."""
        return Ticket(
            id=ticket.id,
            key=ticket.key,
            summary=self.meta.summary,
            description=self.description,
            self_link=ticket.self_link,
            created=ticket.created,
            updated=ticket.updated,
            creator=ticket.creator,
        )
