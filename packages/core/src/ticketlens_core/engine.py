"""Review orchestration: cache policy, concurrent scoring, persistence.

A review is either taken from the store unchanged (``Cached``) or computed from
scratch (``Fresh``). A fresh review runs the checklist and the estimate
requests concurrently over the same ticket snapshot and writes the Review only
after both have answered, so an interrupted run never leaves a partial record.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from ticketlens_core.config import checklist_entries
from ticketlens_core.errors import NotFound
from ticketlens_core.estimate import Estimator, normalize_estimate
from ticketlens_core.models import Review, ReviewDiff, Ticket
from ticketlens_core.records import review_records
from ticketlens_core.scoring import ChecklistScorer, calculate_score

if TYPE_CHECKING:
    from ticketlens_core.codec import ContentCodec
    from ticketlens_core.providers.base import BaseInference
    from ticketlens_store.base import BaseStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cached:
    review: Review


@dataclass(frozen=True)
class Fresh:
    reason: str


CacheDecision = Union[Cached, Fresh]


def decide_cache(stored: Optional[Review], force: bool) -> CacheDecision:
    """Pick between reusing ``stored`` and computing a new review."""
    if force:
        return Fresh("forced")
    if stored is None:
        return Fresh("no stored review")
    return Cached(stored)


class ReviewEngine:
    def __init__(self, store: BaseStore, inference: BaseInference, codec: ContentCodec, config: dict):
        self.reviews = review_records(store)
        self.inference = inference
        self.codec = codec
        self.review_model = config["review"]["model"]
        self.estimate_model = config["estimate"]["model"]
        self.scorer = ChecklistScorer(inference, codec, checklist_entries(config), config["review"]["comment"])
        self.estimator = Estimator(inference, codec, config["estimate"])

    async def status(self) -> None:
        """Raise InferenceUnavailable unless the inference backend answers."""
        await self.inference.liveness()

    async def review(self, ticket: Ticket, force: bool = False, model: Optional[str] = None) -> Review:
        decision = decide_cache(self.reviews.find(ticket.key), force)
        if isinstance(decision, Cached):
            logger.debug("Using cached review for %s", ticket.key)
            return decision.review

        review_model = model or self.review_model
        estimate_model = model or self.estimate_model
        logger.info("Reviewing %s with %s (%s)", ticket.key, review_model, decision.reason)
        # Both requests settle before any failure propagates
        results = await asyncio.gather(
            self.scorer.score(ticket, review_model),
            self.estimator.estimate(ticket, estimate_model),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        checklist, estimate = results
        score = calculate_score(checklist)
        review = Review(
            key=ticket.key,
            model=review_model,
            score=score,
            checklist=checklist,
            estimate=estimate,
            normalized_estimate=normalize_estimate(estimate, score, self.estimator.scale),
            checksum=self.codec.checksum(ticket, review_model),
            ticket=ticket,
        )
        return self.reviews.put(ticket.key, review)

    def diff(self, ticket: Ticket) -> ReviewDiff:
        stored = self.reviews.find(ticket.key)
        if stored is None:
            return ReviewDiff(key=ticket.key, has_review=False, is_outdated=True)
        patch = self.codec.diff(stored.ticket, ticket)
        return ReviewDiff(key=ticket.key, has_review=True, is_outdated=patch is not None, patch=patch)

    def get(self, key: str) -> Review:
        return self.reviews.get(key)

    def find(self, key: str) -> Optional[Review]:
        return self.reviews.find(key)

    def list(self) -> list[Review]:
        return self.reviews.list()

    def remove(self, key: str) -> None:
        if self.reviews.find(key) is None:
            raise NotFound("review", key)
        self.reviews.remove(key)
