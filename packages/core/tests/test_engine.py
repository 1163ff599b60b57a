"""Tests for the review engine: cache policy, persistence and staleness."""

import asyncio
import threading
import time
from dataclasses import replace

import pytest

from ticketlens_core.codec import ContentCodec
from ticketlens_core.engine import Cached, Fresh, ReviewEngine, decide_cache
from ticketlens_core.errors import InferenceUnavailable, InvalidInferenceResponse, NotFound


@pytest.fixture
def engine(store, inference, config):
    return ReviewEngine(store, inference, ContentCodec("jira"), config)


class TestDecideCache:
    def test_no_stored_review_is_fresh(self):
        assert isinstance(decide_cache(None, force=False), Fresh)

    def test_force_is_fresh(self, engine, ticket):
        stored = asyncio.run(engine.review(ticket))
        decision = decide_cache(stored, force=True)
        assert decision == Fresh("forced")

    def test_stored_review_is_cached(self, engine, ticket):
        stored = asyncio.run(engine.review(ticket))
        assert decide_cache(stored, force=False) == Cached(stored)


class TestReview:
    def test_scenario(self, engine, ticket):
        review = asyncio.run(engine.review(ticket))
        assert review.key == "PROJ-1"
        assert review.score == 0.25
        assert [r.value for r in review.checklist] == [True, False]
        assert review.estimate.confidence == 80
        assert review.normalized_estimate.confidence == 50
        assert review.normalized_estimate.story_points == 3
        assert review.model == "llama3.3"
        assert review.ticket == ticket

    def test_checksum_covers_ticket_and_model(self, engine, ticket):
        review = asyncio.run(engine.review(ticket))
        assert review.checksum == ContentCodec("jira").checksum(ticket, "llama3.3")

    def test_checklist_and_estimate_each_requested_once(self, engine, inference, ticket):
        asyncio.run(engine.review(ticket))
        assert sorted(call[0] for call in inference.calls) == ["checklist", "estimate"]

    def test_second_review_is_served_from_cache(self, engine, inference, ticket):
        first = asyncio.run(engine.review(ticket))
        second = asyncio.run(engine.review(ticket))
        assert len(inference.calls) == 2
        assert first == second

    def test_force_recomputes(self, engine, inference, ticket):
        asyncio.run(engine.review(ticket))
        asyncio.run(engine.review(ticket, force=True))
        assert len(inference.calls) == 4

    def test_model_override_applies_to_both_requests(self, engine, inference, ticket):
        review = asyncio.run(engine.review(ticket, model="mistral"))
        assert {call[1] for call in inference.calls} == {"mistral"}
        assert review.model == "mistral"
        assert review.estimate.model == "mistral"

    def test_review_is_persisted(self, engine, store, ticket):
        review = asyncio.run(engine.review(ticket))
        assert store.keys("reviews") == ["PROJ-1"]
        assert engine.get("PROJ-1") == review

    def test_invalid_answer_stores_nothing(self, store, make_inference, config, ticket):
        inference = make_inference(
            answers={"checklist": '{"a": true}', "estimate": '{"confidence": 80, "story_points": 5}'}
        )
        engine = ReviewEngine(store, inference, ContentCodec("jira"), config)
        with pytest.raises(InvalidInferenceResponse):
            asyncio.run(engine.review(ticket))
        assert store.keys("reviews") == []

    def test_backend_failure_stores_nothing(self, store, make_inference, config, ticket):
        inference = make_inference(
            answers={"checklist": ConnectionError("down"), "estimate": '{"confidence": 80, "story_points": 5}'}
        )
        engine = ReviewEngine(store, inference, ContentCodec("jira"), config)
        with pytest.raises(InferenceUnavailable):
            asyncio.run(engine.review(ticket))
        assert store.keys("reviews") == []


class TestDiff:
    def test_without_review_is_outdated(self, engine, ticket):
        diff = engine.diff(ticket)
        assert diff.has_review is False
        assert diff.is_outdated is True
        assert diff.patch is None

    def test_unchanged_ticket_is_current(self, engine, ticket):
        asyncio.run(engine.review(ticket))
        diff = engine.diff(replace(ticket))
        assert diff.has_review is True
        assert diff.is_outdated is False

    def test_changed_ticket_is_outdated_with_patch(self, engine, ticket):
        asyncio.run(engine.review(ticket))
        diff = engine.diff(replace(ticket, description="h2. Goal\n\nRewritten"))
        assert diff.is_outdated is True
        assert "+Rewritten" in diff.patch


class TestStatusAndRecords:
    def test_status_fails_when_backend_down(self, store, make_inference, config):
        engine = ReviewEngine(store, make_inference(alive=False), ContentCodec("jira"), config)
        with pytest.raises(InferenceUnavailable):
            asyncio.run(engine.status())

    def test_status_passes_when_backend_up(self, engine):
        asyncio.run(engine.status())

    def test_get_missing_raises(self, engine):
        with pytest.raises(NotFound):
            engine.get("PROJ-404")

    def test_remove(self, engine, ticket):
        asyncio.run(engine.review(ticket))
        engine.remove("PROJ-1")
        assert engine.list() == []

    def test_remove_missing_raises(self, engine):
        with pytest.raises(NotFound):
            engine.remove("PROJ-404")

    def test_list_returns_stored_reviews(self, engine, ticket):
        asyncio.run(engine.review(ticket))
        asyncio.run(engine.review(replace(ticket, key="PROJ-2")))
        assert [review.key for review in engine.list()] == ["PROJ-1", "PROJ-2"]


class TestConcurrentRequests:
    def test_checklist_and_estimate_overlap(self, store, make_inference, config, ticket):
        barrier = threading.Barrier(2, timeout=5)

        class Rendezvous(make_inference):
            def _call_api(self, model, prompt, schema):
                barrier.wait()
                return super()._call_api(model, prompt, schema)

        inference = Rendezvous(
            answers={"checklist": '{"a": true, "b": false}', "estimate": '{"confidence": 80, "story_points": 5}'}
        )
        engine = ReviewEngine(store, inference, ContentCodec("jira"), config)

        review = asyncio.run(engine.review(ticket))

        assert review.estimate.story_points == 5
        assert sorted(call[0] for call in inference.calls) == ["checklist", "estimate"]

    def test_failed_request_waits_for_its_sibling(self, store, make_inference, config, ticket):
        finished = threading.Event()

        class SlowEstimate(make_inference):
            def _call_api(self, model, prompt, schema):
                answer = super()._call_api(model, prompt, schema)
                if "story_points" in schema.get("properties", {}):
                    time.sleep(0.3)
                    finished.set()
                return answer

        inference = SlowEstimate(
            answers={"checklist": '{"a": true}', "estimate": '{"confidence": 80, "story_points": 5}'}
        )
        engine = ReviewEngine(store, inference, ContentCodec("jira"), config)

        async def run():
            with pytest.raises(InvalidInferenceResponse):
                await engine.review(ticket)
            return [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]

        assert asyncio.run(run()) == []
        assert finished.is_set()
        assert store.keys("reviews") == []
