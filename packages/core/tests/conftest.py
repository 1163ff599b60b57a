"""Shared fixtures: a sample ticket, default settings and stub collaborators.

The stubs subclass the real BaseInference / IssueSource so the async
template methods under test are the production ones.
"""

import copy

import pytest

from ticketlens_core.config import DEFAULT_CONFIG
from ticketlens_core.errors import NotFound
from ticketlens_core.models import Author, Comment, Ticket
from ticketlens_core.providers.base import BaseInference
from ticketlens_core.sources.base import IssueSource
from ticketlens_store.memory import MemoryStore


class StubInference(BaseInference):
    """Answers each operation from a canned JSON string and records every call."""

    def __init__(self, answers=None, alive=True):
        self.answers = answers or {}
        self.alive = alive
        self.calls = []

    def _call_api(self, model, prompt, schema):
        if "story_points" in schema.get("properties", {}):
            operation = "estimate"
        elif "markdown" in schema.get("properties", {}):
            operation = "nitpick"
        else:
            operation = "checklist"
        self.calls.append((operation, model, prompt))
        answer = self.answers[operation]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def _ping(self):
        if not self.alive:
            raise ConnectionError("connection refused")


class StubSource(IssueSource):
    """In-memory tracker with Jira markup."""

    markup = "jira"

    def __init__(self, tickets=()):
        self.tickets = {ticket.key: ticket for ticket in tickets}
        self.comments = {}
        self.writes = []
        self._next_id = 100

    def _fetch_ticket(self, key):
        if key not in self.tickets:
            raise NotFound("ticket", key)
        return self.tickets[key]

    def _push_ticket(self, ticket):
        self.writes.append(("push", ticket.key))
        self.tickets[ticket.key] = ticket

    def _fetch_comment(self, key, comment_id):
        if (key, comment_id) not in self.comments:
            raise NotFound("comment", f"{key}/{comment_id}")
        return self.comments[(key, comment_id)]

    def _post_comment(self, key, body):
        self._next_id += 1
        comment_id = str(self._next_id)
        self.writes.append(("post", key))
        url = f"https://jira.example.com/browse/{key}?focusedCommentId={comment_id}"
        comment = Comment(id=comment_id, body=body, url=url)
        self.comments[(key, comment_id)] = comment
        return comment

    def _update_comment(self, key, comment_id, body):
        self.writes.append(("update", key))
        comment = Comment(id=comment_id, body=body, url=self.comments[(key, comment_id)].url)
        self.comments[(key, comment_id)] = comment
        return comment

    def _search(self, query, limit):
        return list(self.tickets.values())[:limit]


@pytest.fixture
def ticket():
    return Ticket(
        id="10001",
        key="PROJ-1",
        summary="Add login page",
        description="h2. Goal\n\nUsers can *log in* with SSO.\n\n* expected: redirect to dashboard",
        self_link="https://jira.example.com/rest/api/2/issue/10001",
        created="2024-01-02T10:00:00.000+0000",
        updated="2024-01-03T10:00:00.000+0000",
        creator=Author(account_id="abc", display_name="Sam Doe", email="sam@example.com"),
    )


@pytest.fixture
def config():
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["review"]["checklist"] = [
        {"key": "a", "description": "Is A present?", "weight": 1},
        {"key": "b", "description": "Is B present?", "weight": 3},
    ]
    return cfg


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def inference():
    return StubInference(
        answers={
            "checklist": '{"a": true, "b": false}',
            "estimate": '{"confidence": 80, "story_points": 5}',
            "nitpick": '{"markdown": "## Summary\\n\\nLogin page"}',
        }
    )


@pytest.fixture
def make_inference():
    return StubInference


@pytest.fixture
def make_source():
    return StubSource
