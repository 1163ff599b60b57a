"""Base issue source implementing the Template Method pattern.

Every tracker exposes the same coroutine API; the blocking HTTP or SDK work is
done by the subclass in plain methods and pushed onto a worker thread here:

    fetch_ticket()   → asyncio.to_thread(_fetch_ticket)
    push_ticket()    → asyncio.to_thread(_push_ticket)
    fetch_comment()  → asyncio.to_thread(_fetch_comment)
    post_comment()   → asyncio.to_thread(_post_comment)
    update_comment() → asyncio.to_thread(_update_comment)
    search()         → asyncio.to_thread(_search)

Subclasses raise NotFound for missing tickets or comments and
UpstreamRequestFailed for any other non-success response.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from ticketlens_core.models import Comment, Ticket


class IssueSource(ABC):
    #: Native markup of ticket descriptions and comment bodies.
    markup: str = "markdown"

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def fetch_ticket(self, key: str) -> Ticket:
        return await asyncio.to_thread(self._fetch_ticket, key)

    async def push_ticket(self, ticket: Ticket) -> None:
        """Write the ticket's summary and description back to the tracker."""
        await asyncio.to_thread(self._push_ticket, ticket)

    async def fetch_comment(self, key: str, comment_id: str) -> Comment:
        return await asyncio.to_thread(self._fetch_comment, key, comment_id)

    async def post_comment(self, key: str, body: str) -> Comment:
        return await asyncio.to_thread(self._post_comment, key, body)

    async def update_comment(self, key: str, comment_id: str, body: str) -> Comment:
        return await asyncio.to_thread(self._update_comment, key, comment_id, body)

    async def search(self, query: str, limit: int = 50) -> list[Ticket]:
        return await asyncio.to_thread(self._search, query, limit)

    def canonical_key(self, key: str) -> str:
        """Return KEY in the form that fetched tickets carry."""
        return key

    # ------------------------------------------------------------------ #
    # Abstract — implement in each tracker                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _fetch_ticket(self, key: str) -> Ticket: ...

    @abstractmethod
    def _push_ticket(self, ticket: Ticket) -> None: ...

    @abstractmethod
    def _fetch_comment(self, key: str, comment_id: str) -> Comment: ...

    @abstractmethod
    def _post_comment(self, key: str, body: str) -> Comment: ...

    @abstractmethod
    def _update_comment(self, key: str, comment_id: str, body: str) -> Comment: ...

    @abstractmethod
    def _search(self, query: str, limit: int) -> list[Ticket]: ...
