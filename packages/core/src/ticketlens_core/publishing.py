"""Idempotent publication of review reports as tracker comments.

The comment posted for a ticket is remembered in the ``comments`` namespace.
Publishing again updates that comment in place, and only when the rendered
body actually changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ticketlens_core.errors import NotFound
from ticketlens_core.models import Comment
from ticketlens_core.records import comment_records
from ticketlens_core.reporting import Report, ReportAssembler

if TYPE_CHECKING:
    from ticketlens_core.sources.base import IssueSource
    from ticketlens_store.base import BaseStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    published: bool
    link: str
    comment: Optional[Comment] = None


def native_format(markup: str) -> str:
    return "jira" if markup == "jira" else "markdown"


class PublicationGate:
    def __init__(self, source: IssueSource, store: BaseStore):
        self.source = source
        self.comments = comment_records(store)

    async def _remote_comment(self, key: str) -> Optional[Comment]:
        stored = self.comments.find(key)
        if stored is None:
            return None
        try:
            return await self.source.fetch_comment(key, stored.id)
        except NotFound:
            logger.info("Comment %s on %s was deleted remotely; posting a new one", stored.id, key)
            self.comments.remove(key)
            return None

    async def publish(self, report: Report) -> PublishResult:
        key = report.ticket.key
        body = ReportAssembler.format(report, native_format(self.source.markup))

        remote = await self._remote_comment(key)
        if remote is None:
            comment = await self.source.post_comment(key, body)
            self.comments.put(key, comment)
            logger.info("Posted review comment on %s", key)
            return PublishResult(published=True, link=comment.url, comment=comment)

        if remote.body.strip() == body.strip():
            logger.debug("Review comment on %s is unchanged", key)
            return PublishResult(published=False, link=remote.url, comment=remote)

        comment = await self.source.update_comment(key, remote.id, body)
        self.comments.put(key, comment)
        logger.info("Updated review comment on %s", key)
        return PublishResult(published=True, link=comment.url, comment=comment)
