"""Jira Cloud/Server issue source over REST API v2.

API v2 is used rather than v3 because v2 returns descriptions and comment
bodies as wiki markup strings, which the markup converter understands; v3
returns Atlassian Document Format trees.
"""

from __future__ import annotations

import base64
import logging
from urllib.parse import urlparse

import requests

from ticketlens_core.errors import NotFound, UpstreamRequestFailed
from ticketlens_core.models import Author, Comment, Ticket
from ticketlens_core.sources.base import IssueSource

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
_TICKET_FIELDS = "summary,description,created,updated,creator"


def _author(data: dict | None) -> Author | None:
    if not data:
        return None
    return Author(
        account_id=data.get("accountId") or data.get("name") or "",
        display_name=data.get("displayName", ""),
        email=data.get("emailAddress", ""),
    )


class JiraSource(IssueSource):
    markup = "jira"

    def __init__(self, url: str, username: str, api_token: str, timeout: int = REQUEST_TIMEOUT):
        if not url:
            raise ValueError("Jira URL is required. Set JIRA_URL or jira_url in .ticketlens.yml.")
        if not username or not api_token:
            raise ValueError("Jira credentials are required. Set JIRA_USERNAME and JIRA_API_TOKEN.")
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        # Basic auth with email:token for Atlassian Cloud
        auth_b64 = base64.b64encode(f"{username}:{api_token}".encode("ascii")).decode("ascii")
        self.session.headers.update(
            {
                "Authorization": f"Basic {auth_b64}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    # ------------------------------------------------------------------ #
    # HTTP                                                                 #
    # ------------------------------------------------------------------ #

    def _request(self, method: str, path: str, what: str, key: str, **kwargs) -> dict | None:
        url = f"{self.url}/rest/api/2/{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise UpstreamRequestFailed(f"{method} {url} failed: {e}") from e
        if response.status_code == 404:
            raise NotFound(what, key)
        if not response.ok:
            raise UpstreamRequestFailed(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------ #
    # Mapping                                                              #
    # ------------------------------------------------------------------ #

    def _ticket(self, data: dict) -> Ticket:
        fields = data.get("fields", {})
        return Ticket(
            id=str(data["id"]),
            key=data["key"],
            summary=fields.get("summary") or "",
            description=fields.get("description") or "",
            self_link=data.get("self", ""),
            created=fields.get("created") or "",
            updated=fields.get("updated") or "",
            creator=_author(fields.get("creator")),
        )

    def comment_url(self, key: str, comment_id: str) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}/browse/{key}?focusedCommentId={comment_id}"

    def _comment(self, key: str, data: dict) -> Comment:
        comment_id = str(data["id"])
        return Comment(
            id=comment_id,
            body=data.get("body") or "",
            created=data.get("created", ""),
            updated=data.get("updated", ""),
            author=_author(data.get("author")),
            url=self.comment_url(key, comment_id),
        )

    # ------------------------------------------------------------------ #
    # IssueSource                                                          #
    # ------------------------------------------------------------------ #

    def _fetch_ticket(self, key: str) -> Ticket:
        data = self._request("GET", f"issue/{key}", "ticket", key, params={"fields": _TICKET_FIELDS})
        return self._ticket(data)

    def _push_ticket(self, ticket: Ticket) -> None:
        body = {"fields": {"summary": ticket.summary, "description": ticket.description}}
        self._request("PUT", f"issue/{ticket.key}", "ticket", ticket.key, json=body)

    def _fetch_comment(self, key: str, comment_id: str) -> Comment:
        data = self._request("GET", f"issue/{key}/comment/{comment_id}", "comment", f"{key}/{comment_id}")
        return self._comment(key, data)

    def _post_comment(self, key: str, body: str) -> Comment:
        data = self._request("POST", f"issue/{key}/comment", "ticket", key, json={"body": body})
        return self._comment(key, data)

    def _update_comment(self, key: str, comment_id: str, body: str) -> Comment:
        data = self._request(
            "PUT",
            f"issue/{key}/comment/{comment_id}",
            "comment",
            f"{key}/{comment_id}",
            params={"notifyUsers": "false"},
            json={"body": body},
        )
        return self._comment(key, data)

    def _search(self, query: str, limit: int) -> list[Ticket]:
        tickets: list[Ticket] = []
        start_at = 0
        while len(tickets) < limit:
            params = {
                "jql": query,
                "startAt": start_at,
                "maxResults": min(50, limit - len(tickets)),
                "fields": _TICKET_FIELDS,
            }
            data = self._request("GET", "search", "query", query, params=params)
            issues = data.get("issues", [])
            tickets.extend(self._ticket(issue) for issue in issues)
            start_at += len(issues)
            if not issues or start_at >= data.get("total", 0):
                break
        return tickets
