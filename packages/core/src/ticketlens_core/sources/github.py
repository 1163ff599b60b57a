"""GitHub Issues source via PyGithub.

Ticket keys are ``owner/repo#123``; a bare ``123`` (or ``#123``) resolves
against the configured ``github_repo``.
"""

from __future__ import annotations

import logging
import re

from github import Github, GithubException

from ticketlens_core.errors import NotFound, UpstreamRequestFailed
from ticketlens_core.models import Author, Comment, Ticket
from ticketlens_core.sources.base import IssueSource

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^(?:(?P<repo>[\w.-]+/[\w.-]+))?#?(?P<number>\d+)$")


def parse_key(key: str, default_repo: str | None = None) -> tuple[str, int]:
    """Split ``owner/repo#123`` into its repository and issue number."""
    match = _KEY_RE.match(key.strip())
    if not match:
        raise ValueError(f"Invalid GitHub issue key {key!r}. Expected owner/repo#number.")
    repo = match.group("repo") or default_repo
    if not repo:
        raise ValueError(f"Issue key {key!r} has no repository and no github_repo is configured.")
    return repo, int(match.group("number"))


def _author(user) -> Author | None:
    if user is None:
        return None
    return Author(account_id=str(user.id), display_name=user.login, email="")


def _timestamp(value) -> str:
    return value.isoformat() if value else ""


class GitHubSource(IssueSource):
    markup = "markdown"

    def __init__(self, token: str, repo: str | None = None):
        if not token:
            raise ValueError("GitHub token is required. Set GITHUB_TOKEN or run `gh auth login`.")
        self._gh = Github(token)
        self.repo = repo

    def _call(self, what: str, key: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except GithubException as e:
            if e.status == 404:
                raise NotFound(what, key) from e
            raise UpstreamRequestFailed(f"GitHub request for {what} {key} failed: {e.data}", status=e.status) from e

    def _issue(self, key: str):
        repo_name, number = parse_key(key, self.repo)
        return self._call("ticket", key, lambda: self._gh.get_repo(repo_name).get_issue(number))

    def canonical_key(self, key: str) -> str:
        repo_name, number = parse_key(key, self.repo)
        return f"{repo_name}#{number}"

    def _ticket(self, issue, key: str | None = None) -> Ticket:
        return Ticket(
            id=str(issue.id),
            key=key or f"{issue.repository.full_name}#{issue.number}",
            summary=issue.title or "",
            description=issue.body or "",
            self_link=issue.url,
            created=_timestamp(issue.created_at),
            updated=_timestamp(issue.updated_at),
            creator=_author(issue.user),
        )

    def _comment(self, comment) -> Comment:
        return Comment(
            id=str(comment.id),
            body=comment.body or "",
            created=_timestamp(comment.created_at),
            updated=_timestamp(comment.updated_at),
            author=_author(comment.user),
            url=comment.html_url,
        )

    def _fetch_ticket(self, key: str) -> Ticket:
        return self._ticket(self._issue(key), self.canonical_key(key))

    def _push_ticket(self, ticket: Ticket) -> None:
        issue = self._issue(ticket.key)
        self._call("ticket", ticket.key, issue.edit, title=ticket.summary, body=ticket.description)

    def _fetch_comment(self, key: str, comment_id: str) -> Comment:
        issue = self._issue(key)
        comment = self._call("comment", f"{key}/{comment_id}", issue.get_comment, int(comment_id))
        return self._comment(comment)

    def _post_comment(self, key: str, body: str) -> Comment:
        issue = self._issue(key)
        return self._comment(self._call("ticket", key, issue.create_comment, body))

    def _update_comment(self, key: str, comment_id: str, body: str) -> Comment:
        issue = self._issue(key)
        comment = self._call("comment", f"{key}/{comment_id}", issue.get_comment, int(comment_id))
        self._call("comment", f"{key}/{comment_id}", comment.edit, body)
        return self._comment(comment)

    def _search(self, query: str, limit: int) -> list[Ticket]:
        qualifiers = f" repo:{self.repo}" if self.repo else ""
        results = self._call("query", query, self._gh.search_issues, f"{query}{qualifiers} is:issue")
        tickets = []
        for issue in results:
            if len(tickets) >= limit:
                break
            tickets.append(self._ticket(issue))
        return tickets
