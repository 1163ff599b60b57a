"""Tests for the GitHub Issues source."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from github import GithubException

from ticketlens_core.errors import NotFound, UpstreamRequestFailed
from ticketlens_core.models import Ticket
from ticketlens_core.sources.github import GitHubSource, parse_key


def _issue(number=7, title="Add login page", body="## Goal"):
    issue = MagicMock()
    issue.id = 9001
    issue.number = number
    issue.title = title
    issue.body = body
    issue.url = f"https://api.github.com/repos/acme/app/issues/{number}"
    issue.created_at = datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)
    issue.updated_at = None
    issue.user.id = 42
    issue.user.login = "octocat"
    issue.repository.full_name = "acme/app"
    return issue


def _comment(comment_id=555, body="Looks good"):
    comment = MagicMock()
    comment.id = comment_id
    comment.body = body
    comment.created_at = None
    comment.updated_at = None
    comment.user = None
    comment.html_url = f"https://github.com/acme/app/issues/7#issuecomment-{comment_id}"
    return comment


@pytest.fixture
def gh(mocker):
    return mocker.patch("ticketlens_core.sources.github.Github").return_value


@pytest.fixture
def source(gh):
    return GitHubSource("ghp_token", "acme/app")


class TestParseKey:
    def test_full_key(self):
        assert parse_key("acme/app#12") == ("acme/app", 12)

    def test_bare_number_uses_default_repo(self):
        assert parse_key("12", "acme/app") == ("acme/app", 12)
        assert parse_key("#12", "acme/app") == ("acme/app", 12)

    def test_bare_number_without_repo_raises(self):
        with pytest.raises(ValueError, match="no repository"):
            parse_key("12")

    def test_garbage_raises(self):
        with pytest.raises(ValueError, match="Invalid GitHub issue key"):
            parse_key("PROJ-12", "acme/app")


class TestGitHubSource:
    def test_missing_token_raises(self):
        with pytest.raises(ValueError, match="GITHUB_TOKEN"):
            GitHubSource("", "acme/app")

    def test_fetch_ticket_maps_issue(self, source, gh):
        gh.get_repo.return_value.get_issue.return_value = _issue()

        ticket = asyncio.run(source.fetch_ticket("acme/app#7"))

        gh.get_repo.assert_called_with("acme/app")
        gh.get_repo.return_value.get_issue.assert_called_with(7)
        assert ticket.key == "acme/app#7"
        assert ticket.id == "9001"
        assert ticket.summary == "Add login page"
        assert ticket.description == "## Goal"
        assert ticket.created == "2024-01-02T10:00:00+00:00"
        assert ticket.updated == ""
        assert ticket.creator.display_name == "octocat"
        assert ticket.creator.account_id == "42"

    def test_bare_number_keys_match_search_keys(self, source, gh):
        gh.get_repo.return_value.get_issue.return_value = _issue()
        gh.search_issues.return_value = [_issue()]

        fetched = [asyncio.run(source.fetch_ticket(key)).key for key in ("7", "#7", " acme/app#7 ")]
        searched = asyncio.run(source.search("label:bug"))

        assert fetched == ["acme/app#7"] * 3
        assert searched[0].key == "acme/app#7"

    def test_canonical_key(self, source):
        assert source.canonical_key("7") == "acme/app#7"
        assert source.canonical_key("other/repo#12") == "other/repo#12"

    def test_missing_issue_raises_not_found(self, source, gh):
        gh.get_repo.return_value.get_issue.side_effect = GithubException(404, {"message": "Not Found"}, None)
        with pytest.raises(NotFound):
            asyncio.run(source.fetch_ticket("7"))

    def test_other_errors_raise_upstream_failure(self, source, gh):
        gh.get_repo.return_value.get_issue.side_effect = GithubException(502, {"message": "Bad Gateway"}, None)
        with pytest.raises(UpstreamRequestFailed) as excinfo:
            asyncio.run(source.fetch_ticket("7"))
        assert excinfo.value.status == 502

    def test_push_ticket_edits_title_and_body(self, source, gh):
        issue = _issue()
        gh.get_repo.return_value.get_issue.return_value = issue
        asyncio.run(source.push_ticket(Ticket(id="9001", key="acme/app#7", summary="New", description="Body")))
        issue.edit.assert_called_once_with(title="New", body="Body")

    def test_post_comment_returns_html_url(self, source, gh):
        issue = _issue()
        issue.create_comment.return_value = _comment()
        gh.get_repo.return_value.get_issue.return_value = issue

        comment = asyncio.run(source.post_comment("acme/app#7", "Looks good"))

        issue.create_comment.assert_called_once_with("Looks good")
        assert comment.id == "555"
        assert comment.url.endswith("#issuecomment-555")

    def test_update_comment_edits_in_place(self, source, gh):
        issue = _issue()
        remote = _comment()
        issue.get_comment.return_value = remote
        gh.get_repo.return_value.get_issue.return_value = issue

        asyncio.run(source.update_comment("acme/app#7", "555", "Updated"))

        issue.get_comment.assert_called_once_with(555)
        remote.edit.assert_called_once_with("Updated")

    def test_deleted_comment_raises_not_found(self, source, gh):
        issue = _issue()
        issue.get_comment.side_effect = GithubException(404, {"message": "Not Found"}, None)
        gh.get_repo.return_value.get_issue.return_value = issue
        with pytest.raises(NotFound):
            asyncio.run(source.fetch_comment("acme/app#7", "555"))

    def test_search_scopes_to_repo_and_limits(self, source, gh):
        gh.search_issues.return_value = [_issue(1), _issue(2), _issue(3)]

        tickets = asyncio.run(source.search("label:bug", limit=2))

        gh.search_issues.assert_called_once_with("label:bug repo:acme/app is:issue")
        assert [ticket.key for ticket in tickets] == ["acme/app#1", "acme/app#2"]
