from ticketlens_core.sources.base import IssueSource


def get_source(config: dict) -> IssueSource:
    """Build the issue source named by ``config["tracker"]``."""
    tracker = config.get("tracker", "jira")
    if tracker == "jira":
        from ticketlens_core.sources.jira import JiraSource

        return JiraSource(
            url=config.get("jira_url"),
            username=config.get("jira_username"),
            api_token=config.get("jira_api_token"),
        )
    if tracker == "github":
        from ticketlens_core.sources.github import GitHubSource

        return GitHubSource(token=config.get("github_token"), repo=config.get("github_repo"))
    raise ValueError(f"Unknown tracker: {tracker!r}. Choose 'jira' or 'github'.")


__all__ = ["IssueSource", "get_source"]
