"""init command — interactive setup wizard.

Writes .ticketlens.yml with the tracker, store and inference backend, and
optionally creates a private Gist to share reviews and comment links across a
team. Secrets are never written; the wizard lists the environment variables
that hold them.
"""

from __future__ import annotations

import os
from pathlib import Path

import click
import yaml
from rich.console import Console

from ticketlens_cli.gh import create_store_gist, detect_repo_from_git

console = Console()

_REQUIRED_ENV = {
    "jira": ["JIRA_URL", "JIRA_USERNAME", "JIRA_API_TOKEN"],
    "github": ["GITHUB_TOKEN (or `gh auth login`)"],
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "ollama": [],
}


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up ticketlens in the current directory.

    Creates (or updates) the configuration file chosen with --config.
    """
    config_path = Path((ctx.obj or {}).get("config_path", ".ticketlens.yml"))
    console.print("\n[bold cyan]ticketlens init[/bold cyan] — setup wizard\n")

    tracker = click.prompt("Issue tracker", type=click.Choice(["jira", "github"]), default="jira")
    config: dict = {"tracker": tracker}
    if tracker == "jira":
        jira_url = click.prompt("Jira URL (blank to use $JIRA_URL)", default="", show_default=False)
        if jira_url:
            config["jira_url"] = jira_url.rstrip("/")
    else:
        repo = detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        config["github_repo"] = click.prompt("GitHub repository (owner/name)", default=repo or None)

    provider = click.prompt(
        "Inference provider",
        type=click.Choice(["ollama", "openai", "anthropic"]),
        default="ollama",
    )
    config["inference"] = {"provider": provider}
    if provider == "ollama":
        config["inference"]["host"] = click.prompt("Ollama host", default="http://localhost:11434")
    model = click.prompt("Model for reviews and estimates", default=_default_model(provider))
    config["review"] = {"model": model}
    config["estimate"] = {"model": model}
    config["nitpick"] = {"model": model}

    console.print("\nLocal store:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default)")
    console.print("  [bold]gist[/bold]    — shared private GitHub Gist, zero infrastructure")
    store_type = click.prompt("Store backend", type=click.Choice(["sqlite", "gist"]), default="sqlite")

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default="~/.ticketlens/ticketlens.db")
        config["store"] = "sqlite"
        config["store_path"] = db_path
    else:
        gist_id = create_store_gist()
        if gist_id:
            console.print(f"[green]Created Gist: {gist_id}[/green]")
            config["store"] = "gist"
            config["gist_id"] = gist_id
        else:
            console.print(f"[yellow]Gist creation failed — add gist_id manually to {config_path}[/yellow]")

    _write_config(config_path, config)
    console.print(f"[green]Wrote {config_path}[/green]")

    required = _REQUIRED_ENV[tracker] + _REQUIRED_ENV[provider]
    if store_type == "gist" and tracker != "github":
        required += _REQUIRED_ENV["github"]
    missing = [name for name in required if name.split()[0] not in os.environ]
    if missing:
        console.print("\n[yellow]Set these environment variables before running commands:[/yellow]")
        for name in missing:
            console.print(f"  [bold]{name}[/bold]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Pull a ticket with: [bold]ticketlens pull <KEY>[/bold]")


def _default_model(provider: str) -> str:
    from ticketlens_core.config import DEFAULT_MODEL

    return {"openai": "gpt-4o", "anthropic": "claude-sonnet-4-20250514"}.get(provider, DEFAULT_MODEL)


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(existing.get(key), dict):
            existing[key] = {**existing[key], **value}
        else:
            existing[key] = value
    path.write_text(yaml.safe_dump(existing, default_flow_style=False, sort_keys=False))
