"""CLI entry point for ticketlens.

Commands:
  init      — write a starter .ticketlens.yml
  status    — check that the inference backend is reachable
  pull/push — mirror tickets between the tracker and the local store
  edit/diff — edit a mirrored ticket offline and compare it with the mirror
  nitpick   — restructure a ticket description into the configured template
  review    — score, estimate and optionally publish a review
  reviews   — summarise stored reviews
  list/get/remove/prune — inspect and clean up local records
  info/settings — show the store contents and the effective settings
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from ticketlens_cli.commands.data import get_cmd, list_cmd, prune_cmd, remove_cmd, settings_cmd
from ticketlens_cli.commands.edit import diff_cmd, edit_cmd, nitpick_cmd
from ticketlens_cli.commands.info import info_cmd
from ticketlens_cli.commands.init import init_cmd
from ticketlens_cli.commands.review import review_cmd, status_cmd
from ticketlens_cli.commands.reviews import reviews_cmd
from ticketlens_cli.commands.sync import pull_cmd, push_cmd

console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_store(config: dict):
    """Instantiate the configured store from .ticketlens.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default ~/.ticketlens/ticketlens.db)
      store: gist   → GistStore  (requires gist_id and a GitHub token)
      store: memory → MemoryStore (nothing is kept after the command exits)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "gist":
        from ticketlens_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            raise click.UsageError("GistStore requires gist_id in .ticketlens.yml and a GitHub token.")
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "memory":
        from ticketlens_store.memory import MemoryStore

        return MemoryStore()

    from ticketlens_store.sqlite import SQLiteStore

    return SQLiteStore(db_path=config.get("store_path", "~/.ticketlens/ticketlens.db"))


def _version() -> str:
    try:
        return importlib.metadata.version("ticketlens")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


@click.group()
@click.version_option(version=_version(), prog_name="ticketlens")
@click.option(
    "--config",
    "config_path",
    default=".ticketlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="TICKETLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Local-first backlog grooming: mirror, edit, review and estimate tickets."""
    from ticketlens_cli.gh import needs_github_token, resolve_github_token
    from ticketlens_core.config import load_config
    from ticketlens_core.errors import ConfigurationInvalid

    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    # init writes the config file, so it must run even when the current one is broken.
    if ctx.invoked_subcommand == "init":
        return

    try:
        config = load_config(config_path)
    except ConfigurationInvalid as e:
        raise click.ClickException(str(e))

    if not config.get("github_token") and needs_github_token(config):
        config["github_token"] = resolve_github_token()

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(init_cmd)
main.add_command(status_cmd)
main.add_command(pull_cmd)
main.add_command(push_cmd)
main.add_command(edit_cmd)
main.add_command(diff_cmd)
main.add_command(nitpick_cmd)
main.add_command(review_cmd)
main.add_command(reviews_cmd)
main.add_command(list_cmd)
main.add_command(get_cmd)
main.add_command(remove_cmd)
main.add_command(prune_cmd)
main.add_command(info_cmd)
main.add_command(settings_cmd)
