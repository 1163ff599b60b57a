"""Helpers that shell out to the GitHub CLI (``gh``) and git.

The GitHub token is needed for the GitHub Issues tracker and for the Gist
store. Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)

None of these helpers raise when the tool is missing; they return None and
let the caller decide whether that is fatal.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

STORE_FILENAME = "ticketlens_store.json"


def _run(args: list[str], timeout: int = 5) -> str | None:
    """Return the stripped stdout of ``args``, or None if it failed or is not installed."""
    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("%s is not available", args[0])
        return None
    if result.returncode != 0:
        logger.debug("%s failed: %s", " ".join(args[:3]), (result.stderr or "").strip())
        return None
    return result.stdout.strip() or None


def needs_github_token(config: dict) -> bool:
    return config.get("tracker") == "github" or config.get("store") == "gist"


def resolve_github_token() -> str | None:
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token
    token = _run(["gh", "auth", "token"])
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token


def detect_repo_from_git() -> str | None:
    """Return ``owner/repo`` from the origin remote when it points at GitHub."""
    url = _run(["git", "remote", "get-url", "origin"])
    if not url or "github.com" not in url:
        return None
    # https://github.com/owner/repo.git  ->  owner/repo
    # git@github.com:owner/repo.git      ->  owner/repo
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def create_store_gist() -> str | None:
    """Create a private Gist holding an empty store document and return its ID."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        # gh names Gist files after their path
        path = Path(tmp_dir) / STORE_FILENAME
        path.write_text("{}")
        url = _run(["gh", "gist", "create", "--public=false", "--desc", "ticketlens store", str(path)], timeout=15)
    if url is None:
        logger.warning("gh gist create failed; is the GitHub CLI installed and logged in?")
        return None
    return url.rstrip("/").split("/")[-1]
