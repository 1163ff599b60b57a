"""Shared plumbing for commands: building collaborators and running coroutines.

Commands never construct sources or inference backends themselves; they ask
for them here, so tests can patch ``build_source`` / ``build_inference`` in
one place.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import contextmanager
from typing import Any, Coroutine, TypeVar

import click
import yaml
from rich.console import Console

from ticketlens_core.errors import TicketLensError
from ticketlens_store.base import StoreError

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_source(config: dict):
    from ticketlens_core.sources import get_source

    return get_source(config)


def build_inference(config: dict):
    from ticketlens_core.providers import get_inference

    return get_inference(config)


def _cached(ctx: click.Context, name: str, factory):
    obj = ctx.find_object(dict)
    if name not in obj:
        try:
            obj[name] = factory(obj["config"])
        except (ValueError, ImportError) as e:
            raise click.UsageError(str(e))
    return obj[name]


def get_config(ctx: click.Context) -> dict:
    return ctx.find_object(dict)["config"]


def get_store(ctx: click.Context):
    return ctx.find_object(dict)["store"]


def get_source(ctx: click.Context):
    return _cached(ctx, "source", build_source)


def get_inference(ctx: click.Context):
    return _cached(ctx, "inference", build_inference)


def get_codec(ctx: click.Context):
    from ticketlens_core.codec import ContentCodec

    return _cached(ctx, "codec", lambda config: ContentCodec(get_source(ctx).markup))


def get_engine(ctx: click.Context):
    from ticketlens_core.engine import ReviewEngine

    return _cached(
        ctx,
        "engine",
        lambda config: ReviewEngine(get_store(ctx), get_inference(ctx), get_codec(ctx), config),
    )


@contextmanager
def domain_errors():
    """Re-raise domain and store errors as ClickException (exit status 1)."""
    try:
        yield
    except (TicketLensError, StoreError) as e:
        raise click.ClickException(str(e))


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion, turning domain errors into CLI errors."""
    with domain_errors():
        return asyncio.run(coro)


def dump(data: Any, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")


def print_data(ctx: click.Context, data: Any) -> None:
    """Print a record or list of records in the configured output format."""
    console.print(dump(data, get_config(ctx).get("format", "yaml")), markup=False, highlight=False, soft_wrap=True)
