"""Typed views over store namespaces.

The store only knows JSON dicts; a Records view binds one namespace to the
model class that is stored there.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from ticketlens_core.errors import NotFound
from ticketlens_core.models import Comment, Review, Ticket

if TYPE_CHECKING:
    from ticketlens_store.base import BaseStore

T = TypeVar("T")

TICKETS = "tickets"
EDITS = "edits"
REVIEWS = "reviews"
COMMENTS = "comments"


class Records(Generic[T]):
    def __init__(self, store: BaseStore, namespace: str, loader: Callable[[dict], T], label: str):
        self.store = store
        self.namespace = namespace
        self.loader = loader
        self.label = label

    def put(self, key: str, record: T) -> T:
        self.store.put(self.namespace, key, record.to_dict())
        return record

    def find(self, key: str) -> T | None:
        data = self.store.get(self.namespace, key)
        return self.loader(data) if data is not None else None

    def get(self, key: str) -> T:
        record = self.find(key)
        if record is None:
            raise NotFound(self.label, key)
        return record

    def list(self) -> list[T]:
        return [self.loader(data) for data in self.store.list(self.namespace)]

    def keys(self) -> list[str]:
        return self.store.keys(self.namespace)

    def remove(self, key: str) -> None:
        self.store.remove(self.namespace, key)

    def remove_all(self) -> int:
        return self.store.remove_all(self.namespace)


def ticket_records(store: BaseStore) -> Records[Ticket]:
    return Records(store, TICKETS, Ticket.from_dict, "ticket")


def edit_records(store: BaseStore) -> Records[Ticket]:
    return Records(store, EDITS, Ticket.from_dict, "edit")


def review_records(store: BaseStore) -> Records[Review]:
    return Records(store, REVIEWS, Review.from_dict, "review")


def comment_records(store: BaseStore) -> Records[Comment]:
    return Records(store, COMMENTS, Comment.from_dict, "comment")
