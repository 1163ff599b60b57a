"""Abstract key-value store interface.

Any storage backend (SQLite, Gist, in-memory) implements this interface. The
CLI and the review engine depend on BaseStore — not on a concrete backend —
so backends are swappable without touching either.

Values are JSON-compatible dicts, grouped by namespace and addressed by a
string key. Each put/remove is atomic for its own key; there are no
multi-key transactions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreError(Exception):
    """The backend could not complete a read or write."""


class BaseStore(ABC):
    """Pluggable persistence for tickets, edits, reviews and comment links."""

    @abstractmethod
    def put(self, namespace: str, key: str, value: dict) -> None:
        """Create or replace the value stored under ``namespace``/``key``."""

    @abstractmethod
    def get(self, namespace: str, key: str) -> dict | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def keys(self, namespace: str) -> list[str]:
        """Return every key in ``namespace``, sorted."""

    @abstractmethod
    def remove(self, namespace: str, key: str) -> None:
        """Delete one key. Removing an absent key is not an error."""

    def list(self, namespace: str) -> list[dict]:
        """Return every value in ``namespace``, ordered by key."""
        values = []
        for key in self.keys(namespace):
            value = self.get(namespace, key)
            if value is not None:
                values.append(value)
        return values

    def remove_all(self, namespace: str) -> int:
        """Delete every key in ``namespace`` and return how many were removed."""
        keys = self.keys(namespace)
        for key in keys:
            self.remove(namespace, key)
        return len(keys)

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
