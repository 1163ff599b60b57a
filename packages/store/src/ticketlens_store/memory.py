"""In-memory store — nothing survives the process.

Used by tests and by ``store: memory`` for throwaway runs. Values are copied
through JSON on the way in and out, so callers never share mutable state with
the store.
"""

from __future__ import annotations

import json

from ticketlens_store.base import BaseStore


class MemoryStore(BaseStore):
    def __init__(self):
        self._data: dict[str, dict[str, str]] = {}

    def put(self, namespace: str, key: str, value: dict) -> None:
        self._data.setdefault(namespace, {})[key] = json.dumps(value)

    def get(self, namespace: str, key: str) -> dict | None:
        raw = self._data.get(namespace, {}).get(key)
        return json.loads(raw) if raw is not None else None

    def keys(self, namespace: str) -> list[str]:
        return sorted(self._data.get(namespace, {}))

    def remove(self, namespace: str, key: str) -> None:
        self._data.get(namespace, {}).pop(key, None)
