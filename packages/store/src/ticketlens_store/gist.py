"""GistStore — zero-infrastructure shared store via GitHub Gist.

Why Gist as the shared store:
- Zero infra: no DB to provision, no server to maintain.
- Built-in access control: Gist ACL == GitHub account, so a team can share
  reviews and comment links without a separate login.

Data format: a single JSON file named ``ticketlens_store.json`` inside the
Gist, holding ``{namespace: {key: value}}``. Every write reads the current
document, changes one key and writes the document back.
"""

from __future__ import annotations

import json
import logging

from ticketlens_store.base import BaseStore, StoreError

logger = logging.getLogger(__name__)

_GIST_FILENAME = "ticketlens_store.json"


class GistStore(BaseStore):
    """Stores records in one JSON document inside a GitHub Gist.

    Suitable for hundreds or low thousands of records; reads fetch the whole
    document. The Gist ID is stored in .ticketlens.yml under ``gist_id``.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore. Install ticketlens with its default dependencies.")
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        try:
            return self._gh.get_gist(self._gist_id)
        except Exception as e:
            raise StoreError(f"could not load Gist {self._gist_id} ({type(e).__name__}: {e})") from e

    def _read_document(self, gist) -> dict:
        """Read the current JSON document from the Gist file.

        A missing or blank file is an empty store. Anything else that is not a
        JSON object raises StoreError so a later write cannot replace it.
        """
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None or not (file_obj.content or "").strip():
            return {}
        try:
            document = json.loads(file_obj.content)
        except json.JSONDecodeError as e:
            raise StoreError(f"{_GIST_FILENAME} in Gist {self._gist_id} is not valid JSON ({e})") from e
        if document is None:
            return {}
        if not isinstance(document, dict):
            raise StoreError(
                f"{_GIST_FILENAME} in Gist {self._gist_id} holds a {type(document).__name__}, expected an object"
            )
        return document

    def _write_document(self, gist, document: dict) -> None:
        try:
            gist.edit(files={_GIST_FILENAME: {"content": json.dumps(document, indent=2, sort_keys=True)}})
        except Exception as e:
            raise StoreError(f"could not write Gist {self._gist_id} ({type(e).__name__}: {e})") from e
        logger.debug("GistStore: wrote %s to Gist %s", _GIST_FILENAME, self._gist_id)

    def put(self, namespace: str, key: str, value: dict) -> None:
        gist = self._get_gist()
        document = self._read_document(gist)
        document.setdefault(namespace, {})[key] = value
        self._write_document(gist, document)

    def get(self, namespace: str, key: str) -> dict | None:
        return self._read_document(self._get_gist()).get(namespace, {}).get(key)

    def keys(self, namespace: str) -> list[str]:
        return sorted(self._read_document(self._get_gist()).get(namespace, {}))

    def list(self, namespace: str) -> list[dict]:
        records = self._read_document(self._get_gist()).get(namespace, {})
        return [records[key] for key in sorted(records)]

    def remove(self, namespace: str, key: str) -> None:
        gist = self._get_gist()
        document = self._read_document(gist)
        if key in document.get(namespace, {}):
            del document[namespace][key]
            self._write_document(gist, document)

    def remove_all(self, namespace: str) -> int:
        gist = self._get_gist()
        document = self._read_document(gist)
        removed = len(document.pop(namespace, {}))
        if removed:
            self._write_document(gist, document)
        return removed
