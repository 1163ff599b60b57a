"""Editable ticket documents, fingerprints and line diffs.

A ticket is edited as a markdown document with a YAML front-matter header::

    ---
    id: '10001'
    key: PROJ-1
    summary: Add login page
    ...
    ---

    Body converted from the tracker's native markup to markdown.

The serialized form is also what fingerprints and staleness diffs are computed
over, so two tickets are "the same" exactly when they serialize identically.
"""

from __future__ import annotations

import difflib
import hashlib
import re
from dataclasses import asdict

import yaml

from ticketlens_core.errors import MalformedEdit
from ticketlens_core.markup import get_converter
from ticketlens_core.models import Edit, EditMeta, Ticket

_DELIMITER = "---"
_DOCUMENT_RE = re.compile(r"\A\s*---[ \t]*\n(.*?)^---[ \t]*$\n?(.*)\Z", re.DOTALL | re.MULTILINE)
_REQUIRED_FIELDS = ("id", "key", "summary")


def fingerprint(text: str) -> str:
    """Return the SHA-512 hex digest of ``text``."""
    return hashlib.sha512(text.encode("utf-8")).hexdigest()


class ContentCodec:
    """Serializes tickets for editing and fingerprinting.

    ``markup`` names the tracker's native markup (``jira`` or ``markdown``);
    descriptions are converted to markdown on the way out and back on the way in.
    """

    def __init__(self, markup: str = "jira"):
        self.converter = get_converter(markup)

    def serialize(self, ticket: Ticket) -> str:
        meta = {
            "id": ticket.id,
            "key": ticket.key,
            "summary": ticket.summary,
            "self": ticket.self_link,
            "created": ticket.created,
            "updated": ticket.updated,
            "creator": asdict(ticket.creator) if ticket.creator else None,
        }
        header = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True)
        body = self.converter.to_markdown(ticket.description)
        return f"{_DELIMITER}\n{header}{_DELIMITER}\n\n{body}"

    def deserialize(self, text: str) -> Edit:
        match = _DOCUMENT_RE.match((text or "").replace("\r\n", "\n"))
        if not match:
            raise MalformedEdit("document must start with a '---' delimited YAML header")
        header, body = match.group(1), match.group(2)

        try:
            meta = yaml.safe_load(header)
        except yaml.YAMLError as e:
            raise MalformedEdit(f"header is not valid YAML: {e}")
        if not isinstance(meta, dict):
            raise MalformedEdit("header is not a YAML mapping")
        for name in _REQUIRED_FIELDS:
            if name not in meta:
                raise MalformedEdit(f"header missing {name}")
            if not isinstance(meta[name], str):
                raise MalformedEdit(f"header field {name} must be a string")

        description = self.converter.from_markdown(body.strip("\n"))
        return Edit(meta=EditMeta(id=meta["id"], key=meta["key"], summary=meta["summary"]), description=description)

    def checksum(self, ticket: Ticket, model: str) -> str:
        """Fingerprint of the ticket content combined with the model identifier."""
        return fingerprint(f"{model}:{fingerprint(self.serialize(ticket))}")

    def diff(self, ticket: Ticket, other: Ticket) -> str | None:
        """Unified line diff of two serialized tickets, or None when identical."""
        original = self.serialize(ticket)
        updated = self.serialize(other)
        if original == updated:
            return None
        filename = f"{ticket.key}.md"
        lines = difflib.unified_diff(
            original.splitlines(),
            updated.splitlines(),
            fromfile=filename,
            tofile=filename,
            lineterm="",
        )
        return "\n".join(lines)
