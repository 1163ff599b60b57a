"""Error taxonomy shared by every ticketlens package.

Each error is terminal for the single operation it occurs in. None of them
leave persisted state half-written: stores write one key at a time and the
engine only writes a Review after it has been fully computed.
"""

from __future__ import annotations


class TicketLensError(Exception):
    """Base class for all errors surfaced to the CLI."""


class NotFound(TicketLensError):
    """A ticket, review, comment or stored key does not exist."""

    def __init__(self, what: str, key: str):
        super().__init__(f"{what} not found: {key}")
        self.what = what
        self.key = key


class MalformedEdit(TicketLensError):
    """An edited ticket document failed structural validation."""


class InferenceUnavailable(TicketLensError):
    """The inference backend is down or a generation call failed.

    Bulk operations abort on this error: the backend is assumed to be down for
    every remaining item.
    """


class InvalidInferenceResponse(TicketLensError):
    """The model answered, but the answer does not match the requested schema."""


class UpstreamRequestFailed(TicketLensError):
    """The issue tracker (or Gist API) returned a non-success response."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message if status is None else f"{message} (HTTP {status})")
        self.status = status


class ConfigurationInvalid(TicketLensError):
    """Settings failed schema or semantic validation at load time."""
