"""Error taxonomy for update checks.

Two families:
- Per-source errors (`ParseError`, `TransportError`, `NotFoundError`,
  `DecodeError`) are converted to strings in a verdict's `errors` list and
  never abort other sources or other mods.
- Fatal errors (`ConfigurationError`, `CacheUnavailableError`) fail the whole
  batch before any per-mod processing starts.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification attached to a failed source fetch."""

    PARSE = "parse"
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    DECODE = "decode"


class UpdateCheckError(Exception):
    """Base class for every error raised by the update-check core."""


class SourceError(UpdateCheckError):
    """An error scoped to one update key or one `(source, id)` pair."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class ParseError(SourceError):
    """The update key text is malformed or can't be routed to a source."""

    kind = ErrorKind.PARSE


class TransportError(SourceError):
    """Network failure, non-success HTTP status or timeout reaching a source."""

    kind = ErrorKind.TRANSPORT


class NotFoundError(SourceError):
    """The source explicitly reports that the id does not exist."""

    kind = ErrorKind.NOT_FOUND


class DecodeError(SourceError):
    """The source answered with a payload of unexpected shape."""

    kind = ErrorKind.DECODE


class FatalUpdateCheckError(UpdateCheckError):
    """A condition that must fail the entire batch."""


class ConfigurationError(FatalUpdateCheckError):
    """Required configuration is missing or inconsistent."""


class CacheUnavailableError(FatalUpdateCheckError):
    """The cache store can't be read or written."""
