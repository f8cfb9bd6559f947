# Role: Error taxonomy for the replay + map overlay core.
# Construction errors (geometry/coordinates) are raised synchronously to the single caller;
# payload problems are recorded as MalformedEventPayload and never abort a replay.

from __future__ import annotations

from dataclasses import dataclass


class ReplayError(Exception):
    """Base class for errors raised by the replay and overlay core."""


class InvalidGeometry(ReplayError, ValueError):
    """Zone GeoJSON is missing, of an unsupported type, or has unreadable coordinates."""


class InvalidCoordinates(ReplayError, ValueError):
    """Ping coordinates are non-numeric or outside lat [-90, 90] / lng [-180, 180]."""


@dataclass(frozen=True)
class MalformedEventPayload:
    # Not an exception: the normalizer keeps a list of these and carries on.
    record_id: str
    kind: str
    field: str
    error: str


class ConversationNotFound(ReplayError, LookupError):
    """Raised by write paths (saving examples); replay generation returns an empty sequence instead."""


class ExampleNotFound(ReplayError, LookupError):
    pass
