"""
NearMatch — Engine error taxonomy.

Every failure the discovery and matching services surface to callers is a
subclass of :class:`EngineError`.  Each carries a stable ``kind`` string
(used in the JSON error envelope) and the HTTP status the API layer maps it
to.  "Needs location" is deliberately absent: it is an outcome, not an error.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for all engine-level failures."""

    kind: str = "engine_error"
    status_code: int = 500

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.context = context

    def to_dict(self) -> dict:
        return {"status": "error", "error": self.kind, "detail": self.message}


class InvalidFilter(EngineError):
    """Malformed caller input (min > max age, negative radius, ...)."""

    kind = "invalid_filter"
    status_code = 422


class NotFound(EngineError):
    """A referenced profile or match does not exist."""

    kind = "not_found"
    status_code = 404


class TargetUnavailable(EngineError):
    """The target profile exists but is banned."""

    kind = "target_unavailable"
    status_code = 403


class AlreadyInteracted(EngineError):
    """The seeker already liked or disliked this target."""

    kind = "already_interacted"
    status_code = 409


class StoreUnavailable(EngineError):
    """Transient store failure or timeout; safe to retry with backoff."""

    kind = "store_unavailable"
    status_code = 503
