"""Error taxonomy for entrypoint requests.

Every failure is scoped to the request that raised it. Nothing here is
retried internally; upstream errors carry `retryable = True` so the caller
can decide.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class NbaStatsError(Exception):
    """Base exception for all request-scoped failures."""

    retryable = False


class UnresolvedEntity(NbaStatsError):
    """A free-form identifier matched neither an alias nor a canonical ID."""

    def __init__(self, identifier: str, kind: str = "entity", hint: str = ""):
        self.identifier = identifier
        self.kind = kind
        self.hint = hint
        message = f"Unknown {kind}: {identifier}."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class InvalidInput(NbaStatsError):
    """Caller input violated an entrypoint's declared schema."""

    def __init__(self, entrypoint: str, errors: Sequence[dict[str, Any]] | str):
        self.entrypoint = entrypoint
        if isinstance(errors, str):
            self.errors: list[dict[str, Any]] = [{"loc": (), "msg": errors}]
        else:
            self.errors = list(errors)
        details = "; ".join(_format_error(e) for e in self.errors)
        super().__init__(f"Invalid input for '{entrypoint}': {details}")


def _format_error(error: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ()))
    msg = error.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


class UpstreamError(NbaStatsError):
    """The stats provider could not produce a payload."""

    retryable = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class UpstreamUnavailable(UpstreamError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status: int, url: Optional[str] = None):
        self.status = status
        super().__init__(f"ESPN API error: {status}" + (f" for {url}" if url else ""), url)


class UpstreamTransportError(UpstreamError):
    """The call itself did not complete (DNS, timeout, reset, unusable body)."""

    def __init__(self, reason: str, url: Optional[str] = None):
        self.reason = reason
        super().__init__(f"ESPN API request failed: {reason}" + (f" ({url})" if url else ""), url)
