"""Error taxonomy for the GramCare message pipeline.

* :class:`ExternalServiceFailure` -- a translation, detection, AI or
  transport call failed or timed out.  Always recovered where it occurs.
* :class:`ValidationFailure` -- a channel boundary received a request
  missing required fields.  Surfaced to the caller, never retried.
* :class:`UnhandledInternalError` -- anything else, caught at the router
  boundary and turned into the fixed apology reply.
"""

from __future__ import annotations


class GramCareError(Exception):
    """Base class for all GramCare errors."""


class ExternalServiceFailure(GramCareError):
    def __init__(self, service: str, reason: str = "") -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"{service} failed: {reason}" if reason else f"{service} failed")


class ValidationFailure(GramCareError):
    """A required field is missing or malformed at a channel boundary."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class UnhandledInternalError(GramCareError):
    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"unhandled error during {stage}: {cause!r}")
