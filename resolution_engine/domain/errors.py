"""Domain error taxonomy.

Every rejected operation surfaces one of these with a stable ``kind`` and a
human-readable reason. The API layer maps kinds to HTTP status codes.
"""


class ResolutionError(Exception):
    """Base class for all errors raised by the resolution engine."""

    kind = "error"
    retryable = False

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFound(ResolutionError):
    """Referenced ticket, resolver, category or skill group is absent."""

    kind = "not_found"


class Forbidden(ResolutionError):
    """Actor lacks authority for the requested transition."""

    kind = "forbidden"


class InvalidTransition(ResolutionError):
    """Requested state or assignment violates the ticket state machine."""

    kind = "invalid_transition"


class ValidationError(ResolutionError):
    """Malformed input, e.g. a rating outside 1-5 or an unknown status."""

    kind = "validation_error"


class DependencyFailure(ResolutionError):
    """Backing store or notifier unreachable."""

    kind = "dependency_failure"
    retryable = True
