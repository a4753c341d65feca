"""Domain error taxonomy.

Raised only inside service code running in a unit of work; the operation
boundary (lms.services.results.operation) converts them into an
unsuccessful OperationResult.  The ``kind`` attribute is what the API
layer maps to an HTTP status.
"""

from __future__ import annotations


class LmsError(Exception):
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(LmsError):
    """Malformed input, caught before anything is persisted."""

    kind = "validation"

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFound(LmsError):
    kind = "not_found"


class ReferentialError(LmsError):
    """A reference inside the payload does not resolve (aborts the transaction)."""

    kind = "referential"


class Conflict(LmsError):
    kind = "conflict"


class AttemptLimitExceeded(Conflict):
    pass


class DuplicateResetRequest(Conflict):
    pass


class PermissionDenied(LmsError):
    kind = "forbidden"
