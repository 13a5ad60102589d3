"""Error taxonomy for the record store.

Every failure a caller can observe is one of a closed set of error types.
Each carries a stable ``code`` for result mapping and a ``context`` dict with
the structured details (path, name, limit) used for display and assertions.

    ShqlError
    ├── ValidationError          malformed or out-of-range input
    ├── NotFoundError            missing database/table/row/snapshot
    │   └── EmptyTableError      table exists but holds no records
    ├── DuplicateError           name or key collision
    ├── SizeLimitExceededError   binary payload over the limit
    ├── PathEscapeError          derived path leaves its database root
    ├── IOFailureError           filesystem operation failed
    └── InvariantViolationError  state may be inconsistent, needs an operator
"""

from __future__ import annotations

from typing import Any


class ShqlError(Exception):
    """Base class for all record store errors."""

    code = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for result payloads."""
        return {"code": self.code, "message": self.message, "context": dict(self.context)}


class ValidationError(ShqlError):
    """Raised for malformed input: bad type, format, length or reserved word."""

    code = "validation_error"


class NotFoundError(ShqlError):
    """Raised when a database, table, row or snapshot does not exist."""

    code = "not_found"


class EmptyTableError(NotFoundError):
    """Raised when a row operation targets a table without records."""

    code = "empty_table"


class DuplicateError(ShqlError):
    """Raised when a name or primary key collides with an existing one."""

    code = "duplicate"


class SizeLimitExceededError(ShqlError):
    """Raised when a binary payload is larger than the configured limit."""

    code = "size_limit_exceeded"


class PathEscapeError(ShqlError):
    """Raised when a path derived from a user-supplied name leaves its root."""

    code = "path_escape"


class IOFailureError(ShqlError):
    """Raised when a disk write, rename or copy fails."""

    code = "io_failure"


class InvariantViolationError(ShqlError):
    """Raised when on-disk state may have diverged and needs manual repair.

    The context always names the affected path so an operator can act on it.
    """

    code = "invariant_violation"
