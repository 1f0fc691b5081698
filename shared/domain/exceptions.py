"""
Domain Error Taxonomy

Every rule violation raised by a domain or application service derives
from DomainError and belongs to exactly one kind:

- NotFoundError: a referenced aggregate does not exist
- DomainValidationError: malformed input, nothing was changed
- ConflictError: the request is well formed but clashes with current state
  (occupied dates, wrong lifecycle status, double payment)

The API layer turns the kind into an HTTP status; the message, the stable
error code and the offending field travel to the client unchanged.
"""

from typing import Any


class DomainError(Exception):
    """Base class for labelled domain failures"""

    code = 'domain_error'

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.field = field
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {'detail': self.message, 'code': self.code}
        if self.field:
            payload['field'] = self.field
        if self.details:
            payload['details'] = self.details
        return payload


class NotFoundError(DomainError):
    code = 'not_found'


class DomainValidationError(DomainError, ValueError):
    code = 'invalid'


class ConflictError(DomainError):
    code = 'conflict'
