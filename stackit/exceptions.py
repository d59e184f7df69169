"""
Application exception hierarchy.

Services raise these; the handlers registered in ``stackit.main`` turn
them into ``{"message": ...}`` JSON responses::

    StackItError (base)
    ├── ValidationError      → 400
    ├── SelfActionError      → 400
    ├── MismatchError        → 400
    ├── AuthorizationError   → 403
    ├── NotFoundError        → 404
    └── StoreError           → 500 (generic message, details logged only)
"""
from typing import Any, Dict, Optional


class StackItError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  client-facing description.
        context:  debug info for the server log, never returned to the client.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StackItError):
    """Missing or malformed client input."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class SelfActionError(StackItError):
    """A user tried to act on their own content (e.g. self-vote)."""

    status_code = 400

    def __init__(self, message: str = "You cannot perform this action on your own content"):
        super().__init__(message=message)


class MismatchError(StackItError):
    """Two records that must be related are not (answer of another question)."""

    status_code = 400

    def __init__(self, message: str = "Answer does not belong to this question"):
        super().__init__(message=message)


class AuthorizationError(StackItError):
    """The caller is not the owner, or lacks the required role."""

    status_code = 403

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message=message)


class NotFoundError(StackItError):
    """An id did not resolve."""

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
    ):
        ctx: Dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
        self.resource = resource


class StoreError(StackItError):
    """
    The database rejected or failed a write.

    The message shown to clients is always the generic one; the
    underlying driver error travels in ``context`` for the log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
