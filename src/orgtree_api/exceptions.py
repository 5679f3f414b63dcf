"""Hierarchy error taxonomy.

Services raise these; the HTTP layer renders them as ``{"error": message}``
with the attached status code. Messages are meant for the caller, so they
must never contain storage internals.
"""


class HierarchyError(Exception):
    """Base exception for all hierarchy errors.

    Attributes:
        message: Human-readable reason, safe to return to the caller
        status_code: HTTP status code the error maps to
    """

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(HierarchyError):
    """Caller input is malformed or missing (empty name, unknown org type)."""

    status_code = 400


class NotFoundError(HierarchyError):
    """A referenced organization does not exist."""

    status_code = 404


class PermissionDeniedError(HierarchyError):
    """The actor lacks the role required for the operation."""

    status_code = 403


class PolicyViolation(HierarchyError):
    """Well-formed request rejected by a structural business rule.

    Raised when:
    - the parent does not allow child organizations
    - the maximum hierarchy depth would be exceeded
    - a move would create a cycle
    - a node with children is deleted
    """

    status_code = 403


class ConflictError(HierarchyError):
    """A slug or domain is already taken."""

    status_code = 409


class UnexpectedError(HierarchyError):
    """Storage or infrastructure failure."""

    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
