"""
Domain error taxonomy.

Services raise these; the handler registered in ``app.main`` turns them into
``{"error": {"code", "message", "status"}}`` responses with a localized
message. Nothing here is retried automatically.
"""

from __future__ import annotations

from typing import Any


class QuizoryError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 400
    default_code: str = "bad_request"

    def __init__(self, code: str | None = None, **params: Any):
        self.code = code or self.default_code
        self.params = params
        super().__init__(self.code)


class AuthenticationError(QuizoryError):
    status_code = 401
    default_code = "authentication_required"


class AuthorizationError(QuizoryError):
    """Caller's role is too low, or the caller acts on another organization."""

    status_code = 403
    default_code = "forbidden"


class NotFoundError(QuizoryError):
    """Entity missing or outside the caller's tenant."""

    status_code = 404
    default_code = "not_found"


class PolicyViolation(QuizoryError):
    """A subscription gate failed or a plan transition is not allowed."""

    status_code = 409
    default_code = "policy_violation"


class ConflictError(QuizoryError):
    status_code = 409
    default_code = "conflict"
