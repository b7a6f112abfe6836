"""
Typed failures of the quiz services.

Every caller-facing operation either returns its payload or raises one of
these; routers map them onto HTTP status codes via `status_code`.
"""


class QuizServiceError(Exception):
    """Base class. `detail` is safe to show to API callers."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InputError(QuizServiceError):
    """Missing required argument or malformed submission."""
    status_code = 400


class NotFoundError(QuizServiceError):
    status_code = 404


class AuthorizationError(QuizServiceError):
    """Caller is not allowed to act on this quiz."""
    status_code = 403


class GenerationError(QuizServiceError):
    """Provider call failed or returned nothing usable. No transaction was opened."""
    status_code = 502


class ValidationError(QuizServiceError):
    """Provider output normalized to zero usable questions."""
    status_code = 502


class PersistenceError(QuizServiceError):
    """Storage failure inside a write transaction; the transaction was rolled back."""
    status_code = 500
