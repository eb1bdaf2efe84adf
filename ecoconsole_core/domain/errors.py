"""Domain exceptions for EcoConsole.

Services raise these; the API layer maps each one to an HTTP status code
(see ``ecoconsole_core.main``).
"""


class DomainError(Exception):
    """Base exception for domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(DomainError):
    """Duplicate submission."""

    status_code = 400


class StateError(DomainError):
    """Illegal state transition or not a verification candidate."""

    status_code = 400


class NotFoundError(DomainError):
    """Missing row or ownership mismatch."""

    status_code = 404


class AuthError(DomainError):
    """Missing or invalid session or admin secret."""

    status_code = 401


class UpstreamError(DomainError):
    """An external service (identity provider, AI API) failed.

    The message is safe to return to callers; the underlying cause is kept
    on ``__cause__`` and logged server-side.
    """

    status_code = 500
