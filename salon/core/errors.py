# salon/core/errors.py


class BookingError(Exception):
    """Base for every domain failure the API surfaces as a 4xx response."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class AuthorizationError(BookingError):
    status_code = 403


class InvalidStatusError(BookingError):
    status_code = 422


class InvalidTransitionError(BookingError):
    status_code = 409


class AlreadyPastError(BookingError):
    status_code = 409


class BookingValidationError(BookingError):
    status_code = 422


class PersistenceError(Exception):
    """Store failure (connection loss, unexpected constraint). Not a domain error."""
