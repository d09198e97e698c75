# server/core/errors.py


class LibraryError(Exception):
    """
    Base for errors rendered to the client as {"message": ...}.
    """
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LibraryError):
    status_code = 400


class ConflictError(ValidationError):
    pass


class AuthError(LibraryError):
    status_code = 401


class NotFoundError(LibraryError):
    status_code = 404


class DownstreamError(LibraryError):
    """Database or image host failure; the message is passed through as-is."""
    status_code = 400
