"""
Chat errors - raised by the core and mapped to HTTP status codes by the app.
"""


class ChatError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    """Malformed or missing fields. Carries every violated constraint."""

    status_code = 422

    def __init__(self, errors: list[str]):
        super().__init__('; '.join(errors) or 'invalid payload')
        self.errors = list(errors)


class Conflict(ChatError):
    status_code = 409


class NotFound(ChatError):
    status_code = 404


class UnknownSender(ChatError):
    status_code = 422


class InvalidLimit(ChatError):
    status_code = 422


class StorageError(ChatError):
    status_code = 500
