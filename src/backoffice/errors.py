"""Error taxonomy: validation failures vs. everything unexpected."""

from typing import Dict, List, Mapping, Sequence


class BackofficeError(Exception):
    """Base class for errors surfaced to callers."""

    status_code = 500
    message = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationFailed(BackofficeError):
    """Input rejected before any write happened.

    `errors` maps a field name (dotted for nested fields) to its messages.
    """

    status_code = 422
    message = "The given data was invalid."

    def __init__(self, errors: Mapping[str, Sequence[str]], message: str | None = None):
        super().__init__(message)
        self.errors: Dict[str, List[str]] = {field: list(msgs) for field, msgs in errors.items()}

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls({field: [message]})


class NotFound(BackofficeError):
    status_code = 404
    message = "Record not found."


class Forbidden(BackofficeError):
    status_code = 403
    message = "This action is unauthorized."


class Unauthenticated(BackofficeError):
    status_code = 401
    message = "Unauthenticated."


class WriteFailed(BackofficeError):
    """A multi-step write failed and was rolled back."""

    status_code = 500
    message = "The operation failed and no changes were saved."
