from __future__ import annotations


class ClinicError(Exception):
    """
    Business error raised by the services.

    The API boundary turns it into an envelope carrying `status_code`
    and the message.
    """

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """A required parameter is missing or malformed."""


class NotFoundError(ClinicError):
    """A referenced entity does not exist (kept at 400, like validation)."""


class ConflictError(ClinicError):
    """The room or the dentist is already booked at the requested time."""
