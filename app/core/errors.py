"""
Domain errors

Raised by the services layer and rendered by the exception handlers registered in
app.main. Every error carries a human readable message and the HTTP status code
it maps to.

Error                Status
-------------------  ------
ValidationError      400
BoundaryError        400
InvalidDateError     400
NotFoundError        404
"""

from fastapi import status


class TaskManagerError(Exception):
    """Base class for errors the API reports to callers as-is"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskManagerError):
    """Malformed or insufficient input (empty title, empty update payload, ...)"""


class NotFoundError(TaskManagerError):
    """Referenced task or project does not exist (or is not visible to the caller)"""

    status_code = status.HTTP_404_NOT_FOUND


class BoundaryError(TaskManagerError):
    """Priority ladder exceeded at either end"""


class InvalidDateError(TaskManagerError):
    """Date input that cannot be parsed into a calendar day"""
