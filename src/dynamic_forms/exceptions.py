"""
Domain exceptions mapped to HTTP statuses at the router boundary.
"""


class FormsAPIError(Exception):
    """Base class for errors rendered into the response envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SubmissionNotFoundError(FormsAPIError):
    """Raised when an identifier is malformed or matches no submission."""

    status_code = 404

    def __init__(self, message: str = "Form not found"):
        super().__init__(message)


class BadRequestError(FormsAPIError):
    """Raised for missing parameters or malformed payloads."""

    status_code = 400


class StorageConnectionError(FormsAPIError):
    """Raised when the database cannot be reached."""

    status_code = 500

    def __init__(self, message: str = "Database connection error"):
        super().__init__(message)
