"""Custom HTTP exceptions for the TileHub API.

Each exception maps to a specific HTTP status code and error code.
Global exception handlers in api/main.py convert these to JSON responses.
"""


class TileHubError(Exception):
    """Base exception for all TileHub errors."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: str | None = None,
        detail: dict[str, object] | None = None,
        errors: dict[str, list[str]] | None = None,
    ):
        self.message = message or self.__class__.message
        self.detail = detail
        self.errors = errors
        super().__init__(self.message)


class UnauthorisedError(TileHubError):
    """Rendered as a bare 401 with no body."""

    status_code = 401
    code = "unauthorised"
    message = "Authentication required."


class AccountValidationError(TileHubError):
    """One or more fields of an account update failed validation.

    ``errors`` maps each failing field to its list of reasons.
    """

    status_code = 400
    code = "invalid_account_details"
    message = "Error updating your account details"
