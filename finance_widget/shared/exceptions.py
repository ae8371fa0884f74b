# finance_widget/shared/exceptions.py
from fastapi import HTTPException, status


class BaseHTTPException(HTTPException):
    """Base for domain errors that map straight onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=message or self.message)

    def __str__(self) -> str:
        return str(self.detail)


# Embed request authentication
class InvalidSignatureError(BaseHTTPException):
    """Raised when an embed request fails HMAC verification."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid request signature"


# Xero authorization
class NotAuthorizedError(BaseHTTPException):
    """Raised when no refresh token is on record yet."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorised with Xero yet - visit /auth/connect"


class AuthExchangeError(BaseHTTPException):
    """Raised when the Xero token endpoint rejects an exchange."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Xero token exchange failed"


class NoTenantError(BaseHTTPException):
    """Raised when the credential grants access to no usable tenant."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "No Xero tenant found for this connection"


# Data access
class RecordNotFoundError(BaseHTTPException):
    """Raised when a display name matches no Xero contact."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "Contact not found"


class UpstreamFetchError(BaseHTTPException):
    """Raised when a Xero API call fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Error fetching data from Xero"


# Validation / Request Exceptions
class InvalidRequestError(BaseHTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request data"
