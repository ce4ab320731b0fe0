from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class PortalError(Exception):
    """Base class for every failure the customer identity core reports."""

    code = "portal_error"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(PortalError):
    code = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class ChallengeNotFound(PortalError):
    code = "challenge_not_found"
    status_code = 404
    default_message = "No active code for this email. Please request a new one."


class ChallengeExpired(PortalError):
    code = "challenge_expired"
    status_code = 410
    default_message = "This code has expired. Please request a new one."


class ChallengeMismatch(PortalError):
    code = "challenge_mismatch"
    status_code = 401
    default_message = "The code you entered is incorrect"


class TooManyRequests(PortalError):
    code = "too_many_requests"
    status_code = 429
    default_message = "Too many code requests. Please try again later."


class DeliveryFailed(PortalError):
    code = "delivery_failed"
    status_code = 503
    default_message = "We could not send your code. Please try again."


class ExchangeFailed(PortalError):
    code = "exchange_failed"
    status_code = 401
    default_message = "Authentication failed"


class NotAMember(PortalError):
    code = "not_a_member"
    status_code = 403
    default_message = "You are not a customer of this company"


class NotAuthenticated(PortalError):
    code = "not_authenticated"
    status_code = 401
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, return_to: Optional[str] = None, login_path: str = "/login"):
        super().__init__(message)
        self.return_to = return_to
        self.login_path = login_path


def create_error_response(error_message: str, code: Optional[str] = None, data: Optional[dict] = None) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": data,
        "error": error_message,
        "code": code,
    }


def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None,
        "code": None,
    }


async def portal_exception_handler(request: Request, exc: PortalError) -> JSONResponse:
    data = None
    if isinstance(exc, NotAuthenticated):
        data = {"redirect_to": exc.login_path, "return_to": exc.return_to}
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.code, data),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", NotAuthenticated.code),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail)),
    )
