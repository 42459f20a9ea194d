from fastapi import HTTPException, status


class APIError(HTTPException):
    """HTTP error carrying a stable, machine readable error code."""

    error_code = "Error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request failed"

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


# Authentication errors
class Unauthenticated(APIError):
    error_code = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "No token provided"

    def __init__(self, detail: str = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})

class InvalidCredential(APIError):
    error_code = "InvalidCredential"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid or expired token"

    def __init__(self, detail: str = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})

class Forbidden(APIError):
    error_code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not enough permissions"


# Validation errors
class ValidationFailed(APIError):
    error_code = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"

class InvalidSlot(APIError):
    error_code = "InvalidSlot"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Requested time is not an offered appointment slot"


# Lookup and conflict errors
class NotFound(APIError):
    error_code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"

class SlotAlreadyBooked(APIError):
    error_code = "SlotAlreadyBooked"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The requested slot is already booked"


class RateLimited(APIError):
    error_code = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests. Please try again later."
