from __future__ import annotations

from typing import Dict, Optional


class ApiError(Exception):
    """Base for errors that map straight onto an HTTP status."""

    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.detail = detail or self.default_detail
        self.headers = headers
        super().__init__(self.detail)


class NotFound(ApiError):
    status_code = 404
    default_detail = "Not found"


class Inactive(NotFound):
    default_detail = "Test is not active"


class Unauthenticated(ApiError):
    status_code = 401
    default_detail = "Not authorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    status_code = 403
    default_detail = "Forbidden"


class ValidationFailed(ApiError):
    status_code = 400
    default_detail = "Invalid request"


class Unavailable(ApiError):
    status_code = 500
    default_detail = "Storage unavailable"
