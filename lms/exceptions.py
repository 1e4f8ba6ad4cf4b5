"""
Domain exceptions raised by services and rendered by the API layer
"""
from typing import Optional


class LMSError(Exception):
    """Base class for errors that map onto an HTTP status"""

    status_code = 500
    code = "server_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotFound(LMSError):
    status_code = 404
    code = "not_found"


class Forbidden(LMSError):
    status_code = 403
    code = "forbidden"


class ValidationError(LMSError):
    status_code = 422
    code = "validation_error"


class ServerError(LMSError):
    status_code = 500
    code = "server_error"


class OracleError(Exception):
    """The grading oracle failed or broke its response contract"""
