# core/errors.py
"""
API error taxonomy

Every error raised on purpose by the request path derives from APIError and
carries the HTTP status and the JSON payload the caller should receive.
Anything else that escapes a view is treated as an internal error by the
handlers registered in app.py.
"""

from typing import Any, Dict, List, Optional


class APIError(Exception):
    """Base class for errors reported to API callers"""
    status_code = 500
    default_message = 'An unexpected error occurred'

    def __init__(self, message: Optional[str] = None, payload: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.payload = payload or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {'success': False, 'message': self.message}
        body.update(self.payload)
        return body


class ValidationError(APIError):
    """Request data failed one or more field rules"""
    status_code = 400
    default_message = 'Validation failed'

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message, {'errors': errors})


class NotFoundError(APIError):
    status_code = 404
    default_message = 'Resource not found'


class ConflictError(APIError):
    """Request conflicts with the current state of a record"""
    status_code = 400
    default_message = 'Request conflicts with the current state'


class RateLimitError(APIError):
    status_code = 429
    default_message = 'Too many requests from this IP, please try again later.'

    def __init__(self, message: Optional[str] = None, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(message, {'retryAfter': retry_after})


class InternalError(APIError):
    """Generic failure; details are logged server-side only"""
    status_code = 500
    default_message = 'An error occurred while processing your request. Please try again later.'
