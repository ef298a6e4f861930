# middleware/security.py
"""
Security Middleware for Request Processing
"""

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request

logger = logging.getLogger(__name__)


def security_headers(response):
    """Add security headers to all responses"""
    config = current_app.config
    for name, value in config.get('SECURITY_HEADERS', {}).items():
        response.headers.setdefault(name, value)

    csp = config.get('CSP_POLICY')
    if csp:
        response.headers.setdefault(
            'Content-Security-Policy',
            '; '.join(f'{directive} {sources}' for directive, sources in csp.items())
        )
    return response


def _presented_token():
    auth_header = request.headers.get('Authorization', '')
    scheme, _, token = auth_header.partition(' ')
    if scheme.lower() == 'bearer' and token:
        return token.strip()
    return request.headers.get('X-Admin-Token')


def require_admin(f):
    """Decorator to require the admin API token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ADMIN_API_TOKEN')
        if not expected:
            logger.warning(f"Admin endpoint {request.endpoint} called but ADMIN_API_TOKEN is not set")
            return jsonify({'success': False, 'message': 'Admin API is not configured'}), 403

        token = _presented_token()
        if not token or not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning(f"Unauthorized admin access attempt on {request.endpoint} "
                           f"from {request.remote_addr}")
            return jsonify({'success': False, 'message': 'Authentication required'}), 401

        return f(*args, **kwargs)
    return decorated_function
