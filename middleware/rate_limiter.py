# middleware/rate_limiter.py
"""
Per-IP rate limiting

Counters live in the Flask-Limiter storage (in-memory unless
RATELIMIT_STORAGE_URI says otherwise) and reset with the process.
"""

from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

CONTACT_LIMIT_MESSAGE = 'Too many contact form submissions. Please wait 15 minutes before trying again.'
NEWSLETTER_LIMIT_MESSAGE = 'Too many newsletter subscription attempts. Please wait 1 hour before trying again.'

# Application-wide limit comes from RATELIMIT_APPLICATION
limiter = Limiter(key_func=get_remote_address)


def contact_form_limit():
    return current_app.config.get('CONTACT_RATE_LIMIT', '5 per 15 minutes')


def newsletter_limit():
    return current_app.config.get('NEWSLETTER_RATE_LIMIT', '3 per hour')


def retry_after_seconds(error, default=60):
    """Window length of the limit that was hit"""
    # RateLimitExceeded raised outside a limiter check carries no limit
    limit = getattr(error, 'limit', None)
    item = getattr(limit, 'limit', None)
    if item is None:
        return default
    return int(item.get_expiry())
