"""
Security Configuration for the WorkHub Pro API
"""

import os
import secrets


def _env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class SecurityConfig:
    """Security configuration settings"""

    # Session settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or secrets.token_urlsafe(32)

    # Admin API bearer token; admin routes are closed when unset
    ADMIN_API_TOKEN = os.environ.get('ADMIN_API_TOKEN')

    # Rate limiting (Flask-Limiter)
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_ENABLED = True
    RATELIMIT_STRATEGY = 'fixed-window'
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_APPLICATION = os.environ.get('RATELIMIT_APPLICATION', '100 per 15 minutes')
    CONTACT_RATE_LIMIT = '5 per 15 minutes'
    NEWSLETTER_RATE_LIMIT = '3 per hour'

    # CORS
    CORS_ORIGINS = _env_list('CORS_ORIGINS', [
        'http://localhost:3000',
        'http://localhost:5000',
        'http://127.0.0.1:5000',
        'http://localhost:5500',
        'http://127.0.0.1:5500',
    ])
    CORS_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With', 'X-Admin-Token']

    # Content Security Policy
    CSP_POLICY = {
        'default-src': "'self'",
        'script-src': "'self' 'unsafe-inline'",
        'style-src': "'self' 'unsafe-inline' https://fonts.googleapis.com https://cdnjs.cloudflare.com",
        'font-src': "'self' https://fonts.gstatic.com https://cdnjs.cloudflare.com",
        'img-src': "'self' data: https:",
        'connect-src': "'self' http://localhost:5000 http://127.0.0.1:5000",
        'object-src': "'none'",
        'base-uri': "'self'",
        'form-action': "'self'"
    }

    # Security headers
    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'X-XSS-Protection': '0',
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Permissions-Policy': 'camera=(), microphone=(), geolocation=()'
    }

    # Request bodies are small JSON documents
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB

    # Never leak raw exception text to callers unless explicitly enabled
    EXPOSE_ERROR_DETAILS = False
