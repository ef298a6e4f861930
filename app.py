# app.py
"""
Flask Application Factory for the WorkHub Pro marketing site API

Wires together:
- Contact form and newsletter blueprints
- SQLAlchemy persistence with per-request sessions
- SMTP mail gateway and transactional email templates
- Per-IP rate limiting, CORS and security headers
- JSON error handling, logging and health checks
"""

import logging
import logging.handlers
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import click
from flask import Flask, current_app, g, jsonify, request
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from api.contact import contact_bp
from api.newsletter import newsletter_bp
from config.settings import config as config_classes
from core.database_models import db
from core.errors import APIError, InternalError, RateLimitError
from core.mail_gateway import MailGateway, SMTPSettings
from core.persistence import MANAGED_TABLES, PersistenceGateway
from core.template_engine import EmailTemplateEngine
from middleware.rate_limiter import limiter, retry_after_seconds
from middleware.security import security_headers
from services.contact_workflow import ContactWorkflow
from services.newsletter_workflow import NewsletterWorkflow

migrate = Migrate()


def setup_logging(app: Flask) -> None:
    """
    Configure application logging

    - Console handler with a detailed format
    - Optional rotating file handler when LOG_FILE is set
    - Quieter third-party loggers outside debug mode
    """
    # Remove default Flask handlers to avoid duplicate logs
    app.logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(funcName)-15s:%(lineno)-4d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    log_file = app.config.get('LOG_FILE')
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        ))

    # Module loggers (api.*, core.*, services.*) propagate to the root logger
    root = logging.getLogger()
    root.setLevel(log_level)
    if not root.handlers:
        for handler in handlers:
            handler.setFormatter(detailed_formatter)
            handler.setLevel(log_level)
            root.addHandler(handler)

    app.logger.setLevel(log_level)

    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('aiosmtplib').setLevel(logging.WARNING)


def configure_database(app: Flask) -> PersistenceGateway:
    """
    Configure Flask-SQLAlchemy and return the persistence gateway

    Pool sizing applies to server databases only; SQLite picks its own pool.
    """
    database_url = app.config['SQLALCHEMY_DATABASE_URI']

    if not database_url.startswith('sqlite'):
        app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', {
            'pool_size': app.config.get('DB_POOL_SIZE', 10),
            'max_overflow': app.config.get('DB_MAX_OVERFLOW', 0),
            'pool_pre_ping': True,  # Verify connections before use
            'pool_recycle': 3600,   # Recycle connections every hour
        })

    db.init_app(app)
    migrate.init_app(app, db)

    if app.config.get('AUTO_CREATE_TABLES'):
        with app.app_context():
            db.create_all()
            app.logger.info("Database tables created/verified")

    app.logger.info(f"Database configured: {database_url.split('@')[-1] if '@' in database_url else database_url}")
    return PersistenceGateway(db)


def configure_mail(app: Flask, mail_gateway: Optional[MailGateway] = None) -> MailGateway:
    mailer = mail_gateway or MailGateway(SMTPSettings.from_config(app.config))
    app.logger.info(f"Mail gateway configured for {app.config.get('MAIL_SERVER')}:{app.config.get('MAIL_PORT')}")
    return mailer


def configure_security(app: Flask) -> None:
    """Configure proxy handling, rate limiting and CORS"""
    if app.config.get('PROXY_FIX'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    limiter.init_app(app)

    CORS(app,
         origins=app.config.get('CORS_ORIGINS', ['http://localhost:3000']),
         supports_credentials=True,
         methods=app.config.get('CORS_METHODS'),
         allow_headers=app.config.get('CORS_ALLOW_HEADERS'))

    app.logger.info("Security features configured")


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(contact_bp, url_prefix='/api/contact')
    app.register_blueprint(newsletter_bp, url_prefix='/api/newsletter')
    app.logger.info("Application blueprints registered")


def _error_body(error: APIError) -> Dict[str, Any]:
    body = error.to_dict()
    if error.status_code >= 500 and not _expose_details():
        body.pop('error', None)
    return body


def _expose_details() -> bool:
    return bool(current_app.config.get('EXPOSE_ERROR_DETAILS'))


def configure_error_handlers(app: Flask) -> None:
    """
    JSON error responses for every failure path
    """
    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.__class__.__name__} on {request.path}: {error.payload.get('error', error.message)}")
        else:
            app.logger.info(f"{error.__class__.__name__} on {request.path}: {error.message}")
        return jsonify(_error_body(error)), error.status_code

    @app.errorhandler(RateLimitExceeded)
    def rate_limit_exceeded(error):
        app.logger.warning(f"Rate limit exceeded for {request.remote_addr} on {request.path}")
        limit = getattr(error, 'limit', None)
        message = getattr(limit, 'error_message', None) or RateLimitError.default_message
        retry_after = retry_after_seconds(error)
        response = jsonify(RateLimitError(message, retry_after=retry_after).to_dict())
        response.status_code = 429
        response.headers['Retry-After'] = str(retry_after)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code == 404:
            message = 'API endpoint not found'
        else:
            message = error.description or error.name
        return jsonify({'success': False, 'message': message}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle unexpected exceptions"""
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        body = InternalError().to_dict()
        if _expose_details():
            body['error'] = str(error)
        return jsonify(body), 500


def configure_health_checks(app: Flask, store: PersistenceGateway) -> None:
    """
    Health check endpoints for monitoring and load balancing
    """
    @app.route('/health')
    @limiter.exempt
    def health_check():
        """Basic liveness probe"""
        return jsonify({
            'success': True,
            'message': f"{app.config.get('SITE_NAME', 'WorkHub Pro')} API is running",
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'uptime': round(time.monotonic() - app.config['START_TIME'], 3),
            'environment': app.config.get('ENV_NAME'),
            'version': app.config.get('VERSION', '1.0.0')
        })

    @app.route('/health/detailed')
    @limiter.exempt
    def detailed_health_check():
        """Database connectivity and schema presence"""
        health_status = {
            'success': True,
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'components': {}
        }

        connected, error = store.ping()
        if connected:
            tables = store.table_names()
            missing = [name for name in MANAGED_TABLES if name not in tables]
            health_status['components']['database'] = 'healthy'
            health_status['components']['tables'] = tables
            if missing:
                health_status['components']['missing_tables'] = missing
                health_status['status'] = 'unhealthy'
        else:
            health_status['components']['database'] = 'unhealthy'
            if app.config.get('EXPOSE_ERROR_DETAILS'):
                health_status['components']['database_error'] = error
            health_status['status'] = 'unhealthy'

        healthy = health_status['status'] == 'healthy'
        health_status['success'] = healthy
        return jsonify(health_status), 200 if healthy else 503


def configure_request_middleware(app: Flask) -> None:
    """
    Request/response hooks for logging and security headers
    """
    @app.before_request
    def before_request():
        g.start_time = time.monotonic()
        app.logger.debug(f"{request.method} {request.path} - IP: {request.remote_addr}")

    @app.after_request
    def after_request(response):
        response = security_headers(response)

        if hasattr(g, 'start_time'):
            duration = (time.monotonic() - g.start_time) * 1000
            if duration > app.config.get('SLOW_REQUEST_THRESHOLD', 1000):
                app.logger.warning(f"Slow request ({duration:.0f}ms): {request.method} {request.path}")

        app.logger.info(f"{request.method} {request.path} {response.status_code} - IP: {request.remote_addr}")
        return response


def register_cli(app: Flask) -> None:
    @app.cli.command('init-db')
    def init_db():
        """Create the contacts, newsletter_subscribers and email_logs tables."""
        db.create_all()
        click.echo(f"Tables ready: {', '.join(app.extensions['persistence'].table_names())}")

    @app.cli.command('verify-mail')
    def verify_mail():
        """Check that the SMTP server accepts a connection and login."""
        ok = app.extensions['mail_gateway'].verify()
        click.echo('Email server is ready' if ok else 'Email configuration failed')
        if not ok:
            raise SystemExit(1)


def create_app(config_name: Optional[str] = None,
               config_overrides: Optional[Dict[str, Any]] = None,
               mail_gateway: Optional[MailGateway] = None) -> Flask:
    """
    Flask application factory

    Args:
        config_name: 'development', 'testing' or 'production'
        config_overrides: values applied on top of the selected config class
        mail_gateway: replacement mail gateway (tests inject a fake one)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    app.config.from_object(config_classes.get(config_name, config_classes['default']))
    if config_overrides:
        app.config.update(config_overrides)

    app.config['ENV_NAME'] = config_name
    app.config['START_TIME'] = time.monotonic()

    setup_logging(app)
    app.logger.info(f"Starting WorkHub Pro API in {config_name} mode")

    # Process-scoped resources, shared by every request
    store = configure_database(app)
    mailer = configure_mail(app, mail_gateway)
    templates = EmailTemplateEngine.from_config(app.config)

    app.extensions['persistence'] = store
    app.extensions['mail_gateway'] = mailer
    app.extensions['email_templates'] = templates
    app.extensions['contact_workflow'] = ContactWorkflow(
        store, mailer, templates, admin_email=app.config.get('ADMIN_EMAIL'))
    app.extensions['newsletter_workflow'] = NewsletterWorkflow(store, mailer, templates)

    configure_security(app)
    register_blueprints(app)
    configure_error_handlers(app)
    configure_health_checks(app, store)
    configure_request_middleware(app)
    register_cli(app)

    app.logger.info("Flask application factory completed successfully")
    return app


if __name__ == '__main__':
    # Development server
    app = create_app('development')
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
