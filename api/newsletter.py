# api/newsletter.py
"""
Newsletter subscription API
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from core.database_models import SUBSCRIBER_STATUSES
from core.validation import (
    normalize_email, validate_newsletter_subscription, validate_unsubscribe
)
from middleware.rate_limiter import NEWSLETTER_LIMIT_MESSAGE, limiter, newsletter_limit
from middleware.security import require_admin
from api.pagination import pagination_args

newsletter_bp = Blueprint('newsletter', __name__)
logger = logging.getLogger(__name__)


def _workflow():
    return current_app.extensions['newsletter_workflow']


def _outcome_response(outcome):
    body = {'success': True, 'message': outcome.message}
    if outcome.data is not None:
        body['data'] = outcome.data
    return jsonify(body), outcome.status_code


@newsletter_bp.route('/subscribe', methods=['POST'])
@limiter.limit(newsletter_limit, error_message=NEWSLETTER_LIMIT_MESSAGE)
def subscribe():
    form = validate_newsletter_subscription(request.get_json(silent=True))
    outcome = _workflow().subscribe(
        form['email'],
        source=form['source'],
        ip_address=request.remote_addr,
        user_agent=request.headers.get('User-Agent'),
    )
    return _outcome_response(outcome)


@newsletter_bp.route('/unsubscribe', methods=['POST'])
def unsubscribe():
    form = validate_unsubscribe(request.get_json(silent=True))
    return _outcome_response(_workflow().unsubscribe(form['email']))


@newsletter_bp.route('/admin/subscribers', methods=['GET'])
@require_admin
def list_subscribers():
    page, limit, status = pagination_args(SUBSCRIBER_STATUSES)
    result = current_app.extensions['persistence'].list_subscribers(page, limit, status)

    return jsonify({
        'success': True,
        'data': {
            'subscribers': [s.to_dict(include_client=False) for s in result.items],
            'pagination': result.pagination('totalSubscribers')
        }
    })


@newsletter_bp.route('/admin/subscribers/<path:email>', methods=['GET'])
@require_admin
def get_subscriber(email):
    subscriber = _workflow().get(normalize_email(email.strip()))
    return jsonify({'success': True, 'data': subscriber.to_dict()})


@newsletter_bp.route('/admin/stats', methods=['GET'])
@require_admin
def newsletter_stats():
    stats = current_app.extensions['persistence'].subscriber_stats()
    return jsonify({'success': True, 'data': stats})
