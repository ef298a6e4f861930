# api/contact.py
"""
Contact form API
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from core.database_models import CONTACT_STATUSES
from core.validation import validate_contact_form
from middleware.rate_limiter import CONTACT_LIMIT_MESSAGE, contact_form_limit, limiter
from middleware.security import require_admin
from api.pagination import pagination_args

contact_bp = Blueprint('contact', __name__)
logger = logging.getLogger(__name__)


def _workflow():
    return current_app.extensions['contact_workflow']


@contact_bp.route('/submit', methods=['POST'])
@limiter.limit(contact_form_limit, error_message=CONTACT_LIMIT_MESSAGE)
def submit_contact_form():
    """Store a contact form submission and send the confirmation email"""
    form = validate_contact_form(request.get_json(silent=True))

    submission = _workflow().submit(
        form,
        ip_address=request.remote_addr,
        user_agent=request.headers.get('User-Agent'),
    )

    return jsonify({
        'success': True,
        'message': 'Thank you for your message! We will get back to you within 24 hours.',
        'data': {
            'contactId': submission.contact_id,
            'emailSent': submission.email_sent
        }
    }), 201


@contact_bp.route('/admin/contacts', methods=['GET'])
@require_admin
def list_contacts():
    page, limit, status = pagination_args(CONTACT_STATUSES)
    result = current_app.extensions['persistence'].list_contacts(page, limit, status)

    return jsonify({
        'success': True,
        'data': {
            'contacts': [c.to_dict(include_message=False) for c in result.items],
            'pagination': result.pagination('totalContacts')
        }
    })


@contact_bp.route('/admin/contacts/<int:contact_id>', methods=['GET'])
@require_admin
def get_contact(contact_id):
    contact = _workflow().get(contact_id)
    return jsonify({'success': True, 'data': contact.to_dict()})


@contact_bp.route('/admin/contacts/<int:contact_id>/status', methods=['PATCH'])
@require_admin
def update_contact_status(contact_id):
    data = request.get_json(silent=True)
    status = data.get('status') if isinstance(data, dict) else None
    contact = _workflow().update_status(contact_id, status)
    return jsonify({
        'success': True,
        'message': 'Contact status updated successfully',
        'data': contact.to_dict(include_message=False)
    })


@contact_bp.route('/admin/contacts/<int:contact_id>', methods=['DELETE'])
@require_admin
def delete_contact(contact_id):
    _workflow().delete(contact_id)
    return jsonify({'success': True, 'message': 'Contact deleted successfully'})
