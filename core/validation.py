# core/validation.py
"""
Request validation for the public contact and newsletter endpoints

Each rule trims its field, checks it and returns the cleaned value. Every
failing field is collected and reported together in a single ValidationError.
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from markupsafe import escape

from core.errors import ValidationError

NAME_PATTERN = re.compile(r'^[a-zA-Z\s]+$')
GMAIL_DOMAINS = ('gmail.com', 'googlemail.com')

DEFAULT_SOURCE = 'website'


class FieldError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def _required(value: str, label: str) -> str:
    if not value:
        raise FieldError(f'{label} is required')
    return value


def _length(value: str, label: str, minimum: int, maximum: int) -> str:
    if not minimum <= len(value) <= maximum:
        raise FieldError(f'{label} must be between {minimum} and {maximum} characters')
    return value


def normalize_email(address: str) -> str:
    """
    Canonical form used as the subscriber key: lowercase, and for Gmail
    addresses without dots or +tags in the local part.
    """
    local, _, domain = address.lower().rpartition('@')
    if domain in GMAIL_DOMAINS:
        local = local.split('+', 1)[0].replace('.', '')
        domain = 'gmail.com'
    return f'{local}@{domain}'


def clean_name(data: Mapping[str, Any]) -> str:
    value = _required(_text(data, 'name'), 'Name')
    _length(value, 'Name', 2, 100)
    if not NAME_PATTERN.match(value):
        raise FieldError('Name can only contain letters and spaces')
    return value


def clean_email(data: Mapping[str, Any]) -> str:
    value = _required(_text(data, 'email'), 'Email')
    try:
        result = validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise FieldError('Please provide a valid email address')
    normalized = normalize_email(result.normalized)
    if normalized.startswith('@'):
        # Gmail address whose local part was only a +tag
        raise FieldError('Please provide a valid email address')
    return normalized


def clean_subject(data: Mapping[str, Any]) -> str:
    value = _required(_text(data, 'subject'), 'Subject')
    return _length(value, 'Subject', 5, 200)


def clean_message(data: Mapping[str, Any]) -> str:
    value = _required(_text(data, 'message'), 'Message')
    _length(value, 'Message', 10, 2000)
    return str(escape(value))


def clean_source(data: Mapping[str, Any]) -> str:
    if data.get('source') is None:
        return DEFAULT_SOURCE
    value = _text(data, 'source')
    if len(value) > 100:
        raise FieldError('Source must be less than 100 characters')
    return value or DEFAULT_SOURCE


Rule = Tuple[str, Callable[[Mapping[str, Any]], Any]]

CONTACT_FORM_RULES: List[Rule] = [
    ('name', clean_name),
    ('email', clean_email),
    ('subject', clean_subject),
    ('message', clean_message),
]

NEWSLETTER_SUBSCRIPTION_RULES: List[Rule] = [
    ('email', clean_email),
    ('source', clean_source),
]

UNSUBSCRIBE_RULES: List[Rule] = [
    ('email', clean_email),
]


def validate(data: Optional[Mapping[str, Any]], rules: List[Rule]) -> Dict[str, Any]:
    """Apply every rule, raising one ValidationError that lists all bad fields"""
    if not isinstance(data, Mapping):
        data = {}

    cleaned = {}
    errors = []
    for field, rule in rules:
        try:
            cleaned[field] = rule(data)
        except FieldError as e:
            errors.append({'field': field, 'message': e.message})

    if errors:
        raise ValidationError(errors)
    return cleaned


def validate_contact_form(data):
    return validate(data, CONTACT_FORM_RULES)


def validate_newsletter_subscription(data):
    return validate(data, NEWSLETTER_SUBSCRIPTION_RULES)


def validate_unsubscribe(data):
    return validate(data, UNSUBSCRIBE_RULES)
