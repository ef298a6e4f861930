# core/template_engine.py
"""
Email Template Engine for transactional messages
Renders the customer confirmation, newsletter welcome and admin notification
emails with Jinja2 autoescaping. Builders are pure functions of their input
plus the branding passed to the constructor.
"""

import html
import logging
import re
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, Mapping

import bleach
from jinja2 import Environment, StrictUndefined, select_autoescape
from markupsafe import Markup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedEmail:
    """Subject plus HTML and plain-text bodies of one message"""
    subject: str
    html: str
    text: str


_HEADER = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background: {{ header_background }}; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
        <h1 style="margin: 0; font-size: 28px;">{{ heading }}</h1>
        {% if tagline %}<p style="margin: 10px 0 0 0; opacity: 0.9;">{{ tagline }}</p>{% endif %}
    </div>
    <div style="background: #f8fafc; padding: 30px; border-radius: 0 0 10px 10px;">
"""

_FOOTER = """
    </div>
</div>
"""

CONTACT_CONFIRMATION_TEMPLATE = _HEADER + """
        <h2 style="color: #1e293b; margin-top: 0;">Hello {{ name }},</h2>
        <p style="color: #64748b; line-height: 1.6;">
            Thank you for contacting {{ site_name }}. We have received your message and will get back to you within 24 hours.
        </p>
        <div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #2563eb;">
            <h3 style="color: #1e293b; margin-top: 0;">Your Message:</h3>
            <p style="color: #64748b; margin: 0;"><strong>Subject:</strong> {{ subject }}</p>
            <p style="color: #64748b; margin: 10px 0 0 0;"><strong>Message:</strong></p>
            <p style="color: #64748b; margin: 5px 0 0 0; white-space: pre-wrap;">{{ message }}</p>
        </div>
        <p style="color: #64748b; line-height: 1.6;">
            Our team is reviewing your inquiry and will respond with detailed information about our services and how we can help your business grow.
        </p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{{ site_url }}" style="background: #2563eb; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 600;">Visit Our Website</a>
        </div>
        <hr style="border: none; border-top: 1px solid #e2e8f0; margin: 30px 0;">
        <p style="color: #94a3b8; font-size: 14px; text-align: center; margin: 0;">
            This is an automated message. Please do not reply to this email.<br>
            {{ site_name }} | {{ company_address }} | {{ company_phone }}
        </p>
""" + _FOOTER

NEWSLETTER_WELCOME_TEMPLATE = _HEADER + """
        <h2 style="color: #1e293b; margin-top: 0;">Welcome aboard!</h2>
        <p style="color: #64748b; line-height: 1.6;">
            Thank you for subscribing to our newsletter! You'll now receive the latest updates about our services, industry insights, and exclusive offers.
        </p>
        <div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0;">
            <h3 style="color: #1e293b; margin-top: 0;">What to expect:</h3>
            <ul style="color: #64748b; padding-left: 20px;">
                <li>Weekly industry insights and trends</li>
                <li>Exclusive offers and promotions</li>
                <li>New product announcements</li>
                <li>Tips and best practices for business growth</li>
            </ul>
        </div>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{{ site_url }}" style="background: #2563eb; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 600;">Explore Our Services</a>
        </div>
        <hr style="border: none; border-top: 1px solid #e2e8f0; margin: 30px 0;">
        <p style="color: #94a3b8; font-size: 14px; text-align: center; margin: 0;">
            You can unsubscribe at any time by clicking the link below.<br>
            <a href="{{ unsubscribe_url }}" style="color: #2563eb;">Unsubscribe</a> |
            {{ site_name }} | {{ company_address }}
        </p>
""" + _FOOTER

ADMIN_NOTIFICATION_TEMPLATE = _HEADER + """
        <h2 style="color: #1e293b; margin-top: 0;">Contact Details:</h2>
        <div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0;">
            <p style="color: #64748b; margin: 5px 0;"><strong>Name:</strong> {{ name }}</p>
            <p style="color: #64748b; margin: 5px 0;"><strong>Email:</strong> {{ email }}</p>
            <p style="color: #64748b; margin: 5px 0;"><strong>Subject:</strong> {{ subject }}</p>
            {% if contact_id %}<p style="color: #64748b; margin: 5px 0;"><strong>Reference:</strong> #{{ contact_id }}</p>{% endif %}
            <p style="color: #64748b; margin: 10px 0 0 0;"><strong>Message:</strong></p>
            <p style="color: #64748b; margin: 5px 0 0 0; white-space: pre-wrap; background: #f1f5f9; padding: 15px; border-radius: 4px;">{{ message }}</p>
        </div>
        <p style="color: #64748b; line-height: 1.6;">
            Please respond to this inquiry as soon as possible. The customer is expecting a response within 24 hours.
        </p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="mailto:{{ email }}?subject={{ ('Re: ' ~ subject) | url_encode }}" style="background: #2563eb; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 600;">Reply to Customer</a>
        </div>
""" + _FOOTER


def html_to_text(html_content: str) -> str:
    """Plain-text alternative: strip every tag, unescape, collapse blank runs"""
    stripped = bleach.clean(html_content, tags=set(), strip=True, strip_comments=True)
    text = html.unescape(stripped)
    lines = [line.strip() for line in text.splitlines()]
    text = '\n'.join(lines)
    return re.sub(r'\n{3,}', '\n\n', text).strip()


class EmailTemplateEngine:
    """Builds the three transactional emails"""

    BRAND_GRADIENT = 'linear-gradient(135deg, #2563eb, #1d4ed8)'
    ALERT_RED = '#dc2626'

    def __init__(self,
                 site_name: str = 'WorkHub Pro',
                 site_url: str = 'https://workhubpro.com',
                 company_address: str = '123 Business Street, City, State 12345',
                 company_phone: str = '+1 (555) 123-4567'):
        self.branding = {
            'site_name': site_name,
            'site_url': site_url.rstrip('/'),
            'company_address': company_address,
            'company_phone': company_phone,
        }

        self.env = Environment(
            autoescape=select_autoescape(['html', 'xml']),
            undefined=StrictUndefined,  # Fail on undefined variables
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters['url_encode'] = lambda value: urllib.parse.quote(str(value), safe='')

        self._templates = {
            'contact_confirmation': self.env.from_string(CONTACT_CONFIRMATION_TEMPLATE),
            'newsletter_welcome': self.env.from_string(NEWSLETTER_WELCOME_TEMPLATE),
            'admin_notification': self.env.from_string(ADMIN_NOTIFICATION_TEMPLATE),
        }

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'EmailTemplateEngine':
        return cls(
            site_name=config.get('SITE_NAME', 'WorkHub Pro'),
            site_url=config.get('SITE_URL', 'https://workhubpro.com'),
            company_address=config.get('COMPANY_ADDRESS', ''),
            company_phone=config.get('COMPANY_PHONE', ''),
        )

    def _render(self, name: str, subject: str, variables: Dict[str, Any]) -> RenderedEmail:
        context = dict(self.branding)
        context.update(variables)
        html_body = self._templates[name].render(**context)
        logger.debug(f"Rendered {name} template ({len(html_body)} chars)")
        return RenderedEmail(subject=subject, html=html_body, text=html_to_text(html_body))

    def contact_confirmation(self, contact: Mapping[str, Any]) -> RenderedEmail:
        """
        Confirmation sent to the person who submitted the contact form.
        ``contact['message']`` is expected to be HTML-escaped already.
        """
        return self._render(
            'contact_confirmation',
            f"Thank you for contacting {self.branding['site_name']} - {contact['subject']}",
            {
                'header_background': self.BRAND_GRADIENT,
                'heading': self.branding['site_name'],
                'tagline': 'Thank you for reaching out!',
                'name': contact['name'],
                'subject': contact['subject'],
                'message': Markup(contact['message']),
            }
        )

    def newsletter_welcome(self, subscriber: Mapping[str, Any]) -> RenderedEmail:
        return self._render(
            'newsletter_welcome',
            f"Welcome to {self.branding['site_name']} Newsletter!",
            {
                'header_background': self.BRAND_GRADIENT,
                'heading': self.branding['site_name'],
                'tagline': 'Welcome to our community!',
                'unsubscribe_url': self.unsubscribe_url(subscriber['email']),
            }
        )

    def admin_notification(self, contact: Mapping[str, Any]) -> RenderedEmail:
        return self._render(
            'admin_notification',
            f"New Contact Form Submission - {contact['subject']}",
            {
                'header_background': self.ALERT_RED,
                'heading': 'New Contact Form Submission',
                'tagline': None,
                'contact_id': contact.get('id'),
                'name': contact['name'],
                'email': contact['email'],
                'subject': contact['subject'],
                'message': Markup(contact['message']),
            }
        )

    def unsubscribe_url(self, email: str) -> str:
        query = urllib.parse.urlencode({'email': email})
        return f"{self.branding['site_url']}/unsubscribe?{query}"
