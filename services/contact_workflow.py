# services/contact_workflow.py
"""
Contact form submission workflow

insert contact -> send confirmation -> log it -> notify admin -> log it

The contact insert is the only step on the critical path. No transaction
spans the email steps, so a stored contact stays stored when mail fails.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.database_models import CONTACT_STATUSES
from core.errors import InternalError, NotFoundError, ValidationError
from core.mail_gateway import MailGateway, SendResult
from core.persistence import PersistenceGateway
from core.template_engine import EmailTemplateEngine, RenderedEmail

logger = logging.getLogger(__name__)


@dataclass
class ContactSubmission:
    contact_id: int
    email_sent: bool


class ContactWorkflow:

    def __init__(self, store: PersistenceGateway, mailer: MailGateway,
                 templates: EmailTemplateEngine, admin_email: Optional[str] = None):
        self.store = store
        self.mailer = mailer
        self.templates = templates
        self.admin_email = admin_email

    def submit(self, form: Dict[str, str], ip_address: Optional[str] = None,
               user_agent: Optional[str] = None) -> ContactSubmission:
        """
        Run the workflow for an already validated form.

        Args:
            form: cleaned ``name``, ``email``, ``subject`` and ``message``
            ip_address: client address, used for logging only
            user_agent: client user agent, used for logging only

        Returns:
            ContactSubmission with the new id and the confirmation outcome
        """
        logger.info(f"Contact form submission from {form['email']} ({ip_address})")

        try:
            contact = self.store.create_contact(
                name=form['name'],
                email=form['email'],
                subject=form['subject'],
                message=form['message'],
            )
        except Exception as e:
            logger.error(f"Contact insert failed for {form['email']}: {e}", exc_info=True)
            raise InternalError(payload={'error': str(e)}) from e

        contact_data = {'id': contact.id, **form}

        confirmation = self.templates.contact_confirmation(contact_data)
        result = self.mailer.send(form['email'], confirmation.subject, confirmation.html)
        self._record('contact', form['email'], confirmation, result)

        if self.admin_email:
            self._notify_admin(contact_data)

        logger.info(f"Contact {contact.id} processed, confirmation "
                    f"{'sent' if result.success else 'failed'}")
        return ContactSubmission(contact_id=contact.id, email_sent=result.success)

    def _record(self, email_type: str, recipient: str, email: RenderedEmail,
                result: SendResult) -> None:
        try:
            self.store.log_email(email_type, recipient, email.subject,
                                 result.success, result.error)
        except Exception as e:
            logger.error(f"Could not write {email_type} email log for {recipient}: {e}")

    def _notify_admin(self, contact_data: Dict[str, Any]) -> None:
        # Best effort: never affects the response or the stored contact
        try:
            notification = self.templates.admin_notification(contact_data)
            result = self.mailer.send(self.admin_email, notification.subject, notification.html)
            self._record('notification', self.admin_email, notification, result)
        except Exception as e:
            logger.warning(f"Admin notification for contact {contact_data['id']} failed: {e}")

    # Admin operations

    def get(self, contact_id: int):
        contact = self.store.get_contact(contact_id)
        if contact is None:
            raise NotFoundError('Contact not found')
        return contact

    def update_status(self, contact_id: int, status: Any):
        if status not in CONTACT_STATUSES:
            raise ValidationError(
                [{'field': 'status', 'message': f"Must be one of: {', '.join(CONTACT_STATUSES)}"}],
                message=f"Invalid status. Must be one of: {', '.join(CONTACT_STATUSES)}"
            )
        contact = self.store.update_contact_status(contact_id, status)
        if contact is None:
            raise NotFoundError('Contact not found')
        logger.info(f"Contact {contact_id} status set to {status}")
        return contact

    def delete(self, contact_id: int) -> None:
        if not self.store.delete_contact(contact_id):
            raise NotFoundError('Contact not found')
        logger.info(f"Contact {contact_id} deleted")
