# services/newsletter_workflow.py
"""
Newsletter subscription workflow

Subscriber lifecycle is driven by TRANSITIONS, keyed by
(current status or None when no row exists, action). Each entry either names
the change to apply or the error to raise; there is no fallthrough.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from core.errors import ConflictError, NotFoundError
from core.mail_gateway import MailGateway
from core.persistence import PersistenceGateway
from core.template_engine import EmailTemplateEngine

logger = logging.getLogger(__name__)


class Action(Enum):
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"


class Effect(Enum):
    CREATE = "create"
    REACTIVATE = "reactivate"
    UNSUBSCRIBE = "unsubscribe"
    REJECT = "reject"


@dataclass(frozen=True)
class Transition:
    effect: Effect
    next_status: Optional[str] = None
    send_welcome: bool = False
    status_code: int = 200
    message: str = ''
    error: Optional[type] = None


ALREADY_SUBSCRIBED = 'This email is already subscribed to our newsletter.'

TRANSITIONS: Dict[Tuple[Optional[str], Action], Transition] = {
    (None, Action.SUBSCRIBE): Transition(
        Effect.CREATE, 'active', send_welcome=True, status_code=201,
        message='Thank you for subscribing to our newsletter!'),
    ('active', Action.SUBSCRIBE): Transition(
        Effect.REJECT, error=ConflictError, message=ALREADY_SUBSCRIBED),
    ('unsubscribed', Action.SUBSCRIBE): Transition(
        Effect.REACTIVATE, 'active', send_welcome=True,
        message='Welcome back! You have been resubscribed to our newsletter.'),
    # Bounced addresses are not re-mailed from the public form
    ('bounced', Action.SUBSCRIBE): Transition(
        Effect.REJECT, error=ConflictError,
        message='This email address cannot receive our newsletter. Please contact us for help.'),

    (None, Action.UNSUBSCRIBE): Transition(
        Effect.REJECT, error=NotFoundError,
        message='Email not found in our newsletter database.'),
    ('active', Action.UNSUBSCRIBE): Transition(
        Effect.UNSUBSCRIBE, 'unsubscribed',
        message='You have been successfully unsubscribed from our newsletter.'),
    ('bounced', Action.UNSUBSCRIBE): Transition(
        Effect.UNSUBSCRIBE, 'unsubscribed',
        message='You have been successfully unsubscribed from our newsletter.'),
    ('unsubscribed', Action.UNSUBSCRIBE): Transition(
        Effect.REJECT, error=ConflictError,
        message='This email is already unsubscribed from our newsletter.'),
}


@dataclass
class NewsletterOutcome:
    status_code: int
    message: str
    data: Optional[dict] = None


def resolve(current_status: Optional[str], action: Action) -> Transition:
    return TRANSITIONS[(current_status, action)]


class NewsletterWorkflow:

    def __init__(self, store: PersistenceGateway, mailer: MailGateway,
                 templates: EmailTemplateEngine):
        self.store = store
        self.mailer = mailer
        self.templates = templates

    def subscribe(self, email: str, source: str = 'website', ip_address: Optional[str] = None,
                  user_agent: Optional[str] = None) -> NewsletterOutcome:
        subscriber = self.store.get_subscriber(email)
        transition = resolve(subscriber.status if subscriber else None, Action.SUBSCRIBE)
        self._reject_if_needed(transition, email)

        if transition.effect is Effect.CREATE:
            try:
                subscriber = self.store.create_subscriber(email, source, ip_address, user_agent)
            except IntegrityError:
                # A concurrent request created the row first
                logger.info(f"Duplicate subscription race for {email}")
                raise ConflictError(ALREADY_SUBSCRIBED)
        else:
            subscriber = self.store.reactivate_subscriber(subscriber, source, ip_address, user_agent)

        logger.info(f"Newsletter {transition.effect.value} for {email} (source={source})")

        email_sent = self._send_welcome(email) if transition.send_welcome else False

        data = {'email': email, 'emailSent': email_sent}
        if transition.effect is Effect.CREATE:
            data = {'subscriberId': subscriber.id, **data}
        return NewsletterOutcome(transition.status_code, transition.message, data)

    def unsubscribe(self, email: str) -> NewsletterOutcome:
        subscriber = self.store.get_subscriber(email)
        transition = resolve(subscriber.status if subscriber else None, Action.UNSUBSCRIBE)
        self._reject_if_needed(transition, email)

        self.store.unsubscribe_subscriber(subscriber)
        logger.info(f"Newsletter unsubscribe for {email}")
        return NewsletterOutcome(transition.status_code, transition.message)

    def _reject_if_needed(self, transition: Transition, email: str) -> None:
        if transition.effect is Effect.REJECT:
            logger.info(f"Newsletter request rejected for {email}: {transition.message}")
            raise transition.error(transition.message)

    def _send_welcome(self, email: str) -> bool:
        welcome = self.templates.newsletter_welcome({'email': email})
        headers = {'List-Unsubscribe': f"<{self.templates.unsubscribe_url(email)}>"}
        result = self.mailer.send(email, welcome.subject, welcome.html, headers=headers)
        try:
            self.store.log_email('newsletter', email, welcome.subject, result.success, result.error)
        except Exception as e:
            logger.error(f"Could not write newsletter email log for {email}: {e}")
        return result.success

    # Admin operations

    def get(self, email: str):
        subscriber = self.store.get_subscriber(email)
        if subscriber is None:
            raise NotFoundError('Subscriber not found')
        return subscriber
