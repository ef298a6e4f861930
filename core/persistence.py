# core/persistence.py
"""
Persistence gateway for contacts, newsletter subscribers and email logs

All statements go through the SQLAlchemy ORM so user supplied values are
always bound as parameters. The session is request scoped by Flask-SQLAlchemy
and removed when the application context tears down; every write below runs
inside ``transaction()``, which commits on success and rolls back on any
exception.
"""

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, inspect, select, text

from core.database_models import (
    Contact, EmailLog, NewsletterSubscriber, SUBSCRIBER_STATUSES, utcnow
)

logger = logging.getLogger(__name__)

MANAGED_TABLES = ('contacts', 'newsletter_subscribers', 'email_logs')


@dataclass
class Page:
    """One page of a listing plus the numbers the admin UI needs"""
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self, total_key: str) -> Dict[str, Any]:
        return {
            'currentPage': self.page,
            'totalPages': self.total_pages,
            total_key: self.total,
            'hasNext': self.page < self.total_pages,
            'hasPrev': self.page > 1,
        }


class PersistenceGateway:
    """Narrow CRUD surface over the three managed tables"""

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    @contextmanager
    def transaction(self):
        session = self.session
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise

    # Contacts

    def create_contact(self, name: str, email: str, subject: str, message: str) -> Contact:
        with self.transaction() as session:
            contact = Contact(name=name, email=email, subject=subject,
                              message=message, status='new')
            session.add(contact)
        logger.debug(f"Contact {contact.id} stored for {email}")
        return contact

    def list_contacts(self, page: int, limit: int, status: Optional[str] = None) -> Page:
        query = select(Contact)
        count_query = select(func.count(Contact.id))
        if status:
            query = query.where(Contact.status == status)
            count_query = count_query.where(Contact.status == status)

        query = query.order_by(Contact.created_at.desc(), Contact.id.desc()) \
            .limit(limit).offset((page - 1) * limit)

        items = list(self.session.scalars(query))
        total = self.session.scalar(count_query) or 0
        return Page(items=items, total=total, page=page, limit=limit)

    def get_contact(self, contact_id: int) -> Optional[Contact]:
        return self.session.get(Contact, contact_id)

    def update_contact_status(self, contact_id: int, status: str) -> Optional[Contact]:
        """Returns the updated contact, or None when no row matched"""
        with self.transaction() as session:
            contact = session.get(Contact, contact_id)
            if contact is None:
                return None
            contact.status = status
            contact.updated_at = utcnow()
        return contact

    def delete_contact(self, contact_id: int) -> bool:
        with self.transaction() as session:
            contact = session.get(Contact, contact_id)
            if contact is None:
                return False
            session.delete(contact)
        return True

    # Newsletter subscribers

    def get_subscriber(self, email: str) -> Optional[NewsletterSubscriber]:
        return self.session.scalar(
            select(NewsletterSubscriber).where(NewsletterSubscriber.email == email)
        )

    def create_subscriber(self, email: str, source: str, ip_address: Optional[str],
                          user_agent: Optional[str]) -> NewsletterSubscriber:
        """Raises sqlalchemy.exc.IntegrityError when the email already exists"""
        with self.transaction() as session:
            subscriber = NewsletterSubscriber(
                email=email,
                status='active',
                subscribed_at=utcnow(),
                source=source,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            session.add(subscriber)
        return subscriber

    def reactivate_subscriber(self, subscriber: NewsletterSubscriber, source: str,
                              ip_address: Optional[str],
                              user_agent: Optional[str]) -> NewsletterSubscriber:
        with self.transaction():
            subscriber.status = 'active'
            subscriber.subscribed_at = utcnow()
            subscriber.unsubscribed_at = None
            subscriber.source = source
            subscriber.ip_address = ip_address
            subscriber.user_agent = user_agent
        return subscriber

    def unsubscribe_subscriber(self, subscriber: NewsletterSubscriber) -> NewsletterSubscriber:
        with self.transaction():
            subscriber.status = 'unsubscribed'
            subscriber.unsubscribed_at = utcnow()
        return subscriber

    def list_subscribers(self, page: int, limit: int, status: Optional[str] = None) -> Page:
        query = select(NewsletterSubscriber)
        count_query = select(func.count(NewsletterSubscriber.id))
        if status:
            query = query.where(NewsletterSubscriber.status == status)
            count_query = count_query.where(NewsletterSubscriber.status == status)

        query = query.order_by(NewsletterSubscriber.subscribed_at.desc(),
                               NewsletterSubscriber.id.desc()) \
            .limit(limit).offset((page - 1) * limit)

        items = list(self.session.scalars(query))
        total = self.session.scalar(count_query) or 0
        return Page(items=items, total=total, page=page, limit=limit)

    def subscriber_stats(self, recent_days: int = 30) -> Dict[str, Any]:
        by_status = dict(self.session.execute(
            select(NewsletterSubscriber.status, func.count(NewsletterSubscriber.id))
            .group_by(NewsletterSubscriber.status)
        ).all())

        since = utcnow() - timedelta(days=recent_days)
        recent = self.session.scalar(
            select(func.count(NewsletterSubscriber.id))
            .where(NewsletterSubscriber.subscribed_at >= since)
        ) or 0

        count_col = func.count(NewsletterSubscriber.id).label('count')
        by_source = [
            {'source': source, 'count': count}
            for source, count in self.session.execute(
                select(NewsletterSubscriber.source, count_col)
                .group_by(NewsletterSubscriber.source)
                .order_by(count_col.desc())
            ).all()
        ]

        stats = {'total': sum(by_status.values())}
        for status in SUBSCRIBER_STATUSES:
            stats[status] = by_status.get(status, 0)
        stats['recent'] = recent
        stats['bySource'] = by_source
        return stats

    # Email logs

    def log_email(self, email_type: str, recipient: str, subject: str,
                  success: bool, error: Optional[str] = None) -> EmailLog:
        with self.transaction() as session:
            entry = EmailLog(
                type=email_type,
                recipient_email=recipient,
                subject=subject,
                status='sent' if success else 'failed',
                error_message=None if success else error,
                sent_at=utcnow() if success else None,
            )
            session.add(entry)
        return entry

    # Diagnostics

    def ping(self) -> Tuple[bool, Optional[str]]:
        try:
            self.session.execute(text('SELECT 1'))
            return True, None
        except Exception as e:
            self.session.rollback()
            logger.error(f"Database ping failed: {e}")
            return False, str(e)

    def table_names(self) -> List[str]:
        existing = set(inspect(self.db.engine).get_table_names())
        return [name for name in MANAGED_TABLES if name in existing]
