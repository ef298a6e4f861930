from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import validates

db = SQLAlchemy()

CONTACT_STATUSES = ('new', 'read', 'replied', 'closed')
SUBSCRIBER_STATUSES = ('active', 'unsubscribed', 'bounced')
EMAIL_LOG_TYPES = ('contact', 'newsletter', 'notification')
EMAIL_LOG_STATUSES = ('sent', 'failed', 'pending')


def utcnow():
    """Naive UTC timestamp, matching what the database hands back"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _isoformat(value):
    return value.isoformat() if value else None


def _check_choice(field, value, choices):
    if value not in choices:
        raise ValueError(f"Invalid {field} '{value}'. Must be one of: {', '.join(choices)}")
    return value


class Contact(db.Model):
    __tablename__ = 'contacts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default='new', index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @validates('status')
    def validate_status(self, key, value):
        return _check_choice(key, value, CONTACT_STATUSES)

    def to_dict(self, include_message=True):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'subject': self.subject,
            'status': self.status,
            'created_at': _isoformat(self.created_at),
            'updated_at': _isoformat(self.updated_at),
        }
        if include_message:
            data['message'] = self.message
        return data

    def __repr__(self):
        return f'<Contact {self.id} {self.status}>'


class NewsletterSubscriber(db.Model):
    __tablename__ = 'newsletter_subscribers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default='active', index=True)
    subscribed_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    unsubscribed_at = Column(DateTime, nullable=True)
    source = Column(String(100), default='website')
    ip_address = Column(String(45))  # IPv6 max length
    user_agent = Column(Text)

    @validates('status')
    def validate_status(self, key, value):
        return _check_choice(key, value, SUBSCRIBER_STATUSES)

    def to_dict(self, include_client=True):
        data = {
            'id': self.id,
            'email': self.email,
            'status': self.status,
            'subscribed_at': _isoformat(self.subscribed_at),
            'unsubscribed_at': _isoformat(self.unsubscribed_at),
            'source': self.source,
        }
        if include_client:
            data['ip_address'] = self.ip_address
            data['user_agent'] = self.user_agent
        return data

    def __repr__(self):
        return f'<NewsletterSubscriber {self.email} {self.status}>'


class EmailLog(db.Model):
    """Append-only record of one outbound email attempt"""
    __tablename__ = 'email_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False, index=True)
    recipient_email = Column(String(255), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default='pending', index=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    @validates('type')
    def validate_type(self, key, value):
        return _check_choice(key, value, EMAIL_LOG_TYPES)

    @validates('status')
    def validate_status(self, key, value):
        return _check_choice(key, value, EMAIL_LOG_STATUSES)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'recipient_email': self.recipient_email,
            'subject': self.subject,
            'status': self.status,
            'error_message': self.error_message,
            'sent_at': _isoformat(self.sent_at),
            'created_at': _isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<EmailLog {self.type} {self.recipient_email} {self.status}>'
