import pytest

from app import create_app
from core.database_models import db
from core.mail_gateway import SendResult

ADMIN_TOKEN = 'test-admin-token'


class FakeMailGateway:
    """Records every message instead of talking to an SMTP server"""

    def __init__(self):
        self.sent = []
        self.failing = set()
        self.fail_all = False

    def send(self, to, subject, html, headers=None):
        self.sent.append({'to': to, 'subject': subject, 'html': html, 'headers': headers or {}})
        if self.fail_all or to in self.failing:
            return SendResult(success=False, error='550 Mailbox unavailable')
        return SendResult(success=True, message_id=f'<{len(self.sent)}@test>')

    def verify(self):
        return True

    def sent_to(self, address):
        return [m for m in self.sent if m['to'] == address]


@pytest.fixture
def mailer():
    return FakeMailGateway()


@pytest.fixture
def config_overrides():
    return {}


@pytest.fixture
def app(mailer, config_overrides):
    app = create_app('testing', config_overrides=config_overrides, mail_gateway=mailer)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions['persistence']


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {ADMIN_TOKEN}'}


@pytest.fixture
def contact_payload():
    return {
        'name': 'Jane Doe',
        'email': 'jane.doe@acme.io',
        'subject': 'Pricing question',
        'message': 'How much does the team plan cost per seat?',
    }
