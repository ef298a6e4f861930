import aiosmtplib
import pytest

from core import mail_gateway
from core.mail_gateway import MailGateway, SMTPSettings


class FakeSMTP:
    instances = []
    fail_on = None

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    async def connect(self):
        self.calls.append('connect')
        if FakeSMTP.fail_on == 'connect':
            raise ConnectionRefusedError('Connection refused')

    async def starttls(self):
        self.calls.append('starttls')

    async def login(self, username, password):
        self.calls.append(('login', username, password))

    async def send_message(self, msg):
        self.calls.append('send_message')
        if FakeSMTP.fail_on == 'send':
            raise aiosmtplib.SMTPResponseException(550, 'Mailbox unavailable')
        self.messages.append(msg)

    async def quit(self):
        self.calls.append('quit')

    def close(self):
        self.calls.append('close')


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_on = None
    monkeypatch.setattr(mail_gateway.aiosmtplib, 'SMTP', FakeSMTP)
    return FakeSMTP


@pytest.fixture
def settings():
    return SMTPSettings(
        host='smtp.acme.io',
        port=587,
        username='mailer',
        password='secret',
        from_address='WorkHub Pro <noreply@workhubpro.com>',
    )


def test_send_uses_starttls_and_login(fake_smtp, settings):
    result = MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi &amp; welcome</p>')

    assert result.success
    assert result.error is None
    assert result.message_id.endswith('@workhubpro.com>')

    smtp = fake_smtp.instances[0]
    assert smtp.kwargs['hostname'] == 'smtp.acme.io'
    assert smtp.kwargs['use_tls'] is False
    assert smtp.calls == ['connect', 'starttls', ('login', 'mailer', 'secret'), 'send_message', 'quit']


def test_port_465_uses_implicit_tls(fake_smtp, settings):
    settings.port = 465
    MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi</p>')

    smtp = fake_smtp.instances[0]
    assert smtp.kwargs['use_tls'] is True
    assert 'starttls' not in smtp.calls


def test_no_login_without_credentials(fake_smtp, settings):
    settings.username = None
    MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi</p>')

    assert not any(isinstance(c, tuple) for c in fake_smtp.instances[0].calls)


def test_message_has_html_and_text_parts(fake_smtp, settings):
    MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi &amp; welcome</p>',
                               headers={'List-Unsubscribe': '<https://workhubpro.com/unsubscribe>'})

    msg = fake_smtp.instances[0].messages[0]
    assert msg['To'] == 'jane@acme.io'
    assert msg['From'] == 'WorkHub Pro <noreply@workhubpro.com>'
    assert msg['List-Unsubscribe'] == '<https://workhubpro.com/unsubscribe>'

    parts = msg.get_payload()
    assert [p.get_content_type() for p in parts] == ['text/plain', 'text/html']
    assert parts[0].get_payload(decode=True).decode() == 'Hi & welcome'


def test_smtp_rejection_becomes_failed_result(fake_smtp, settings):
    fake_smtp.fail_on = 'send'
    result = MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi</p>')

    assert not result.success
    assert result.error == '550 Mailbox unavailable'
    assert fake_smtp.instances[0].calls[-1] == 'quit'


def test_connection_error_becomes_failed_result(fake_smtp, settings):
    fake_smtp.fail_on = 'connect'
    result = MailGateway(settings).send('jane@acme.io', 'Hello', '<p>Hi</p>')

    assert not result.success
    assert result.error == 'Connection refused'


def test_verify(fake_smtp, settings):
    assert MailGateway(settings).verify() is True

    fake_smtp.fail_on = 'connect'
    assert MailGateway(settings).verify() is False


def test_settings_from_config():
    settings = SMTPSettings.from_config({
        'MAIL_SERVER': 'mail.acme.io',
        'MAIL_PORT': '465',
        'MAIL_USERNAME': 'user',
        'MAIL_PASSWORD': 'pw',
        'MAIL_FROM': 'Acme <hello@acme.io>',
    })

    assert settings.port == 465
    assert settings.implicit_tls
    assert settings.domain == 'acme.io'
