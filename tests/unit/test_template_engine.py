import pytest

from core.template_engine import EmailTemplateEngine, html_to_text


@pytest.fixture
def engine():
    return EmailTemplateEngine(
        site_name='WorkHub Pro',
        site_url='https://workhubpro.com/',
        company_address='1 Main St',
        company_phone='+1 555 0100',
    )


@pytest.fixture
def contact():
    return {
        'id': 42,
        'name': 'Jane Doe',
        'email': 'jane@acme.io',
        'subject': 'Pricing & plans',
        'message': 'Line one &lt;b&gt;\nLine two',
    }


def test_contact_confirmation(engine, contact):
    email = engine.contact_confirmation(contact)

    assert email.subject == 'Thank you for contacting WorkHub Pro - Pricing & plans'
    assert 'Hello Jane Doe,' in email.html
    assert 'Pricing &amp; plans' in email.html
    # Already-escaped message is not escaped a second time
    assert 'Line one &lt;b&gt;' in email.html
    assert '&amp;lt;' not in email.html
    assert '1 Main St' in email.html
    assert 'Hello Jane Doe,' in email.text


def test_template_variables_are_escaped(engine, contact):
    contact['name'] = '<img src=x onerror=alert(1)>'
    email = engine.contact_confirmation(contact)

    assert '<img' not in email.html
    assert '&lt;img' in email.html


def test_newsletter_welcome_has_unsubscribe_link(engine):
    email = engine.newsletter_welcome({'email': 'jane+news@acme.io'})

    assert email.subject == 'Welcome to WorkHub Pro Newsletter!'
    assert 'https://workhubpro.com/unsubscribe?email=jane%2Bnews%40acme.io' in email.html
    assert 'Unsubscribe' in email.text


def test_admin_notification(engine, contact):
    email = engine.admin_notification(contact)

    assert email.subject == 'New Contact Form Submission - Pricing & plans'
    assert 'jane@acme.io' in email.html
    assert '#42' in email.html
    assert 'mailto:jane@acme.io?subject=Re%3A%20Pricing%20%26%20plans' in email.html


def test_html_to_text_strips_tags_and_blank_runs():
    text = html_to_text('<div><h1>Hi &amp; bye</h1>\n\n\n\n<p> body </p></div>')

    assert text == 'Hi & bye\n\nbody'
