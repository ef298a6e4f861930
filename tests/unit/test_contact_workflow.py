import pytest

from core.database_models import EmailLog
from core.errors import InternalError, NotFoundError, ValidationError
from services.contact_workflow import ContactWorkflow


@pytest.fixture
def form():
    return {
        'name': 'Jane Doe',
        'email': 'jane@acme.io',
        'subject': 'Pricing question',
        'message': 'How much does the team plan cost?',
    }


@pytest.fixture
def workflow(app, store, mailer):
    return ContactWorkflow(store, mailer, app.extensions['email_templates'],
                           admin_email='admin@workhubpro.com')


def _logs(store):
    return store.session.query(EmailLog).order_by(EmailLog.id).all()


def test_submit_stores_contact_and_sends_emails(workflow, store, mailer, form):
    submission = workflow.submit(form, ip_address='127.0.0.1', user_agent='pytest')

    contact = store.get_contact(submission.contact_id)
    assert contact.status == 'new'
    assert contact.email == 'jane@acme.io'
    assert submission.email_sent is True

    assert [m['to'] for m in mailer.sent] == ['jane@acme.io', 'admin@workhubpro.com']
    assert mailer.sent[0]['subject'] == 'Thank you for contacting WorkHub Pro - Pricing question'
    assert mailer.sent[1]['subject'] == 'New Contact Form Submission - Pricing question'

    assert [(log.type, log.status) for log in _logs(store)] == [
        ('contact', 'sent'), ('notification', 'sent')]


def test_failed_confirmation_keeps_contact(workflow, store, mailer, form):
    mailer.failing.add('jane@acme.io')

    submission = workflow.submit(form)

    assert submission.email_sent is False
    assert store.get_contact(submission.contact_id) is not None
    log = _logs(store)[0]
    assert (log.type, log.status, log.error_message) == ('contact', 'failed', '550 Mailbox unavailable')


def test_admin_notification_failure_is_ignored(workflow, store, mailer, form, monkeypatch):
    def broken(contact):
        raise RuntimeError('template exploded')

    monkeypatch.setattr(workflow.templates, 'admin_notification', broken)

    submission = workflow.submit(form)

    assert submission.email_sent is True
    assert [m['to'] for m in mailer.sent] == ['jane@acme.io']


def test_no_admin_notification_without_admin_email(app, store, mailer, form):
    workflow = ContactWorkflow(store, mailer, app.extensions['email_templates'])

    workflow.submit(form)

    assert [m['to'] for m in mailer.sent] == ['jane@acme.io']


def test_email_log_failure_does_not_fail_submission(workflow, store, mailer, form, monkeypatch):
    def broken_log(*args, **kwargs):
        raise RuntimeError('email_logs is locked')

    monkeypatch.setattr(store, 'log_email', broken_log)

    submission = workflow.submit(form)

    assert submission.email_sent is True
    assert store.get_contact(submission.contact_id) is not None


def test_insert_failure_sends_nothing(workflow, store, mailer, form, monkeypatch):
    def broken_insert(**kwargs):
        raise RuntimeError('database is down')

    monkeypatch.setattr(store, 'create_contact', broken_insert)

    with pytest.raises(InternalError) as excinfo:
        workflow.submit(form)

    assert excinfo.value.payload == {'error': 'database is down'}
    assert mailer.sent == []


def test_update_status(workflow, form):
    contact_id = workflow.submit(form).contact_id

    assert workflow.update_status(contact_id, 'replied').status == 'replied'


def test_update_status_rejects_unknown_value(workflow, store, form):
    contact_id = workflow.submit(form).contact_id

    with pytest.raises(ValidationError) as excinfo:
        workflow.update_status(contact_id, 'archived')

    assert excinfo.value.message == 'Invalid status. Must be one of: new, read, replied, closed'
    assert store.get_contact(contact_id).status == 'new'


def test_missing_contact_raises_not_found(workflow):
    with pytest.raises(NotFoundError):
        workflow.get(404)
    with pytest.raises(NotFoundError):
        workflow.update_status(404, 'read')
    with pytest.raises(NotFoundError):
        workflow.delete(404)


def test_delete(workflow, store, form):
    contact_id = workflow.submit(form).contact_id

    workflow.delete(contact_id)

    assert store.get_contact(contact_id) is None
