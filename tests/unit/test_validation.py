import pytest

from core.errors import ValidationError
from core.validation import (
    normalize_email, validate_contact_form, validate_newsletter_subscription,
    validate_unsubscribe
)


def _errors(excinfo):
    return {e['field']: e['message'] for e in excinfo.value.errors}


def test_contact_form_is_trimmed_and_normalized():
    form = validate_contact_form({
        'name': '  Jane Doe ',
        'email': ' Jane.Doe@ACME.io ',
        'subject': '  Pricing question  ',
        'message': '  How much does the team plan cost?  ',
    })

    assert form == {
        'name': 'Jane Doe',
        'email': 'jane.doe@acme.io',
        'subject': 'Pricing question',
        'message': 'How much does the team plan cost?',
    }


def test_contact_form_reports_every_failing_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_contact_form({'name': 'J', 'email': 'not-an-email', 'subject': 'Hi', 'message': 'short'})

    assert _errors(excinfo) == {
        'name': 'Name must be between 2 and 100 characters',
        'email': 'Please provide a valid email address',
        'subject': 'Subject must be between 5 and 200 characters',
        'message': 'Message must be between 10 and 2000 characters',
    }
    assert excinfo.value.status_code == 400


def test_missing_fields_are_required():
    with pytest.raises(ValidationError) as excinfo:
        validate_contact_form({})

    assert _errors(excinfo) == {
        'name': 'Name is required',
        'email': 'Email is required',
        'subject': 'Subject is required',
        'message': 'Message is required',
    }


def test_non_mapping_body_counts_as_empty():
    with pytest.raises(ValidationError) as excinfo:
        validate_contact_form(['not', 'an', 'object'])

    assert set(_errors(excinfo)) == {'name', 'email', 'subject', 'message'}


@pytest.mark.parametrize('name', ['Jane99', "O'Brien", 'Jane-Doe', '<b>Jane</b>'])
def test_name_allows_only_letters_and_spaces(name):
    with pytest.raises(ValidationError) as excinfo:
        validate_contact_form({
            'name': name, 'email': 'jane@acme.io',
            'subject': 'Pricing question', 'message': 'A long enough message body',
        })

    assert _errors(excinfo) == {'name': 'Name can only contain letters and spaces'}


def test_message_length_is_checked_before_escaping():
    raw = '<' * 2000
    form = validate_contact_form({
        'name': 'Jane Doe', 'email': 'jane@acme.io',
        'subject': 'Pricing question', 'message': raw,
    })

    assert form['message'] == '&lt;' * 2000


def test_message_is_html_escaped():
    form = validate_contact_form({
        'name': 'Jane Doe', 'email': 'jane@acme.io',
        'subject': 'Pricing question',
        'message': "<script>alert('x')</script> please call me",
    })

    assert '<script>' not in form['message']
    assert form['message'].startswith('&lt;script&gt;')


def test_message_over_limit_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        validate_contact_form({
            'name': 'Jane Doe', 'email': 'jane@acme.io',
            'subject': 'Pricing question', 'message': 'x' * 2001,
        })

    assert _errors(excinfo) == {'message': 'Message must be between 10 and 2000 characters'}


@pytest.mark.parametrize('address, expected', [
    ('Jane.Doe@Acme.io', 'jane.doe@acme.io'),
    ('Jane.Doe+news@Gmail.com', 'janedoe@gmail.com'),
    ('j.a.n.e@googlemail.com', 'jane@gmail.com'),
    ('jane+tag@acme.io', 'jane+tag@acme.io'),
])
def test_normalize_email(address, expected):
    assert normalize_email(address) == expected


def test_subscription_source_defaults_to_website():
    assert validate_newsletter_subscription({'email': 'jane@acme.io'}) == {
        'email': 'jane@acme.io',
        'source': 'website',
    }


def test_subscription_source_length():
    with pytest.raises(ValidationError) as excinfo:
        validate_newsletter_subscription({'email': 'jane@acme.io', 'source': 's' * 101})

    assert _errors(excinfo) == {'source': 'Source must be less than 100 characters'}


def test_unsubscribe_requires_valid_email():
    with pytest.raises(ValidationError) as excinfo:
        validate_unsubscribe({'email': 'jane@'})

    assert _errors(excinfo) == {'email': 'Please provide a valid email address'}


@pytest.mark.parametrize('address', ['+news@gmail.com', '+other@googlemail.com'])
def test_gmail_address_with_only_a_tag_is_rejected(address):
    with pytest.raises(ValidationError) as excinfo:
        validate_newsletter_subscription({'email': address})

    assert _errors(excinfo) == {'email': 'Please provide a valid email address'}
