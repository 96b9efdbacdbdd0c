import pytest

from methods.errors import ValidationError
from methods.forms.forms import SignupForm, SnippetForm, validate_form


def errors_of(form_cls, values):
    with pytest.raises(ValidationError) as e:
        validate_form(form_cls, values)
    return e.value.errors


def test_valid_snippet_form():
    form = validate_form(SnippetForm, {"title": "O snail", "content": "Climb Mount Fuji", "expires": "7"})
    assert form.expiry_days == 7


def test_title_of_101_characters_is_too_long():
    errs = errors_of(SnippetForm, {"title": "x" * 101, "content": "c", "expires": "1"})
    assert errs == {"title": ["This field is too long (maximum is 100 characters)"]}


def test_title_length_counts_code_points():
    validate_form(SnippetForm, {"title": "é" * 100, "content": "c", "expires": "1"})
    validate_form(SnippetForm, {"title": "🐸" * 100, "content": "c", "expires": "1"})


def test_blank_fields_and_bad_expiry():
    errs = errors_of(SnippetForm, {"title": "  ", "content": "", "expires": "2"})
    assert errs["title"] == ["This field cannot be blank"]
    assert errs["content"] == ["This field cannot be blank"]
    assert errs["expires"] == ["This field is invalid"]


def test_missing_keys_are_blank():
    errs = errors_of(SnippetForm, {})
    assert set(errs) == {"title", "content", "expires"}


def test_signup_short_password():
    errs = errors_of(SignupForm, {"name": "Name", "email": "a@b.com", "password": "shortpass"})
    assert errs == {"password": ["This field is too short (minimum is 10 characters)"]}


@pytest.mark.parametrize("email", ["plainaddress", "a@", "@b.com", "a b@c.com", "a@-b.com"])
def test_signup_invalid_email(email):
    errs = errors_of(SignupForm, {"name": "Name", "email": email, "password": "long-enough-pw"})
    assert errs == {"email": ["This field is invalid"]}


def test_signup_valid():
    form = validate_form(SignupForm, {"name": "Name", "email": "a@b.com", "password": "exactly10c"})
    assert form.email == "a@b.com"
