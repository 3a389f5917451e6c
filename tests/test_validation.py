"""
Field rules declared on the models: checked in bulk by the repositories and
again on attribute assignment.
"""
from datetime import date

import pytest

from content_graph.errors import ValidationError
from content_graph.models import Account, ContentItem, Profile, Tag
from content_graph.validation import FieldRule, check_value, validate_attributes


def test_length_bounds_message():
    rule = FieldRule("Title", required=True, min_length=5, max_length=200)
    assert check_value(rule, "abcd") == "Title must be between 5 and 200 characters"
    assert check_value(rule, "abcde") is None
    assert check_value(rule, "x" * 201) == "Title must be between 5 and 200 characters"


def test_max_only_message():
    rule = FieldRule("Bio", max_length=1000)
    assert check_value(rule, "x" * 1001) == "Bio cannot exceed 1000 characters"
    assert check_value(rule, None) is None


def test_required_none():
    rule = FieldRule("Handle", required=True, min_length=3, max_length=30)
    assert check_value(rule, None) == "Handle is required"


def test_email_rule():
    rule = FieldRule("Email", kind="email", required=True)
    assert check_value(rule, "alice@example.com") is None
    assert check_value(rule, "not-an-email") == "Please provide a valid email address"


@pytest.mark.parametrize(
    "value",
    ["Alice <alice@example.com>", "  alice@example.com  ", "<alice@example.com>"],
)
def test_email_rule_rejects_anything_but_the_bare_address(value):
    rule = FieldRule("Email", kind="email", required=True)
    assert check_value(rule, value) == "Please provide a valid email address"


def test_date_rule_accepts_iso_and_date():
    rule = FieldRule("Birth date", kind="date")
    assert check_value(rule, "1990-02-28") is None
    assert check_value(rule, date(1990, 2, 28)) is None
    assert check_value(rule, "1990-02-30") == "Please provide a valid date"


def test_bool_and_int_rules_reject_wrong_types():
    assert check_value(FieldRule("Published", kind="bool"), "yes") == "Published must be a boolean"
    assert check_value(FieldRule("Account id", kind="int"), True) == "Account id must be an integer"
    assert check_value(FieldRule("Account id", kind="int"), 3) is None


def test_validate_attributes_collects_every_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_attributes(ContentItem, {"account_id": 1, "title": "abcd", "body": "short"})
    assert set(exc_info.value.errors) == {"title", "body"}


def test_validate_attributes_requires_fields_on_insert():
    with pytest.raises(ValidationError) as exc_info:
        validate_attributes(Profile, {"account_id": 1, "first_name": "Al"})
    assert exc_info.value.errors == {"last_name": "Last name is required"}


def test_validate_attributes_partial_checks_only_given_fields():
    validate_attributes(Account, {"email": "new@example.com"}, partial=True)
    with pytest.raises(ValidationError) as exc_info:
        validate_attributes(Account, {"handle": "ab"}, partial=True)
    assert list(exc_info.value.errors) == ["handle"]


def test_validate_attributes_rejects_unknown_and_server_managed_fields():
    with pytest.raises(ValidationError) as exc_info:
        validate_attributes(Tag, {"name": "python", "id": 4, "colour": "red"})
    assert set(exc_info.value.errors) == {"id", "colour"}


def test_model_assignment_is_rechecked():
    tag = Tag(name="python")
    with pytest.raises(ValidationError) as exc_info:
        tag.name = "p"
    assert exc_info.value.errors == {"name": "Tag name must be between 2 and 50 characters"}


def test_model_normalises_iso_birth_date():
    profile = Profile(account_id=1, first_name="Alice", last_name="Liddell", birth_date="1990-02-28")
    assert profile.birth_date == date(1990, 2, 28)
