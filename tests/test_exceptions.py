"""Tests for validation issue formatting."""

from intranet.core.exceptions import ValidationException, format_issues


def test_format_issues_strips_only_the_location_prefix():
    errors = [
        {"loc": ("body", "title"), "msg": "Field required"},
        {"loc": ("query", "limit"), "msg": "Input should be greater than 0"},
        {"loc": ("body", "filters", "path"), "msg": "Invalid value"},
        {"loc": ("body", "tags", 3), "msg": "String too long"},
        {"loc": ("query",), "msg": "Bad query"},
    ]

    assert format_issues(errors) == [
        {"field": "title", "message": "Field required"},
        {"field": "limit", "message": "Input should be greater than 0"},
        {"field": "filters.path", "message": "Invalid value"},
        {"field": "tags.3", "message": "String too long"},
        {"field": "", "message": "Bad query"},
    ]


def test_format_issues_keeps_model_field_named_like_a_location():
    issues = format_issues([{"loc": ("query", "query"), "msg": "String too long"}])
    assert issues == [{"field": "query", "message": "String too long"}]


def test_from_errors_wraps_issues_in_details():
    error = ValidationException.from_errors([{"loc": ("body", "email"), "msg": "Invalid email"}])
    assert error.status_code == 400
    assert error.details == {"issues": [{"field": "email", "message": "Invalid email"}]}
