"""Tool argument accessor tests."""

from __future__ import annotations

import pytest
from github_projects_mcp.errors import SafeError
from github_projects_mcp.params import (
    DEFAULT_PER_PAGE,
    Pagination,
    optional_pagination_params,
    optional_param,
    required_int,
    required_param,
)


def test_required_param_returns_value() -> None:
    assert required_param({"org": "acme"}, "org", str) == "acme"


@pytest.mark.parametrize(
    ("arguments", "message"),
    [
        ({}, "missing required parameter: org"),
        ({"org": ""}, "missing required parameter: org"),
        ({"org": 5}, "parameter org is not of type string"),
    ],
)
def test_required_param_rejections(arguments: dict, message: str) -> None:
    with pytest.raises(SafeError) as exc:
        required_param(arguments, "org", str)
    assert exc.value.code == "UserInput"
    assert exc.value.message == message


def test_optional_param_defaults_and_type_checks() -> None:
    assert optional_param({}, "state", str, "") == ""
    assert optional_param({"state": None}, "state", str, "all") == "all"
    assert optional_param({"state": "open"}, "state", str, "") == "open"
    with pytest.raises(SafeError):
        optional_param({"state": True}, "state", str, "")


def test_required_int_accepts_integral_numbers() -> None:
    assert required_int({"n": 42}, "n") == 42
    assert required_int({"n": 42.0}, "n") == 42


@pytest.mark.parametrize("value", [True, 4.5, "42"])
def test_required_int_rejects_non_integers(value: object) -> None:
    with pytest.raises(SafeError):
        required_int({"n": value}, "n")


def test_required_int_missing() -> None:
    with pytest.raises(SafeError) as exc:
        required_int({}, "n")
    assert exc.value.message == "missing required parameter: n"


def test_pagination_defaults_and_bounds() -> None:
    assert optional_pagination_params({}) == Pagination(page=1, per_page=DEFAULT_PER_PAGE)
    assert optional_pagination_params({"page": 2, "perPage": 100.0}) == Pagination(page=2, per_page=100)
    with pytest.raises(SafeError):
        optional_pagination_params({"perPage": 101})
    with pytest.raises(SafeError):
        optional_pagination_params({"page": 0})
