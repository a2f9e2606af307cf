"""Typed accessors over tool call arguments.

All helpers raise ``SafeError(code="UserInput")`` so that bad input is reported
back to the agent as a tool error rather than failing the call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

from .errors import user_input_error

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 30
MAX_PER_PAGE = 100

_TYPE_NAMES = {str: "string", int: "integer", float: "number", bool: "boolean", list: "array", dict: "object"}


def _type_name(expected: type) -> str:
    return _TYPE_NAMES.get(expected, expected.__name__)


def _is_instance(value: Any, expected: type) -> bool:
    # bool is an int subclass; JSON keeps them apart.
    if expected is not bool and isinstance(value, bool):
        return False
    return isinstance(value, expected)


def required_param(arguments: dict[str, Any], key: str, expected: type[T]) -> T:
    """Return ``arguments[key]``; it must be present, of ``expected`` type and non-zero."""
    if key not in arguments:
        raise user_input_error(f"missing required parameter: {key}")
    value = arguments[key]
    if not _is_instance(value, expected):
        raise user_input_error(f"parameter {key} is not of type {_type_name(expected)}")
    if not value:
        raise user_input_error(f"missing required parameter: {key}")
    return value


def optional_param(arguments: dict[str, Any], key: str, expected: type[T], default: T) -> T:
    """Return ``arguments[key]`` if present (type-checked), else ``default``."""
    if key not in arguments or arguments[key] is None:
        return default
    value = arguments[key]
    if not _is_instance(value, expected):
        raise user_input_error(f"parameter {key} is not of type {_type_name(expected)}")
    return value


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise user_input_error(f"parameter {key} is not of type number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, float):
        raise user_input_error(f"parameter {key} must be a whole number")
    raise user_input_error(f"parameter {key} is not of type number")


def required_int(arguments: dict[str, Any], key: str) -> int:
    """Return an integer parameter; integral JSON numbers such as ``42.0`` are accepted."""
    if key not in arguments or arguments[key] is None:
        raise user_input_error(f"missing required parameter: {key}")
    return _as_int(key, arguments[key])


def optional_int(arguments: dict[str, Any], key: str, default: int) -> int:
    if key not in arguments or arguments[key] is None:
        return default
    return _as_int(key, arguments[key])


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE


def optional_pagination_params(arguments: dict[str, Any]) -> Pagination:
    """Read ``page`` and ``perPage`` with their defaults and bounds."""
    page = optional_int(arguments, "page", DEFAULT_PAGE)
    per_page = optional_int(arguments, "perPage", DEFAULT_PER_PAGE)
    if page < 1:
        raise user_input_error("parameter page must be >= 1")
    if not 1 <= per_page <= MAX_PER_PAGE:
        raise user_input_error(f"parameter perPage must be between 1 and {MAX_PER_PAGE}")
    return Pagination(page=page, per_page=per_page)
