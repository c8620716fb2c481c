"""
Parameter validation utilities.

Validation rules for the revalidation policies accepted by ``SWRConfig``.
Durations are seconds and may be zero (zero disables polling, debounce and
deduping, and means "forever" for ``ttl``); negative values are rejected.
"""

from collections.abc import Callable
from typing import Any

from .constants import (
    ERROR_CALLABLE_INVALID,
    ERROR_COUNT_NEGATIVE,
    ERROR_COUNT_TYPE_INVALID,
    ERROR_DURATION_NEGATIVE,
    ERROR_DURATION_TYPE_INVALID,
)
from .exceptions import ValidationError

DURATION_FIELDS = (
    "refresh_interval",
    "ttl",
    "dedupe_interval",
    "revalidate_debounce",
    "error_retry_interval",
)
COUNT_FIELDS = ("error_retry_count",)
CALLABLE_FIELDS = ("is_online", "is_visible")
OPTIONAL_CALLABLE_FIELDS = ("compare",)


def validate_duration(name: str, value: float) -> None:
    """Validate a duration parameter.

    Args:
        name: Parameter name, used in the error message
        value: Duration in seconds

    Raises:
        ValidationError: If value is not a non-negative number
    """
    _validate_number_type(name, value)
    if value < 0:
        raise ValidationError(ERROR_DURATION_NEGATIVE.format(name=name, value=value))


def validate_count(name: str, value: int) -> None:
    """Validate a counter parameter (e.g. error_retry_count).

    Raises:
        ValidationError: If value is not a non-negative int
    """
    # bool é subclasse de int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(ERROR_COUNT_TYPE_INVALID.format(name=name, type_name=type(value).__name__))
    if value < 0:
        raise ValidationError(ERROR_COUNT_NEGATIVE.format(name=name, value=value))


def validate_callable(name: str, value: Callable[..., Any] | None, optional: bool = False) -> None:
    """Validate that a probe or hook is callable."""
    if value is None and optional:
        return
    if not callable(value):
        raise ValidationError(ERROR_CALLABLE_INVALID.format(name=name, type_name=type(value).__name__))


def validate_config_parameters(params: dict[str, Any]) -> None:
    """Validate all revalidation policies at once.

    Args:
        params: Mapping of field name to value, as stored in ``SWRConfig``

    Raises:
        ValidationError: If any parameter is invalid
    """
    for name in DURATION_FIELDS:
        if name in params:
            validate_duration(name, params[name])
    for name in COUNT_FIELDS:
        if name in params:
            validate_count(name, params[name])
    for name in CALLABLE_FIELDS:
        if name in params:
            validate_callable(name, params[name])
    for name in OPTIONAL_CALLABLE_FIELDS:
        if name in params:
            validate_callable(name, params[name], optional=True)


def _validate_number_type(name: str, value: Any) -> None:
    """Validate that a parameter is an int or float (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(ERROR_DURATION_TYPE_INVALID.format(name=name, type_name=type(value).__name__))
