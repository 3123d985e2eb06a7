"""Value types that judge uevent observations against configured criteria."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import IntEnum
from typing import Any


class CriteriaMatches(IntEnum):
    """Outcome of applying criteria; levels follow diagnostic status levels."""

    OK = 0
    WARN = 1
    ERROR = 2
    STALE = 3
    UNDEFINED = 4

    def __str__(self) -> str:
        return self.name


class ValueTypeBase:
    """Value type that accepts any criteria and never decides on a value."""

    def set_criteria(self, criteria: Mapping[str, str]) -> None:
        """Accept criteria; the base type ignores them."""

    def apply_criteria(self, values: Sequence[Any]) -> CriteriaMatches:
        """Return UNDEFINED for any input."""
        return CriteriaMatches.UNDEFINED


class ErrorFlagType(ValueTypeBase):
    """Compares a single string value with configured OK and ERROR values."""

    KEY_OK = "status_ok"
    KEY_ERROR = "status_error"

    def __init__(self) -> None:
        self.ok_value = ""
        self.error_value = ""

    def set_criteria(self, criteria: Mapping[str, str]) -> None:
        """Take the OK and ERROR values from ``criteria``; both keys are required."""
        if self.KEY_OK not in criteria or self.KEY_ERROR not in criteria:
            raise ValueError(
                f"Missing required criteria keys '{self.KEY_OK}' and "
                f"'{self.KEY_ERROR}' are mandatory"
            )
        self.ok_value = criteria[self.KEY_OK]
        self.error_value = criteria[self.KEY_ERROR]

    def apply_criteria(self, values: Sequence[Any]) -> CriteriaMatches:
        """Judge exactly one string value."""
        if len(values) != 1:
            raise ValueError("Incorrect number of values provided.")
        (value,) = values
        if not isinstance(value, str):
            raise TypeError(f"expected a string value, got {type(value).__name__}")
        if value == self.ok_value:
            return CriteriaMatches.OK
        if value == self.error_value:
            return CriteriaMatches.ERROR
        return CriteriaMatches.UNDEFINED


_VALUE_TYPES: dict[str, Callable[[], ValueTypeBase]] = {
    "error_flag": ErrorFlagType,
}


def get_value_type(value_type: str) -> ValueTypeBase:
    """Create the value type registered under ``value_type``, or a base type."""
    factory = _VALUE_TYPES.get(value_type, ValueTypeBase)
    return factory()