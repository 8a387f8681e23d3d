"""
Validation strategy for records.

A validator inspects a record before it is saved and returns findings; an
empty list means the record may be written. ``save()`` turns findings into a
silent no-op (0 rows) and leaves them on ``record.validation_errors``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rowbase.domain.record import BaseRecord


@dataclass(frozen=True)
class ValidationFinding:
    column: Optional[str]
    reason: str

    def __str__(self) -> str:
        return f"{self.column}: {self.reason}" if self.column else self.reason


@runtime_checkable
class Validator(Protocol):
    def validate(self, record: "BaseRecord") -> List[ValidationFinding]:
        ...


class NullValidator:
    """Accepts every record."""

    def validate(self, record: "BaseRecord") -> List[ValidationFinding]:
        return []


class RequiredColumns:
    """
    Reject records where any of ``columns`` is None or an empty string.
    """

    def __init__(self, *columns: str) -> None:
        self.columns = columns

    def validate(self, record: "BaseRecord") -> List[ValidationFinding]:
        findings = []
        for column in self.columns:
            value = record.get(column)
            if value is None or value == "":
                findings.append(ValidationFinding(column, "is required"))
        return findings


class ChainedValidator:
    """Run several validators and concatenate their findings."""

    def __init__(self, *validators: Validator) -> None:
        self.validators = validators

    def validate(self, record: "BaseRecord") -> List[ValidationFinding]:
        findings: List[ValidationFinding] = []
        for validator in self.validators:
            findings.extend(validator.validate(record))
        return findings


class CallableValidator:
    """Adapt a ``record -> list[ValidationFinding]`` function."""

    def __init__(self, func: Callable[["BaseRecord"], List[ValidationFinding]]) -> None:
        self.func = func

    def validate(self, record: "BaseRecord") -> List[ValidationFinding]:
        return list(self.func(record))


__all__ = [
    "CallableValidator",
    "ChainedValidator",
    "NullValidator",
    "RequiredColumns",
    "ValidationFinding",
    "Validator",
]
