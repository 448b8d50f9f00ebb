"""Payload validation — business rules run after a payload deserialized."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pydantic import ValidationError as PydanticValidationError

ROOT_FIELD = "__root__"


@dataclass(frozen=True)
class Violation:
    """One broken rule, attributed to a (dotted) payload field."""

    field: str
    message: str


@dataclass
class ValidationResult:
    """Violations found in one payload; empty means the payload is accepted.

    Usage::

        result = ValidationResult()
        if payload.amount <= 0:
            result.add("amount", "must be positive")
    """

    violations: list[Violation] = field(default_factory=list)

    @classmethod
    def of(cls, violations: Iterable[Violation]) -> ValidationResult:
        return cls(list(violations))

    @classmethod
    def reject(cls, field_name: str, message: str) -> ValidationResult:
        return cls([Violation(field_name, message)])

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationResult:
        """One violation per pydantic error, located by its dotted ``loc``."""
        return cls.of(
            Violation(
                ".".join(str(part) for part in err.get("loc", ())) or ROOT_FIELD,
                err.get("msg", "invalid value"),
            )
            for err in exc.errors()
        )

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def errors(self) -> dict[str, list[str]]:
        """Messages grouped by field, in the order they were found."""
        grouped: dict[str, list[str]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.field, []).append(violation.message)
        return grouped

    def add(self, field_name: str, message: str) -> None:
        self.violations.append(Violation(field_name, message))

    def extend(self, other: ValidationResult) -> None:
        self.violations.extend(other.violations)


@runtime_checkable
class IPayloadValidator(Protocol):
    """Business-rule check run on a payload after deserialization."""

    async def validate(self, payload: Any) -> ValidationResult: ...


class ValidatorChain:
    """Runs every validator in order and reports all violations together."""

    def __init__(self, validators: Iterable[IPayloadValidator] = ()) -> None:
        self._validators = list(validators)

    def append(self, validator: IPayloadValidator) -> None:
        self._validators.append(validator)

    async def validate(self, payload: Any) -> ValidationResult:
        found = ValidationResult()
        for validator in self._validators:
            found.extend(await validator.validate(payload))
        return found

    def __len__(self) -> int:
        return len(self._validators)
