from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    code: str
    message: str
    expected: Any = None
    received: Any = None


class BondValidationError(ValueError):
    """Raised when a caller unwraps a failed validation."""

    def __init__(self, issues: Sequence[ValidationIssue]):
        self.issues = tuple(issues)
        summary = "; ".join(f"{i.field}: {i.message}" for i in self.issues)
        super().__init__(f"Validation failed: {summary}")


class CalculationError(ValueError):
    """
    An invariant broke while deriving parameters or generating periods.
    `period`, `field` and `value` locate the offending quantity.
    """

    def __init__(self, message: str, period: Optional[int] = None, field: Optional[str] = None, value: Any = None):
        self.period = period
        self.field = field
        self.value = value

        where = []
        if period is not None:
            where.append(f"period={period}")
        if field is not None:
            where.append(f"field={field}")
        if value is not None:
            where.append(f"value={value}")
        super().__init__(f"{message} ({', '.join(where)})" if where else message)
