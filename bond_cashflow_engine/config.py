from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Context, DivisionByZero, InvalidOperation, Overflow


def default_decimal_context() -> Context:
    return Context(prec=28, rounding=ROUND_HALF_UP, traps=[InvalidOperation, DivisionByZero, Overflow])


@dataclass(frozen=True)
class EngineSettings:
    """
    Per-call engine configuration. The decimal context is copied into a
    local context for the duration of each calculation and never installed
    globally, so concurrent valuations cannot see each other's settings.
    """
    decimal_context: Context = field(default_factory=default_decimal_context)

    # Newton-Raphson for the annualized yields
    irr_initial_guess: float = 0.10
    irr_tolerance: float = 1e-8
    irr_max_iterations: int = 100
    actual_days_per_year: int = 365

    # absolute tolerance for schedule integrity checks
    check_tolerance: float = 1e-6


DEFAULT_SETTINGS = EngineSettings()
