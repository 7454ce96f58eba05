"""
Single-bond entry point.

calculate_bond never raises for bad input or a failed calculation; it
returns one of three outcomes and the caller branches on it:

    outcome = calculate_bond(raw_terms)
    if isinstance(outcome, ValidationFailure): ...   # fix the input
    elif isinstance(outcome, CalculationFailure): ...  # inspect outcome.error
    else: schedule = outcome.periods

`unwrap()` converts a failure back into its exception for callers that
prefer raising.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import DecimalException, localcontext
from typing import Any, ClassVar, Mapping, Optional, Tuple, Union

from .bonds import BondTerms
from .cashflows import CashFlowPeriod, check_flow_integrity, generate_cashflows
from .config import DEFAULT_SETTINGS, EngineSettings
from .errors import BondValidationError, CalculationError, ValidationIssue
from .metrics import ValuationMetrics, compute_metrics
from .parameters import DerivedParameters, derive_parameters
from .validation import normalize_terms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BondValuation:
    terms: BondTerms
    parameters: DerivedParameters
    periods: Tuple[CashFlowPeriod, ...]
    metrics: ValuationMetrics
    ok: ClassVar[bool] = True

    def unwrap(self) -> "BondValuation":
        return self


@dataclass(frozen=True)
class ValidationFailure:
    issues: Tuple[ValidationIssue, ...]
    ok: ClassVar[bool] = False

    def unwrap(self) -> BondValuation:
        raise BondValidationError(self.issues)


@dataclass(frozen=True)
class CalculationFailure:
    error: CalculationError
    ok: ClassVar[bool] = False

    def unwrap(self) -> BondValuation:
        raise self.error


CalculationOutcome = Union[BondValuation, ValidationFailure, CalculationFailure]


def calculate_bond(
    terms: Union[BondTerms, Mapping[str, Any]],
    settings: Optional[EngineSettings] = None,
) -> CalculationOutcome:
    settings = settings or DEFAULT_SETTINGS

    normalized, issues = normalize_terms(terms)
    if issues:
        logger.warning("Validation failed with %d issue(s): %s", len(issues), ", ".join(i.field for i in issues))
        return ValidationFailure(tuple(issues))

    with localcontext(settings.decimal_context):
        try:
            params = derive_parameters(normalized)
            periods = generate_cashflows(normalized, params)
            for problem in check_flow_integrity(periods, settings.check_tolerance):
                logger.warning("Schedule check failed for %s: %s", normalized.bond_id, problem)
            metrics = compute_metrics(periods, params, settings)
        except CalculationError as exc:
            logger.error("Calculation failed for %s: %s", normalized.bond_id, exc)
            return CalculationFailure(exc)
        except DecimalException as exc:
            err = CalculationError(f"arithmetic failure: {type(exc).__name__}")
            err.__cause__ = exc
            logger.error("Calculation failed for %s: %s", normalized.bond_id, err)
            return CalculationFailure(err)

    logger.info(
        "Valued %s: %d periods, present value %s, converged=%s",
        normalized.bond_id,
        params.total_periods,
        metrics.present_value,
        metrics.solver_converged,
    )
    return BondValuation(normalized, params, periods, metrics)


def calculate_quick_metrics(
    terms: Union[BondTerms, Mapping[str, Any]],
    settings: Optional[EngineSettings] = None,
) -> ValuationMetrics:
    """Metrics only; raises BondValidationError / CalculationError on failure."""
    return calculate_bond(terms, settings).unwrap().metrics
