"""
Bond Cash-Flow Engine

Modules:
- bonds: bond terms + coupon/capitalization/rate/grace enumerations
- validation: raw-input normalizer, exhaustive validation
- parameters: period-level constants (periodic rates, period counts, upfront costs)
- cashflows: period-by-period schedule (fold over periods 0..N) + tabular views
- risk: present value, duration, modified duration, convexity
- yields: Newton-Raphson internal yields, annualized
- metrics: valuation metrics + issuer/investor split
- engine: single-bond entry point returning a tagged outcome
- scenarios: discount-rate / inflation shocks on one bond
- utils: day mappings, period dates, decimal helpers
"""
from .bonds import BondTerms, CapitalizationFrequency, CouponFrequency, GraceType, RateType
from .cashflows import CashFlowPeriod, cashflow_table, check_flow_integrity, generate_cashflows, iter_cashflows
from .config import DEFAULT_SETTINGS, EngineSettings
from .engine import (
    BondValuation,
    CalculationFailure,
    CalculationOutcome,
    ValidationFailure,
    calculate_bond,
    calculate_quick_metrics,
)
from .errors import BondValidationError, CalculationError, ValidationIssue
from .metrics import ValuationMetrics, compute_metrics, metrics_by_role
from .parameters import DerivedParameters, derive_parameters
from .scenarios import run_discount_rate_scenarios, run_inflation_scenarios
from .validation import normalize_terms, validate_terms
from .yields import IrrSolution

__version__ = "0.1.0"
