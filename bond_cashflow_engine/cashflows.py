"""
Period cash-flow generator.

Period 0 is the disbursement; periods 1..N are produced by a fold that only
carries the previous period's indexed capital, coupon, amortization and
grace state. Signs follow the issuer's perspective: outflows are negative.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal, DecimalException
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from .bonds import BondTerms, GraceType
from .errors import CalculationError
from .parameters import DerivedParameters
from .utils import ONE, ZERO, compound_periodic_rate, period_date


@dataclass(frozen=True)
class CashFlowPeriod:
    period: int
    date: pd.Timestamp
    annual_inflation: Optional[Decimal]
    period_inflation: Optional[Decimal]
    grace: Optional[GraceType]
    capital: Optional[Decimal]
    indexed_capital: Optional[Decimal]
    coupon: Optional[Decimal]
    amortization: Optional[Decimal]
    installment: Optional[Decimal]
    premium: Optional[Decimal]
    tax_shield: Optional[Decimal]
    issuer_flow: Decimal
    issuer_flow_net: Decimal
    investor_flow: Decimal
    discounted_flow: Decimal
    duration_factor: Decimal
    convexity_factor: Decimal


class _Carry(NamedTuple):
    indexed_capital: Decimal
    coupon: Decimal
    amortization: Decimal
    grace: GraceType


def year_index(period: int, params: DerivedParameters) -> int:
    """Annual-series slot for period p (1-indexed): floor((p - 1) / periods_per_year)."""
    return (period - 1) * params.coupon_days // params.day_count_base


def amortization(period: int, n: int, grace: GraceType, indexed_capital: Decimal) -> Decimal:
    # bullet repayment; grace years never amortize, not even at maturity
    if grace is GraceType.NORMAL and period == n:
        return -indexed_capital
    return ZERO


def installment(grace: GraceType, coupon: Decimal, amort: Decimal) -> Decimal:
    if grace is GraceType.TOTAL:
        return ZERO
    if grace is GraceType.PARTIAL:
        return coupon
    return coupon + amort


def initial_period(terms: BondTerms, params: DerivedParameters) -> CashFlowPeriod:
    issuer = terms.commercial_price - params.issuer_upfront_cost
    investor = -issuer
    return CashFlowPeriod(
        period=0,
        date=pd.Timestamp(terms.issue_date),
        annual_inflation=None,
        period_inflation=None,
        grace=None,
        capital=None,
        indexed_capital=None,
        coupon=None,
        amortization=None,
        installment=None,
        premium=None,
        tax_shield=None,
        issuer_flow=issuer,
        issuer_flow_net=issuer,
        investor_flow=investor,
        discounted_flow=investor,
        duration_factor=ZERO,
        convexity_factor=ZERO,
    )


def _next_period(p: int, carry: Optional[_Carry], terms: BondTerms, params: DerivedParameters) -> Tuple[CashFlowPeriod, _Carry]:
    n = params.total_periods
    idx = year_index(p, params)
    annual_inflation = terms.inflation_series[idx]
    grace = terms.grace_series[idx]

    period_inflation = compound_periodic_rate(annual_inflation, params.coupon_days, params.day_count_base)

    if carry is None:
        capital = terms.nominal_value
    elif carry.grace is GraceType.TOTAL:
        # unpaid coupon capitalizes
        capital = carry.indexed_capital - carry.coupon
    else:
        capital = carry.indexed_capital + carry.amortization

    indexed = capital * (ONE + period_inflation)
    coupon = -indexed * params.periodic_coupon_rate
    amort = amortization(p, n, grace, indexed)
    quota = installment(grace, coupon, amort)
    premium = -(terms.premium_pct * terms.nominal_value) if p == n else ZERO
    shield = -coupon * terms.income_tax_rate

    issuer = quota + premium
    investor = -issuer
    discounted = investor / (ONE + params.periodic_discount_rate) ** p

    row = CashFlowPeriod(
        period=p,
        date=period_date(terms.issue_date, p, params.coupon_days),
        annual_inflation=annual_inflation,
        period_inflation=period_inflation,
        grace=grace,
        capital=capital,
        indexed_capital=indexed,
        coupon=coupon,
        amortization=amort,
        installment=quota,
        premium=premium,
        tax_shield=shield,
        issuer_flow=issuer,
        issuer_flow_net=issuer + shield,
        investor_flow=investor,
        discounted_flow=discounted,
        duration_factor=discounted * p * params.period_year_fraction,
        convexity_factor=discounted * p * (p + 1),
    )
    return row, _Carry(indexed, coupon, amort, grace)


def _check_period(row: CashFlowPeriod) -> None:
    for f in fields(row):
        v = getattr(row, f.name)
        if isinstance(v, Decimal) and not v.is_finite():
            raise CalculationError("non-finite intermediate value", period=row.period, field=f.name, value=v)

    if row.capital is not None and row.capital < 0:
        raise CalculationError("outstanding capital went negative", period=row.period, field="capital", value=row.capital)


def iter_cashflows(terms: BondTerms, params: DerivedParameters) -> Iterator[CashFlowPeriod]:
    """Stream periods 0..N in order. Arithmetic failures surface as CalculationError."""
    yield initial_period(terms, params)

    carry: Optional[_Carry] = None
    for p in range(1, params.total_periods + 1):
        try:
            row, carry = _next_period(p, carry, terms, params)
        except DecimalException as exc:
            raise CalculationError(f"arithmetic failure: {type(exc).__name__}", period=p) from exc
        _check_period(row)
        yield row


def generate_cashflows(terms: BondTerms, params: DerivedParameters) -> Tuple[CashFlowPeriod, ...]:
    return tuple(iter_cashflows(terms, params))


# ---- tabular views ----

ISSUER_COLUMNS = [
    "period", "date", "annual_inflation", "period_inflation", "grace", "capital", "indexed_capital",
    "coupon", "amortization", "installment", "premium", "tax_shield", "issuer_flow", "issuer_flow_net",
]

INVESTOR_COLUMNS = [
    "period", "date", "annual_inflation", "period_inflation", "indexed_capital", "coupon", "amortization",
    "investor_flow", "discounted_flow", "duration_factor", "convexity_factor",
]


def cashflow_table(
    periods: Sequence[CashFlowPeriod],
    role: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> pd.DataFrame:
    """
    Schedule as a DataFrame of floats (NaN where a field is undefined, i.e.
    period 0). role="issuer" / "investor" selects that side's columns;
    start/end restrict to an inclusive period range.
    """
    rows = []
    for cf in periods:
        if start is not None and cf.period < start:
            continue
        if end is not None and cf.period > end:
            continue
        row = {}
        for f in fields(cf):
            v = getattr(cf, f.name)
            if isinstance(v, Decimal):
                v = float(v)
            elif isinstance(v, GraceType):
                v = v.value
            row[f.name] = v
        rows.append(row)

    out = pd.DataFrame(rows, columns=[f.name for f in fields(CashFlowPeriod)])

    if role is None:
        return out
    if role == "issuer":
        return out[ISSUER_COLUMNS]
    if role == "investor":
        return out[INVESTOR_COLUMNS]
    raise ValueError(f"Unknown role: {role!r} (expected 'issuer' or 'investor')")


def check_flow_integrity(periods: Sequence[CashFlowPeriod], tolerance: float = 1e-6) -> List[str]:
    """Schedule invariants that should always hold; returns the violations found."""
    problems: List[str] = []
    tol = Decimal(repr(tolerance))

    if not periods:
        return ["schedule is empty"]

    n = periods[-1].period
    for i, cf in enumerate(periods):
        if cf.period != i:
            problems.append(f"period index {cf.period} at position {i}")

        if cf.investor_flow != -cf.issuer_flow:
            problems.append(f"period {cf.period}: investor flow does not mirror issuer flow")

        if cf.period == 0:
            continue

        if cf.capital is not None and cf.capital < 0:
            problems.append(f"period {cf.period}: negative capital")

        if cf.grace in (GraceType.TOTAL, GraceType.PARTIAL) and cf.amortization != 0:
            problems.append(f"period {cf.period}: amortization under {cf.grace.name.lower()} grace")

        if cf.grace is GraceType.NORMAL and cf.period == n:
            if abs(abs(cf.amortization) - cf.indexed_capital) > tol:
                problems.append(f"period {cf.period}: terminal amortization does not repay indexed capital")

        expected = installment(cf.grace, cf.coupon, cf.amortization)
        if abs(cf.installment - expected) > tol:
            problems.append(f"period {cf.period}: installment does not match coupon/amortization")

    return problems
