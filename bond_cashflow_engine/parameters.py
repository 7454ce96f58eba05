from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from .bonds import BondTerms, RateType
from .errors import CalculationError
from .utils import ONE, capitalization_days, compound_periodic_rate, coupon_days

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedParameters:
    day_count_base: int
    coupon_days: int
    capitalization_days: int
    periods_per_year: Decimal
    total_periods: int
    effective_annual_rate: Decimal
    periodic_coupon_rate: Decimal
    periodic_discount_rate: Decimal
    issuer_upfront_cost: Decimal
    investor_upfront_cost: Decimal

    @property
    def period_year_fraction(self) -> Decimal:
        """Length of one coupon period in years of the day-count base."""
        return Decimal(self.coupon_days) / Decimal(self.day_count_base)


def periods_per_year(day_count_base: int, coupon_day_count: int) -> Decimal:
    return Decimal(day_count_base) / Decimal(coupon_day_count)


def total_periods(day_count_base: int, coupon_day_count: int, term_years: int) -> Decimal:
    # base * term / coupon_days keeps exact integers exact (365*6/30 = 73)
    return Decimal(day_count_base) * Decimal(term_years) / Decimal(coupon_day_count)


def effective_annual_rate(rate_type: RateType, annual_rate: Decimal, day_count_base: int, cap_days: int) -> Decimal:
    """
    Effective rates pass through; nominal rates compound at the
    capitalization cadence: (1 + j/m)^m - 1 with m = base / cap_days.
    """
    if RateType.parse(rate_type) is RateType.EFFECTIVE:
        return annual_rate

    m = Decimal(day_count_base) / Decimal(cap_days)
    return (ONE + annual_rate / m) ** m - ONE


def issuer_upfront_cost(terms: BondTerms) -> Decimal:
    pct = terms.structuring_pct + terms.placement_pct + terms.float_pct + terms.settlement_pct
    return terms.commercial_price * pct


def investor_upfront_cost(terms: BondTerms) -> Decimal:
    return terms.commercial_price * (terms.float_pct + terms.settlement_pct)


def derive_parameters(terms: BondTerms) -> DerivedParameters:
    """
    Period-level constants for validated terms. Raises CalculationError when
    the frequency/day-count combination yields a fractional period count.
    """
    base = terms.day_count_base
    c_days = coupon_days(terms.coupon_frequency)
    k_days = capitalization_days(terms.capitalization_frequency)

    n = total_periods(base, c_days, terms.term_years)
    if n != n.to_integral_value() or n <= 0:
        raise CalculationError(
            f"{terms.coupon_frequency.value} coupons on a {base}-day base do not give a whole number of periods",
            field="total_periods",
            value=n,
        )

    tea = effective_annual_rate(terms.rate_type, terms.annual_rate, base, k_days)

    params = DerivedParameters(
        day_count_base=base,
        coupon_days=c_days,
        capitalization_days=k_days,
        periods_per_year=periods_per_year(base, c_days),
        total_periods=int(n),
        effective_annual_rate=tea,
        periodic_coupon_rate=compound_periodic_rate(tea, c_days, base),
        periodic_discount_rate=compound_periodic_rate(terms.discount_rate, c_days, base),
        issuer_upfront_cost=issuer_upfront_cost(terms),
        investor_upfront_cost=investor_upfront_cost(terms),
    )
    logger.debug("Derived parameters for %s: %s", terms.bond_id, params)
    return params
