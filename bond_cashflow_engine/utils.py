from __future__ import annotations

import math
from decimal import Decimal

import pandas as pd

from .bonds import CapitalizationFrequency, CouponFrequency

# Fixed 30-day-month convention, independent of the bond's day-count base.
COUPON_DAYS = {
    CouponFrequency.MONTHLY: 30,
    CouponFrequency.BIMONTHLY: 60,
    CouponFrequency.QUARTERLY: 90,
    CouponFrequency.FOUR_MONTHLY: 120,
    CouponFrequency.SEMIANNUAL: 180,
    CouponFrequency.ANNUAL: 360,
}

CAPITALIZATION_DAYS = {
    CapitalizationFrequency.DAILY: 1,
    CapitalizationFrequency.BIWEEKLY: 15,
    CapitalizationFrequency.MONTHLY: 30,
    CapitalizationFrequency.BIMONTHLY: 60,
    CapitalizationFrequency.QUARTERLY: 90,
    CapitalizationFrequency.FOUR_MONTHLY: 120,
    CapitalizationFrequency.SEMIANNUAL: 180,
    CapitalizationFrequency.ANNUAL: 360,
}

ONE = Decimal(1)
ZERO = Decimal(0)


def coupon_days(frequency: CouponFrequency) -> int:
    return COUPON_DAYS[CouponFrequency.parse(frequency)]


def capitalization_days(frequency: CapitalizationFrequency) -> int:
    return CAPITALIZATION_DAYS[CapitalizationFrequency.parse(frequency)]


def to_decimal(value) -> Decimal:
    """
    Exact Decimal from an int/float/str/Decimal. Floats go through str() so
    0.045 becomes Decimal('0.045') rather than its binary expansion.
    Raises ValueError for booleans, unparsable text and non-finite values.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        out = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number: {value!r}")
        out = Decimal(repr(value))
    else:
        try:
            out = Decimal(str(value).strip())
        except ArithmeticError as exc:
            raise ValueError(f"Not a number: {value!r}") from exc

    if not out.is_finite():
        raise ValueError(f"Non-finite number: {value!r}")
    return out


def compound_periodic_rate(annual_rate: Decimal, period_days: int, day_count_base: int) -> Decimal:
    """(1 + annual)^(period_days / base) - 1, evaluated in the active decimal context."""
    exponent = Decimal(period_days) / Decimal(day_count_base)
    return (ONE + annual_rate) ** exponent - ONE


def period_date(issue_date: pd.Timestamp, period: int, days_per_period: int) -> pd.Timestamp:
    """Period p falls p * days_per_period calendar days after issue."""
    return pd.Timestamp(issue_date) + pd.Timedelta(days=period * days_per_period)


def yearfrac_actual(start: pd.Timestamp, end: pd.Timestamp, days_per_year: int = 365) -> float:
    """Actual days between two dates over a fixed year length (ACT/365 by default)."""
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)

    if end < start:
        raise ValueError(f"end < start: {start=} {end=}")

    return (end - start).days / float(days_per_year)
