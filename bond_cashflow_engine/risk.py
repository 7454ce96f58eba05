from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from .cashflows import CashFlowPeriod
from .errors import CalculationError
from .parameters import DerivedParameters
from .utils import ONE, ZERO


def _returns(periods: Sequence[CashFlowPeriod]) -> Sequence[CashFlowPeriod]:
    """Periods 1..N: everything after the disbursement."""
    return [cf for cf in periods if cf.period > 0]


def present_value(periods: Sequence[CashFlowPeriod]) -> Decimal:
    """Investor-side present value of periods 1..N (period 0 is the price paid, not a return)."""
    return sum((cf.discounted_flow for cf in _returns(periods)), ZERO)


def profit_loss(periods: Sequence[CashFlowPeriod]) -> Decimal:
    return periods[0].investor_flow + present_value(periods)


def duration(periods: Sequence[CashFlowPeriod]) -> Decimal:
    """
    Macaulay duration in years: time-weighted discounted flows over the
    present value. The weighting factor of period 0 is zero.
    """
    pv = present_value(periods)
    if pv == 0:
        raise CalculationError("duration undefined: discounted flows sum to zero", field="duration", value=pv)

    weighted = sum((cf.duration_factor for cf in periods), ZERO)
    return weighted / pv


def modified_duration(mac_duration: Decimal, params: DerivedParameters) -> Decimal:
    return mac_duration / (ONE + params.periodic_discount_rate)


def convexity(periods: Sequence[CashFlowPeriod], params: DerivedParameters) -> Decimal:
    """
    sum(P_t * t * (t+1)) / ((1+i)^2 * sum(P_t) * (base/coupon_days)^2),
    sums over periods 1..N; the last factor converts period units to years.
    """
    returns = _returns(periods)
    pv = sum((cf.discounted_flow for cf in returns), ZERO)
    if pv == 0:
        raise CalculationError("convexity undefined: discounted flows sum to zero", field="convexity", value=pv)

    factors = sum((cf.convexity_factor for cf in returns), ZERO)
    ppy = Decimal(params.day_count_base) / Decimal(params.coupon_days)
    return factors / ((ONE + params.periodic_discount_rate) ** 2 * pv * ppy ** 2)
