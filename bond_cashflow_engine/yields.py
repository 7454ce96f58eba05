"""
Annualized internal yields (issuer gross, issuer net of tax shield, investor).

The root is found with Newton-Raphson on a periodic rate. Flow times are
the actual days since issue over 365, expressed in coupon periods of the
bond's day-count base, so the periodic rate annualizes with
(1 + i)^(base / coupon_days) - 1.
"""
from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence, Tuple

import numpy as np
from scipy.optimize import newton

from .cashflows import CashFlowPeriod
from .config import DEFAULT_SETTINGS, EngineSettings
from .parameters import DerivedParameters
from .utils import ONE, yearfrac_actual

logger = logging.getLogger(__name__)

NAN = Decimal("NaN")


@dataclass(frozen=True)
class IrrSolution:
    label: str
    rate: Decimal            # annualized
    periodic_rate: float
    iterations: int
    converged: bool


def flow_times(periods: Sequence[CashFlowPeriod], params: DerivedParameters, days_per_year: int = 365) -> np.ndarray:
    """Time of each flow in coupon periods, measured from the period-0 date in actual days."""
    t0 = periods[0].date
    per_year = params.day_count_base / params.coupon_days
    return np.array([yearfrac_actual(t0, cf.date, days_per_year) * per_year for cf in periods], dtype=float)


def solve_periodic_irr(
    flows: Sequence[float],
    times: Sequence[float],
    guess: float = 0.10,
    tol: float = 1e-8,
    maxiter: int = 100,
) -> Tuple[float, int, bool]:
    """
    Newton-Raphson root of sum(CF_k * (1+r)^-t_k). Never raises on
    non-convergence: returns (last iterate, iterations, converged).
    """
    cfs = np.asarray(flows, dtype=float)
    ts = np.asarray(times, dtype=float)

    def npv(r: float) -> float:
        return float(np.sum(cfs * (1.0 + r) ** (-ts)))

    def dnpv(r: float) -> float:
        return float(np.sum(-ts * cfs * (1.0 + r) ** (-ts - 1.0)))

    # flat or undefined NPV regions are reported through `converged`
    with np.errstate(all="ignore"), warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        root, info = newton(npv, guess, fprime=dnpv, tol=tol, maxiter=maxiter, full_output=True, disp=False)

    return float(root), int(info.iterations), bool(info.converged)


def annualize(periodic_rate: float, params: DerivedParameters) -> Decimal:
    if not math.isfinite(periodic_rate) or periodic_rate <= -1.0:
        return NAN
    exponent = Decimal(params.day_count_base) / Decimal(params.coupon_days)
    return (ONE + Decimal(repr(periodic_rate))) ** exponent - ONE


def annualized_yield(
    label: str,
    flows: Sequence[Decimal],
    times: np.ndarray,
    params: DerivedParameters,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> IrrSolution:
    periodic, iterations, converged = solve_periodic_irr(
        [float(f) for f in flows],
        times,
        guess=settings.irr_initial_guess,
        tol=settings.irr_tolerance,
        maxiter=settings.irr_max_iterations,
    )
    if not converged:
        logger.warning("%s yield did not converge after %d iterations (last iterate %r)", label, iterations, periodic)

    return IrrSolution(
        label=label,
        rate=annualize(periodic, params),
        periodic_rate=periodic,
        iterations=iterations,
        converged=converged,
    )


def bond_yields(
    periods: Sequence[CashFlowPeriod],
    params: DerivedParameters,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[IrrSolution, IrrSolution, IrrSolution]:
    """(issuer gross, issuer net of tax shield, investor) annualized yields."""
    times = flow_times(periods, params, settings.actual_days_per_year)
    return (
        annualized_yield("issuer_gross", [cf.issuer_flow for cf in periods], times, params, settings),
        annualized_yield("issuer_net", [cf.issuer_flow_net for cf in periods], times, params, settings),
        annualized_yield("investor", [cf.investor_flow for cf in periods], times, params, settings),
    )
