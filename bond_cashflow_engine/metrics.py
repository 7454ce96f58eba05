from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Sequence, Tuple

from .cashflows import CashFlowPeriod
from .config import DEFAULT_SETTINGS, EngineSettings
from .parameters import DerivedParameters
from .risk import convexity, duration, modified_duration, present_value, profit_loss
from .yields import IrrSolution, bond_yields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuationMetrics:
    present_value: Decimal
    profit_loss: Decimal
    duration: Decimal
    modified_duration: Decimal
    convexity: Decimal
    duration_plus_convexity: Decimal
    issuer_gross_yield: Decimal
    issuer_net_yield: Decimal
    investor_yield: Decimal
    yield_solutions: Tuple[IrrSolution, ...] = ()

    @property
    def solver_converged(self) -> bool:
        """False when any yield is a non-converged last iterate (treat it with reduced confidence)."""
        return all(s.converged for s in self.yield_solutions)


def compute_metrics(
    periods: Sequence[CashFlowPeriod],
    params: DerivedParameters,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> ValuationMetrics:
    mac = duration(periods)
    conv = convexity(periods, params)
    gross, net, investor = bond_yields(periods, params, settings)

    return ValuationMetrics(
        present_value=present_value(periods),
        profit_loss=profit_loss(periods),
        duration=mac,
        modified_duration=modified_duration(mac, params),
        convexity=conv,
        duration_plus_convexity=mac + conv,
        issuer_gross_yield=gross.rate,
        issuer_net_yield=net.rate,
        investor_yield=investor.rate,
        yield_solutions=(gross, net, investor),
    )


def metrics_by_role(metrics: ValuationMetrics) -> Dict[str, Dict[str, Decimal]]:
    """
    Issuer and investor views of one valuation. The issuer's NPV is the
    profit/loss against the net disbursement; the investor's is the
    present value itself.
    """
    risk = {
        "duration": metrics.duration,
        "modified_duration": metrics.modified_duration,
        "convexity": metrics.convexity,
        "duration_plus_convexity": metrics.duration_plus_convexity,
    }
    return {
        "issuer": {
            "present_value": metrics.present_value,
            "npv": metrics.profit_loss,
            "gross_yield": metrics.issuer_gross_yield,
            "net_yield": metrics.issuer_net_yield,
            **risk,
        },
        "investor": {
            "present_value": metrics.present_value,
            "npv": metrics.present_value,
            "yield": metrics.investor_yield,
            **risk,
        },
    }
