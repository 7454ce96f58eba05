from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import pandas as pd

from .bonds import BondTerms
from .config import EngineSettings
from .engine import ValidationFailure, calculate_bond
from .errors import BondValidationError
from .validation import normalize_terms

BP = Decimal(10000)


def _base_terms(terms: Union[BondTerms, Mapping[str, Any]]) -> BondTerms:
    normalized, issues = normalize_terms(terms)
    if issues:
        raise BondValidationError(issues)
    return normalized


def _run(
    base: BondTerms,
    prefix: str,
    shocks_bp: Iterable[float],
    shock: Callable[[BondTerms, Decimal], BondTerms],
    settings: Optional[EngineSettings],
) -> pd.DataFrame:
    base_metrics = calculate_bond(base, settings).unwrap().metrics
    base_pv = float(base_metrics.present_value)

    rows = [{"scenario": "BASE", "shock_bp": 0.0, **_metric_columns(base_metrics), "pv_change": 0.0, "error": None}]

    for bp in shocks_bp:
        name = f"{prefix}_{bp:+g}bp"
        outcome = calculate_bond(shock(base, Decimal(str(bp)) / BP), settings)
        if not outcome.ok:
            if isinstance(outcome, ValidationFailure):
                msg = "; ".join(i.message for i in outcome.issues)
            else:
                msg = str(outcome.error)
            rows.append({"scenario": name, "shock_bp": float(bp), "error": msg})
            continue

        cols = _metric_columns(outcome.metrics)
        rows.append({"scenario": name, "shock_bp": float(bp), **cols, "pv_change": cols["present_value"] - base_pv, "error": None})

    return pd.DataFrame(
        rows,
        columns=[
            "scenario", "shock_bp", "present_value", "duration", "modified_duration", "convexity",
            "issuer_gross_yield", "investor_yield", "pv_change", "error",
        ],
    )


def _metric_columns(m) -> dict:
    return {
        "present_value": float(m.present_value),
        "duration": float(m.duration),
        "modified_duration": float(m.modified_duration),
        "convexity": float(m.convexity),
        "issuer_gross_yield": float(m.issuer_gross_yield),
        "investor_yield": float(m.investor_yield),
    }


def run_discount_rate_scenarios(
    terms: Union[BondTerms, Mapping[str, Any]],
    shocks_bp: Iterable[float] = (-100, -50, 50, 100),
    settings: Optional[EngineSettings] = None,
) -> pd.DataFrame:
    """Revalue one bond with its annual discount rate shifted by each shock (in bp)."""
    base = _base_terms(terms)
    return _run(base, "DISC", shocks_bp, lambda t, s: replace(t, discount_rate=t.discount_rate + s), settings)


def run_inflation_scenarios(
    terms: Union[BondTerms, Mapping[str, Any]],
    shocks_bp: Iterable[float] = (-200, -100, 100, 200),
    settings: Optional[EngineSettings] = None,
) -> pd.DataFrame:
    """Revalue one bond with every year of its inflation path shifted by each shock (in bp)."""
    base = _base_terms(terms)
    return _run(
        base,
        "INFL",
        shocks_bp,
        lambda t, s: replace(t, inflation_series=tuple(x + s for x in t.inflation_series)),
        settings,
    )
