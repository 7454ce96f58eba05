"""
Input normalizer / validator.

Accepts either a BondTerms or a raw mapping keyed by BondTerms field names
(the shape a persistence layer hands over), coerces every value, and runs
every check. Problems are collected, never raised: the caller gets the whole
list in one pass.
"""
from __future__ import annotations

import logging
from dataclasses import fields
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .bonds import BondTerms, CapitalizationFrequency, CouponFrequency, GraceType, RateType
from .errors import ValidationIssue
from .utils import to_decimal

logger = logging.getLogger(__name__)

VALID_DAY_COUNT_BASES = (360, 365)

DECIMAL_FIELDS = (
    "nominal_value",
    "commercial_price",
    "annual_rate",
    "discount_rate",
    "income_tax_rate",
    "premium_pct",
    "structuring_pct",
    "placement_pct",
    "float_pct",
    "settlement_pct",
)

# all must lie in [0, 1]
RATE_FIELDS = DECIMAL_FIELDS[2:]

CHOICE_FIELDS = {
    "coupon_frequency": CouponFrequency,
    "rate_type": RateType,
    "capitalization_frequency": CapitalizationFrequency,
}

OPTIONAL_DEFAULTS = {
    "premium_pct": Decimal("0"),
    "structuring_pct": Decimal("0"),
    "placement_pct": Decimal("0"),
    "float_pct": Decimal("0"),
    "settlement_pct": Decimal("0"),
    "bond_id": "BOND",
}


def _raw_mapping(raw: Union[BondTerms, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(raw, BondTerms):
        return {f.name: getattr(raw, f.name) for f in fields(raw)}
    return raw


def _fetch_series(name: str, fetch, issues: List[ValidationIssue]) -> Optional[Sequence[Any]]:
    v = fetch(name)
    if v is None:
        return None
    if isinstance(v, pd.Series):
        return v.tolist()
    if not isinstance(v, (list, tuple)):
        issues.append(ValidationIssue(name, "INVALID_SERIES", f"{name} must be a list with one entry per year", received=v))
        return None
    return v


def _coerce(raw: Mapping[str, Any], issues: List[ValidationIssue]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    def fetch(name: str):
        if name in raw and raw[name] is not None:
            return raw[name]
        if name in OPTIONAL_DEFAULTS:
            return OPTIONAL_DEFAULTS[name]
        issues.append(ValidationIssue(name, "MISSING_FIELD", f"{name} is required"))
        return None

    for name in DECIMAL_FIELDS:
        v = fetch(name)
        if v is None:
            continue
        try:
            values[name] = to_decimal(v)
        except ValueError as exc:
            issues.append(ValidationIssue(name, "INVALID_NUMBER", str(exc), received=v))

    for name in ("term_years", "day_count_base"):
        v = fetch(name)
        if v is None:
            continue
        try:
            d = to_decimal(v)
        except ValueError as exc:
            issues.append(ValidationIssue(name, "INVALID_NUMBER", str(exc), received=v))
            continue
        if d != d.to_integral_value():
            code = "INVALID_YEARS" if name == "term_years" else "INVALID_DAY_COUNT_BASE"
            issues.append(ValidationIssue(name, code, f"{name} must be a whole number", received=v))
            continue
        values[name] = int(d)

    for name, enum_cls in CHOICE_FIELDS.items():
        v = fetch(name)
        if v is None:
            continue
        try:
            values[name] = enum_cls.parse(v)
        except ValueError as exc:
            issues.append(ValidationIssue(name, "INVALID_CHOICE", str(exc), expected=[m.value for m in enum_cls], received=v))

    v = fetch("issue_date")
    if v is not None:
        try:
            ts = pd.Timestamp(v)
        except (TypeError, ValueError) as exc:
            issues.append(ValidationIssue("issue_date", "INVALID_DATE", str(exc), received=v))
        else:
            if pd.isna(ts):
                issues.append(ValidationIssue("issue_date", "INVALID_DATE", "issue_date is not a date", received=v))
            else:
                values["issue_date"] = ts

    v = _fetch_series("inflation_series", fetch, issues)
    if v is not None:
        series = []
        for i, x in enumerate(v):
            try:
                series.append(to_decimal(x))
            except ValueError as exc:
                issues.append(ValidationIssue(f"inflation_series[{i}]", "INVALID_NUMBER", str(exc), received=x))
                series.append(None)
        values["inflation_series"] = tuple(series)

    v = _fetch_series("grace_series", fetch, issues)
    if v is not None:
        series = []
        for i, x in enumerate(v):
            try:
                series.append(GraceType.parse(x))
            except ValueError:
                issues.append(
                    ValidationIssue(
                        f"grace_series[{i}]",
                        "INVALID_GRACE_TYPE",
                        f"grace type must be one of S, P, T (received {x!r})",
                        expected=[g.value for g in GraceType],
                        received=x,
                    )
                )
                series.append(None)
        values["grace_series"] = tuple(series)

    values["bond_id"] = str(fetch("bond_id"))
    return values


def _check(values: Mapping[str, Any]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    for name, code, label in (
        ("nominal_value", "INVALID_NOMINAL_VALUE", "nominal value"),
        ("commercial_price", "INVALID_COMMERCIAL_VALUE", "commercial price"),
    ):
        if name in values and values[name] <= 0:
            issues.append(ValidationIssue(name, code, f"{label} must be greater than 0", received=values[name]))

    term = values.get("term_years")
    if term is not None and term <= 0:
        issues.append(ValidationIssue("term_years", "INVALID_YEARS", "term in years must be greater than 0", received=term))

    base = values.get("day_count_base")
    if base is not None and base not in VALID_DAY_COUNT_BASES:
        issues.append(
            ValidationIssue(
                "day_count_base",
                "INVALID_DAY_COUNT_BASE",
                "day-count base must be 360 or 365",
                expected=list(VALID_DAY_COUNT_BASES),
                received=base,
            )
        )

    for name in RATE_FIELDS:
        if name in values and not (0 <= values[name] <= 1):
            issues.append(
                ValidationIssue(name, "RATE_OUT_OF_RANGE", f"{name} must be between 0 and 1", expected=[0, 1], received=values[name])
            )

    for name, label in (("inflation_series", "inflation"), ("grace_series", "grace")):
        series = values.get(name)
        if series is None or term is None or term <= 0:
            continue
        if len(series) != term:
            issues.append(
                ValidationIssue(
                    name,
                    "INVALID_SERIES_LENGTH",
                    f"{label} series must have {term} elements (received {len(series)})",
                    expected=term,
                    received=len(series),
                )
            )

    for i, rate in enumerate(values.get("inflation_series") or ()):
        if rate is not None and rate <= -1:
            issues.append(
                ValidationIssue(f"inflation_series[{i}]", "INVALID_INFLATION_RATE", "inflation rate must be greater than -1", received=rate)
            )

    return issues


def validate_terms(terms: BondTerms) -> List[ValidationIssue]:
    """All structural/economic violations of already-typed terms (empty when valid)."""
    issues: List[ValidationIssue] = []
    values = _coerce(_raw_mapping(terms), issues)
    return issues + _check(values)


def normalize_terms(raw: Union[BondTerms, Mapping[str, Any]]) -> Tuple[Optional[BondTerms], List[ValidationIssue]]:
    """
    Returns (terms, []) when everything is valid, else (None, issues) with
    every violation found. Coercion problems and economic checks are reported
    together; a field that failed coercion is simply skipped by the checks.
    """
    issues: List[ValidationIssue] = []
    values = _coerce(_raw_mapping(raw), issues)
    issues.extend(_check(values))

    if issues:
        logger.debug("Bond %s rejected with %d issue(s)", values.get("bond_id"), len(issues))
        return None, issues

    return BondTerms(**values), []
