from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Tuple

import pandas as pd


class _ChoiceEnum(str, Enum):
    """String enum parsed case-insensitively by value, name or alias."""

    @classmethod
    def _aliases(cls) -> Dict[str, "_ChoiceEnum"]:
        return {}

    @classmethod
    def parse(cls, value) -> "_ChoiceEnum":
        if isinstance(value, cls):
            return value

        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member

        aliases = cls._aliases()
        if key in aliases:
            return aliases[key]

        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"{value!r} is not a valid {cls.__name__} (expected one of: {choices})")


class CouponFrequency(_ChoiceEnum):
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    FOUR_MONTHLY = "four_monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"

    @classmethod
    def _aliases(cls):
        return {
            "mensual": cls.MONTHLY,
            "bimestral": cls.BIMONTHLY,
            "trimestral": cls.QUARTERLY,
            "cuatrimestral": cls.FOUR_MONTHLY,
            "semestral": cls.SEMIANNUAL,
            "anual": cls.ANNUAL,
        }


class CapitalizationFrequency(_ChoiceEnum):
    DAILY = "daily"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    FOUR_MONTHLY = "four_monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"

    @classmethod
    def _aliases(cls):
        return {
            "diaria": cls.DAILY,
            "quincenal": cls.BIWEEKLY,
            "mensual": cls.MONTHLY,
            "bimestral": cls.BIMONTHLY,
            "trimestral": cls.QUARTERLY,
            "cuatrimestral": cls.FOUR_MONTHLY,
            "semestral": cls.SEMIANNUAL,
            "anual": cls.ANNUAL,
        }


class RateType(_ChoiceEnum):
    NOMINAL = "nominal"
    EFFECTIVE = "effective"

    @classmethod
    def _aliases(cls):
        return {"efectiva": cls.EFFECTIVE}


class GraceType(_ChoiceEnum):
    """
    Per-year grace policy, stored as the reference schedule's symbols:
    S = no grace (full debt service), P = partial (interest only),
    T = total (nothing paid, coupon capitalizes).
    """
    NORMAL = "S"
    PARTIAL = "P"
    TOTAL = "T"

    @classmethod
    def _aliases(cls):
        return {"n": cls.NORMAL, "none": cls.NORMAL, "sin_gracia": cls.NORMAL, "parcial": cls.PARTIAL}


@dataclass(frozen=True)
class BondTerms:
    """
    Contractual terms of one bond. Percentages and rates are decimals
    (0.08 = 8%); the annual series hold one entry per year of term.
    """
    nominal_value: Decimal
    commercial_price: Decimal
    term_years: int
    coupon_frequency: CouponFrequency
    day_count_base: int
    rate_type: RateType
    capitalization_frequency: CapitalizationFrequency
    annual_rate: Decimal
    discount_rate: Decimal
    income_tax_rate: Decimal
    issue_date: pd.Timestamp
    inflation_series: Tuple[Decimal, ...]
    grace_series: Tuple[GraceType, ...]
    premium_pct: Decimal = Decimal("0")
    structuring_pct: Decimal = Decimal("0")
    placement_pct: Decimal = Decimal("0")
    float_pct: Decimal = Decimal("0")
    settlement_pct: Decimal = Decimal("0")
    bond_id: str = "BOND"
