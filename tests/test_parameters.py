from decimal import Decimal

import pytest

from bond_cashflow_engine.bonds import CapitalizationFrequency, CouponFrequency, RateType
from bond_cashflow_engine.errors import CalculationError
from bond_cashflow_engine.parameters import (
    derive_parameters,
    effective_annual_rate,
    investor_upfront_cost,
    issuer_upfront_cost,
    periods_per_year,
    total_periods,
)
from bond_cashflow_engine.utils import capitalization_days, compound_periodic_rate, coupon_days
from bond_cashflow_engine.validation import normalize_terms


@pytest.fixture(scope="module")
def raw_terms():
    return {
        "nominal_value": 1000.0,
        "commercial_price": 1050.0,
        "term_years": 5,
        "coupon_frequency": "semiannual",
        "day_count_base": 360,
        "rate_type": "effective",
        "capitalization_frequency": "bimonthly",
        "annual_rate": 0.08,
        "discount_rate": 0.045,
        "income_tax_rate": 0.30,
        "issue_date": "2025-06-01",
        "inflation_series": [0.10] * 5,
        "grace_series": ["S"] * 5,
        "premium_pct": 0.01,
        "structuring_pct": 0.01,
        "placement_pct": 0.0025,
        "float_pct": 0.0045,
        "settlement_pct": 0.005,
    }


@pytest.fixture(scope="module")
def terms(raw_terms):
    t, issues = normalize_terms(raw_terms)
    assert issues == []
    return t


def test_day_mappings():
    assert [coupon_days(f) for f in CouponFrequency] == [30, 60, 90, 120, 180, 360]
    assert [capitalization_days(f) for f in CapitalizationFrequency] == [1, 15, 30, 60, 90, 120, 180, 360]


def test_period_counts():
    assert periods_per_year(360, 180) == 2
    assert periods_per_year(360, 120) == 3
    assert total_periods(360, 180, 5) == 10
    assert total_periods(365, 30, 6) == 73


def test_effective_rate_passes_through():
    assert effective_annual_rate(RateType.EFFECTIVE, Decimal("0.08"), 360, 60) == Decimal("0.08")


def test_nominal_rate_compounds_at_capitalization_cadence():
    # 12% nominal, monthly capitalization on a 360-day base: 1.01^12 - 1
    tea = effective_annual_rate(RateType.NOMINAL, Decimal("0.12"), 360, 30)
    assert abs(float(tea) - (1.01 ** 12 - 1)) < 1e-12


def test_compound_periodic_rate():
    r = compound_periodic_rate(Decimal("0.08"), 180, 360)
    assert abs(float(r) - 0.0392304845) < 1e-10


def test_reference_parameters(terms):
    p = derive_parameters(terms)

    assert p.coupon_days == 180
    assert p.capitalization_days == 60
    assert p.periods_per_year == 2
    assert p.total_periods == 10
    assert p.effective_annual_rate == Decimal("0.08")
    assert abs(float(p.periodic_coupon_rate) - 0.03923) < 1e-5
    assert abs(float(p.periodic_discount_rate) - 0.02225) < 1e-5
    assert p.period_year_fraction == Decimal("0.5")


def test_upfront_costs(terms):
    assert issuer_upfront_cost(terms) == Decimal("23.1")
    assert investor_upfront_cost(terms) == Decimal("9.975")


def test_fractional_period_count_is_a_calculation_error(raw_terms):
    """365-day base with 180-day coupons gives 10.138... periods over five years."""
    t, _ = normalize_terms({**raw_terms, "day_count_base": 365})

    with pytest.raises(CalculationError) as exc_info:
        derive_parameters(t)

    assert exc_info.value.field == "total_periods"
    assert exc_info.value.value is not None


def test_365_base_with_whole_period_count(raw_terms):
    t, _ = normalize_terms(
        {**raw_terms, "day_count_base": 365, "coupon_frequency": "monthly", "term_years": 6,
         "inflation_series": [0.05] * 6, "grace_series": ["S"] * 6}
    )
    p = derive_parameters(t)
    assert p.total_periods == 73
    assert p.periods_per_year != p.periods_per_year.to_integral_value()
