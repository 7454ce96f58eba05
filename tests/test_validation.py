from decimal import Decimal

import pandas as pd
import pytest

from bond_cashflow_engine.bonds import BondTerms, CouponFrequency, GraceType, RateType
from bond_cashflow_engine.validation import normalize_terms, validate_terms


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


def test_valid_terms_are_normalized(raw_terms):
    terms, issues = normalize_terms(raw_terms)

    assert issues == []
    assert isinstance(terms, BondTerms)
    assert terms.discount_rate == Decimal("0.045")
    assert terms.coupon_frequency is CouponFrequency.SEMIANNUAL
    assert terms.grace_series == (GraceType.NORMAL,) * 5
    assert terms.issue_date == pd.Timestamp("2025-06-01")
    assert validate_terms(terms) == []


def test_short_inflation_series_reports_one_issue(raw_terms):
    terms, issues = normalize_terms({**raw_terms, "inflation_series": [0.10, 0.10]})

    assert terms is None
    assert len(issues) == 1
    issue = issues[0]
    assert issue.field == "inflation_series"
    assert issue.code == "INVALID_SERIES_LENGTH"
    assert issue.expected == 5
    assert issue.received == 2
    assert "5" in issue.message and "2" in issue.message


def test_all_violations_are_collected(raw_terms):
    bad = {**raw_terms, "nominal_value": -1000, "annual_rate": 1.5, "grace_series": ["T", "T"]}
    _, issues = normalize_terms(bad)

    assert [(i.field, i.code) for i in issues] == [
        ("nominal_value", "INVALID_NOMINAL_VALUE"),
        ("annual_rate", "RATE_OUT_OF_RANGE"),
        ("grace_series", "INVALID_SERIES_LENGTH"),
    ]


def test_unknown_grace_symbol(raw_terms):
    _, issues = normalize_terms({**raw_terms, "grace_series": ["S", "X", "S", "S", "S"]})

    assert len(issues) == 1
    assert issues[0].field == "grace_series[1]"
    assert issues[0].code == "INVALID_GRACE_TYPE"


def test_spanish_labels_are_accepted(raw_terms):
    terms, issues = normalize_terms(
        {**raw_terms, "coupon_frequency": "Semestral", "rate_type": "efectiva", "capitalization_frequency": "bimestral"}
    )
    assert issues == []
    assert terms.coupon_frequency is CouponFrequency.SEMIANNUAL
    assert terms.rate_type is RateType.EFFECTIVE


def test_grace_names_and_symbols(raw_terms):
    terms, issues = normalize_terms({**raw_terms, "grace_series": ["normal", "P", "total", "t", "S"]})
    assert issues == []
    assert terms.grace_series == (GraceType.NORMAL, GraceType.PARTIAL, GraceType.TOTAL, GraceType.TOTAL, GraceType.NORMAL)


def test_missing_and_malformed_fields(raw_terms):
    raw = {k: v for k, v in raw_terms.items() if k != "discount_rate"}
    raw["coupon_frequency"] = "weekly"
    raw["issue_date"] = "not a date"
    raw["day_count_base"] = 364

    _, issues = normalize_terms(raw)
    codes = {i.field: i.code for i in issues}

    assert codes["discount_rate"] == "MISSING_FIELD"
    assert codes["coupon_frequency"] == "INVALID_CHOICE"
    assert codes["issue_date"] == "INVALID_DATE"
    assert codes["day_count_base"] == "INVALID_DAY_COUNT_BASE"


def test_cost_fields_default_to_zero(raw_terms):
    raw = {k: v for k, v in raw_terms.items() if not k.endswith("_pct")}
    terms, issues = normalize_terms(raw)

    assert issues == []
    assert terms.premium_pct == 0 and terms.structuring_pct == 0


def test_inflation_must_exceed_minus_one(raw_terms):
    _, issues = normalize_terms({**raw_terms, "inflation_series": [0.1, -1.0, 0.1, 0.1, 0.1]})
    assert [(i.field, i.code) for i in issues] == [("inflation_series[1]", "INVALID_INFLATION_RATE")]


def test_non_integral_term(raw_terms):
    _, issues = normalize_terms({**raw_terms, "term_years": 2.5})
    assert issues[0].field == "term_years"
    assert issues[0].code == "INVALID_YEARS"


def test_unparsable_inflation_entry_keeps_series_length(raw_terms):
    _, issues = normalize_terms({**raw_terms, "inflation_series": [0.1, "abc", 0.1, 0.1, 0.1]})
    assert [(i.field, i.code) for i in issues] == [("inflation_series[1]", "INVALID_NUMBER")]


def test_bad_entries_and_wrong_length_report_raw_length(raw_terms):
    _, issues = normalize_terms({**raw_terms, "grace_series": ["S", "X", "S"]})

    assert [(i.field, i.code) for i in issues] == [
        ("grace_series[1]", "INVALID_GRACE_TYPE"),
        ("grace_series", "INVALID_SERIES_LENGTH"),
    ]
    assert issues[1].received == 3


def test_series_must_be_a_list(raw_terms):
    terms, issues = normalize_terms({**raw_terms, "inflation_series": 0.1, "grace_series": "SSSSS"})

    assert terms is None
    assert [(i.field, i.code) for i in issues] == [
        ("inflation_series", "INVALID_SERIES"),
        ("grace_series", "INVALID_SERIES"),
    ]


def test_pandas_series_input(raw_terms):
    terms, issues = normalize_terms({**raw_terms, "inflation_series": pd.Series([0.1] * 5)})
    assert issues == []
    assert terms.inflation_series == (Decimal("0.1"),) * 5
