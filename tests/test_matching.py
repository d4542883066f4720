import copy

from codesheet.matching import (
    MatchStrategy,
    alphanumeric_match,
    exact_match,
    leading_number_match,
    normalize_district,
    parenthetical_match,
    resolve_with_trace,
    resolve_zoning_match,
    starts_with_match,
    substring_match,
)
from codesheet.parser import parse
from codesheet.rules import DatasetType
from codesheet.schema import normalize_dataset

ZONING = [
    {"county": "Honolulu", "zoning_district": "R-5 Residential", "max_far": 0.5},
    {"county": "Honolulu", "zoning_district": "BMX-3 Community Business Mixed Use", "max_far": 2.5},
    {"county": "Maui", "zoning_district": "R-5", "max_far": 0.6},
    {"county": "Maui", "zoning_district": "Zone 3 Agricultural", "max_far": 0.1},
]


def test_normalize_district():
    assert normalize_district("BMX-3 Community Business Mixed Use") == "bmx3communitybusinessmix"
    assert normalize_district("Residential (R-5)") == "rr5"


def test_exact_match_wins_first():
    outcome = resolve_with_trace(ZONING, "maui", "r-5")
    assert outcome.record["max_far"] == 0.6
    assert outcome.strategy == "exact"


def test_code_inside_longer_district_name():
    record = resolve_zoning_match(ZONING, "Honolulu", "r-5")
    assert record["zoning_district"] == "R-5 Residential"


def test_jurisdiction_scopes_candidates():
    outcome = resolve_with_trace(ZONING, "honolulu", "bmx-3")
    assert outcome.record["county"] == "Honolulu"
    assert outcome.candidates == 2
    assert outcome.jurisdiction_values == ["honolulu", "maui"]


def test_alphanumeric_fallback():
    rows = [{"county": "Kauai", "zoning_district": "Residential R-5"}]
    outcome = resolve_with_trace(rows, "Kauai", "R5 lots")
    assert outcome.strategy == "alphanumeric"


def test_leading_number_fallback():
    outcome = resolve_with_trace(ZONING, "Maui", "A3")
    assert outcome.record["zoning_district"] == "Zone 3 Agricultural"
    assert outcome.strategy == "leading-number"


def test_no_match_returns_none():
    assert resolve_zoning_match(ZONING, "Maui", "I-2") is None
    assert resolve_zoning_match(ZONING, "Kauai", "R-5") is None


def test_blank_inputs_never_match():
    assert resolve_zoning_match(ZONING, "Maui", "") is None
    assert resolve_zoning_match(ZONING, "", "R-5") is None
    assert resolve_zoning_match(None, "Maui", "R-5") is None
    assert resolve_zoning_match([], "Maui", "R-5") is None


def test_jurisdiction_column_alias():
    rows = [{"jurisdiction": "Hilo", "district": "RS-10"}]
    assert resolve_zoning_match(rows, "HILO", "rs-10") == rows[0]


def test_first_row_wins_within_strategy():
    rows = [
        {"county": "Maui", "zoning_district": "R-1 Single Family"},
        {"county": "Maui", "zoning_district": "R-1 Cluster"},
    ]
    assert resolve_zoning_match(rows, "Maui", "r-1") is rows[0]


def test_custom_strategy_list():
    only_exact = (MatchStrategy("exact", exact_match),)
    assert resolve_zoning_match(ZONING, "Honolulu", "r-5", strategies=only_exact) is None


def test_works_on_parsed_dataset():
    ds = parse("Jurisdiction,Zone,FAR\nHonolulu,A-1 Apartment,0.9\n")
    table = normalize_dataset(ds, DatasetType.ZONING)
    record = resolve_zoning_match(table.dataset, "honolulu", "a-1")
    assert record["max_far"] == 0.9


def test_predicates():
    assert exact_match("Mixed Use", "mixed_use")
    assert substring_match("R-5 Residential", "r-5")
    assert not substring_match("", "r-5")
    assert parenthetical_match("Residential (R-5)", "r5")
    assert not parenthetical_match("R-5", "r5")
    assert alphanumeric_match("zone R-10", "r10")
    assert not alphanumeric_match("R-10", "R-1")
    assert leading_number_match("3 Acre Lots", "Ag-3")
    assert starts_with_match("Downtown Core", "downtown")
    assert starts_with_match("Country District", "country estates")


def test_resolution_leaves_records_untouched():
    before = copy.deepcopy(ZONING)
    resolve_zoning_match(ZONING, "Honolulu", "r-5")
    resolve_with_trace(ZONING, "Maui", "A3")
    assert ZONING == before
