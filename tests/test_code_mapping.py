"""Tests for account code mapping resolution."""

from decimal import Decimal

import pytest

from reportbridge.domain.code_mapping import (
    AccountCodeResolver,
    apply_multiplier,
    build_code_mappings,
    extract_valid_code,
)
from reportbridge.domain.errors import ErrorCode, InvalidFormatError, NoMappingError


@pytest.fixture
def resolver():
    return AccountCodeResolver.from_rows(
        [
            {"sourceCode": "9", "targetCode": "X", "targetName": "Room Revenue"},
            {"sourceCode": "9", "targetCode": "Y", "targetName": "Room Revenue 5", "propertyId": 5},
            {"sourceCode": "91", "targetCode": "X", "multiplier": "-1"},
        ]
    )


def test_property_specific_mapping_wins(resolver):
    assert resolver.find("9", 5).target_code == "Y"


def test_global_mapping_is_fallback(resolver):
    assert resolver.find("9", 7).target_code == "X"
    assert resolver.find("9").target_code == "X"


def test_lookup_is_case_insensitive():
    resolver = AccountCodeResolver.from_rows([{"sourceCode": "rs", "targetCode": "4100"}])

    assert resolver.find(" RS ").target_code == "4100"


def test_find_unknown_code_returns_none(resolver):
    assert resolver.find("ZZ", 5) is None


def test_resolve_unknown_code_raises(resolver):
    with pytest.raises(NoMappingError) as excinfo:
        resolver.resolve("ZZ", 5)

    assert excinfo.value.code == ErrorCode.NO_MAPPING
    assert "ZZ" in str(excinfo.value)


def test_find_by_target_code(resolver):
    assert {m.source_code for m in resolver.find_by_target_code("x")} == {"9", "91"}


def test_mappings_for_property(resolver):
    assert len(resolver.mappings_for_property(5)) == 3
    assert len(resolver.mappings_for_property(7)) == 2


def test_indices_are_read_only(resolver):
    with pytest.raises(TypeError):
        resolver.by_source_code["NEW"] = ()


def test_metadata(resolver):
    metadata = resolver.metadata

    assert metadata.total_mappings == 3
    assert metadata.unique_source_codes == 2
    assert metadata.unique_target_codes == 2
    assert metadata.has_property_specific_mappings
    assert metadata.skipped_rows == 0


def test_header_spellings_are_normalized():
    mappings, _ = build_code_mappings(
        [
            {
                "Src Acct Code": "RS",
                "Src Acct Desc": "Restaurant",
                "Acct Code": "4100",
                "Acct Name": "Food Revenue",
                "Property Id": "12",
                "Multiplier": "-1",
            }
        ]
    )

    mapping = mappings[0]
    assert mapping.source_code == "RS"
    assert mapping.source_description == "Restaurant"
    assert mapping.target_code == "4100"
    assert mapping.target_name == "Food Revenue"
    assert mapping.property_id == 12
    assert mapping.multiplier == Decimal("-1")


def test_numeric_cells_are_read_as_codes():
    mappings, _ = build_code_mappings([{"sourceCode": 9.0, "targetCode": 4000, "propertyId": 5.0}])

    assert mappings[0].source_code == "9"
    assert mappings[0].target_code == "4000"
    assert mappings[0].property_id == 5


def test_defaults_for_missing_optional_columns():
    mappings, _ = build_code_mappings([{"sourceCode": "9", "targetCode": "4000"}])

    assert mappings[0].property_id == 0
    assert mappings[0].multiplier == Decimal("1")
    assert mappings[0].is_global


def test_invalid_rows_are_skipped_with_warnings():
    mappings, metadata = build_code_mappings(
        [
            {"sourceCode": "9", "targetCode": "4000"},
            {"sourceCode": "", "targetCode": "4001"},
            {"sourceCode": "9", "targetCode": "4002"},
        ]
    )

    assert [m.target_code for m in mappings] == ["4000"]
    assert metadata.skipped_rows == 2
    assert any("Row 2" in w for w in metadata.warnings)
    assert any("Duplicate" in w for w in metadata.warnings)


def test_strict_mode_rejects_invalid_rows():
    with pytest.raises(InvalidFormatError):
        build_code_mappings([{"sourceCode": "9"}], strict=True)


def test_extract_valid_code_prefers_longest_match():
    extraction = extract_valid_code("91ABC", {"9", "91"})

    assert extraction.code == "91"
    assert extraction.remaining_text == "ABC"


def test_extract_valid_code_without_match():
    assert extract_valid_code("ZZTOP", {"9", "91"}) is None


def test_extract_valid_code_fallback_without_codes():
    extraction = extract_valid_code("RS RESTAURANT")

    assert extraction.code == "RS"
    assert extraction.remaining_text == "RESTAURANT"


def test_extract_code_uses_resolver_codes(resolver):
    assert resolver.extract_code("91ABC").code == "91"


def test_apply_multiplier(resolver):
    mapping = resolver.find("91")

    assert apply_multiplier(Decimal("120.00"), mapping) == Decimal("-120.00")


def test_nan_cells_from_spreadsheet_readers():
    nan = float("nan")
    mappings, metadata = build_code_mappings(
        [
            {"sourceCode": "RC", "targetCode": "4000", "propertyId": nan, "multiplier": nan},
            {"sourceCode": nan, "targetCode": "4001"},
            {"sourceCode": "RS", "targetCode": "4100", "propertyId": "nan"},
        ]
    )

    assert [(m.source_code, m.property_id, m.multiplier) for m in mappings] == [
        ("RC", 0, Decimal("1")),
        ("RS", 0, Decimal("1")),
    ]
    assert metadata.skipped_rows == 1
    assert any("missing source or target code" in w for w in metadata.warnings)
