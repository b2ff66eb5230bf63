"""Tests for the SQLAlchemy database implementation."""

from decimal import Decimal

import pytest

from reportbridge.database.base import Database
from reportbridge.domain.entities import (
    AccountCodeMapping,
    CustomTransformation,
    TransformationRule,
    ValidationConfig,
)


def test_database_implements_interface(temp_db):
    assert isinstance(temp_db, Database)


def test_code_mapping_round_trip(temp_db):
    mapping = AccountCodeMapping(
        source_code="AX",
        target_code="1200",
        target_name="Card Clearing",
        property_id=5,
        property_name="Downtown",
        multiplier=Decimal("-1"),
        source_description="Amex payment",
    )

    temp_db.add_code_mapping(mapping)
    stored = temp_db.list_code_mappings()

    assert stored == [mapping]


def test_code_mapping_uniqueness(temp_db):
    temp_db.add_code_mapping(AccountCodeMapping("9", "4000"))

    assert temp_db.code_mapping_exists("9", 0)
    assert not temp_db.code_mapping_exists("9", 5)
    with pytest.raises(ValueError):
        temp_db.add_code_mapping(AccountCodeMapping("9", "4001"))


def test_list_and_delete_code_mappings_by_property(temp_db):
    temp_db.add_code_mapping(AccountCodeMapping("9", "4000"))
    temp_db.add_code_mapping(AccountCodeMapping("9", "4005", property_id=5))
    temp_db.add_code_mapping(AccountCodeMapping("91", "2200", property_id=5))

    assert [m.target_code for m in temp_db.list_code_mappings(property_id=5)] == ["4005", "2200"]
    assert temp_db.delete_code_mappings(property_id=5) == 2
    assert [m.target_code for m in temp_db.list_code_mappings()] == ["4000"]
    assert temp_db.delete_code_mappings() == 1
    assert temp_db.list_code_mappings() == []


def test_property_mapping_with_rules(temp_db):
    temp_db.create_property_mapping("5", "Downtown", "pdf")
    first = TransformationRule(
        "target_code",
        "account",
        required=True,
        transformation="custom",
        transformation_params={"functionName": "prefix", "value": "GL-"},
    )
    second = TransformationRule(
        "mapping_status",
        "status",
        default_value="MAPPED",
        validation=ValidationConfig(min_length=3, pattern="^[A-Z]+$", allowed_values=("MAPPED", "UNMAPPED")),
    )
    temp_db.add_transformation_rule("5", first)
    temp_db.add_transformation_rule("5", second)

    mapping = temp_db.get_property_mapping("5")

    assert mapping.property_name == "Downtown"
    assert mapping.file_format == "pdf"
    assert mapping.rules == (first, second)
    assert temp_db.get_transformation_rules("5") == [first, second]


def test_missing_property_mapping(temp_db):
    assert temp_db.get_property_mapping("404") is None
    assert temp_db.get_transformation_rules("404") == []
    with pytest.raises(ValueError):
        temp_db.add_transformation_rule("404", TransformationRule("a", "b"))


def test_duplicate_property_mapping(temp_db):
    temp_db.create_property_mapping("5", "Downtown")

    with pytest.raises(ValueError):
        temp_db.create_property_mapping("5", "Again")


def test_delete_property_mapping_removes_rules(temp_db):
    temp_db.create_property_mapping("5", "Downtown")
    temp_db.add_transformation_rule("5", TransformationRule("a", "b"))

    temp_db.delete_property_mapping("5")

    assert temp_db.list_property_mappings() == []
    assert temp_db.get_transformation_rules("5") == []


def test_custom_transformation_replaced_by_name(temp_db):
    temp_db.add_custom_transformation(
        CustomTransformation(name="pad", function="zero_pad", parameters={"width": 4})
    )
    temp_db.add_custom_transformation(
        CustomTransformation(name="pad", function="zero_pad", parameters={"width": 6}, code="x")
    )

    stored = temp_db.list_custom_transformations()

    assert stored == [
        CustomTransformation(name="pad", function="zero_pad", parameters={"width": 6}, code="x")
    ]


def test_code_mapping_uniqueness_ignores_case(temp_db):
    temp_db.add_code_mapping(AccountCodeMapping("RC", "4000"))

    assert temp_db.code_mapping_exists("rc", 0)
    with pytest.raises(ValueError):
        temp_db.add_code_mapping(AccountCodeMapping("rc", "9999"))


def test_multiplier_keeps_full_precision(temp_db):
    temp_db.add_code_mapping(AccountCodeMapping("FX", "7000", multiplier=Decimal("0.123456")))

    assert temp_db.list_code_mappings()[0].multiplier == Decimal("0.123456")
