"""Mapper functions to convert between domain models and SQLAlchemy models.

Rule parameters and allowed values are stored as JSON text; this layer
decodes them so the rest of the code only ever sees domain entities.
"""

import json
from decimal import Decimal

from reportbridge.domain import entities as domain
from reportbridge.database.models import (
    AccountCodeMapping as ORMAccountCodeMapping,
    PropertyMapping as ORMPropertyMapping,
    TransformationRule as ORMTransformationRule,
    CustomTransformation as ORMCustomTransformation,
)


def _load_json(text, default):
    if not text:
        return default
    return json.loads(text)


def code_mapping_to_domain(orm_mapping: ORMAccountCodeMapping) -> domain.AccountCodeMapping:
    """Convert SQLAlchemy AccountCodeMapping model to domain entity."""
    return domain.AccountCodeMapping(
        source_code=orm_mapping.source_code,
        target_code=orm_mapping.target_code,
        target_name=orm_mapping.target_name or "",
        property_id=orm_mapping.property_id,
        property_name=orm_mapping.property_name,
        multiplier=Decimal(orm_mapping.multiplier),
        source_description=orm_mapping.source_description,
    )


def rule_to_domain(orm_rule: ORMTransformationRule) -> domain.TransformationRule:
    """Convert SQLAlchemy TransformationRule model to domain entity."""
    allowed_values = _load_json(orm_rule.allowed_values, None)
    validation = domain.ValidationConfig(
        min_length=orm_rule.min_length,
        max_length=orm_rule.max_length,
        pattern=orm_rule.pattern,
        allowed_values=tuple(allowed_values) if allowed_values is not None else None,
    )
    return domain.TransformationRule(
        source_path=orm_rule.source_path,
        target_field=orm_rule.target_field,
        data_type=orm_rule.data_type,
        required=orm_rule.required,
        default_value=orm_rule.default_value,
        transformation=orm_rule.transformation,
        transformation_params=_load_json(orm_rule.transformation_params, {}),
        validation=None if validation == domain.ValidationConfig() else validation,
    )


def rule_to_orm(rule: domain.TransformationRule, position: int) -> ORMTransformationRule:
    """Convert a domain TransformationRule to a SQLAlchemy model row."""
    validation = rule.validation or domain.ValidationConfig()
    return ORMTransformationRule(
        position=position,
        source_path=rule.source_path,
        target_field=rule.target_field,
        data_type=rule.data_type,
        required=rule.required,
        default_value=None if rule.default_value is None else str(rule.default_value),
        transformation=rule.transformation,
        transformation_params=(
            json.dumps(rule.transformation_params) if rule.transformation_params else None
        ),
        min_length=validation.min_length,
        max_length=validation.max_length,
        pattern=validation.pattern,
        allowed_values=(
            json.dumps(list(validation.allowed_values))
            if validation.allowed_values is not None
            else None
        ),
    )


def property_mapping_to_domain(orm_mapping: ORMPropertyMapping) -> domain.PropertyMapping:
    """Convert SQLAlchemy PropertyMapping model (with its rules) to domain entity."""
    return domain.PropertyMapping(
        property_id=orm_mapping.property_id,
        property_name=orm_mapping.property_name,
        file_format=orm_mapping.file_format,
        rules=tuple(rule_to_domain(rule) for rule in orm_mapping.rules),
    )


def custom_transformation_to_domain(
    orm_transformation: ORMCustomTransformation,
) -> domain.CustomTransformation:
    """Convert SQLAlchemy CustomTransformation model to domain entity."""
    return domain.CustomTransformation(
        name=orm_transformation.name,
        description=orm_transformation.description,
        parameters=_load_json(orm_transformation.parameters, {}),
        function=orm_transformation.function,
        code=orm_transformation.code,
    )
