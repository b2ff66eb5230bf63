"""Transformation rule set domain service."""

import logging
from typing import Any, Optional

from reportbridge.database.base import Database
from reportbridge.domain.custom_transforms import CUSTOM_TRANSFORMATIONS
from reportbridge.domain.entities import (
    CustomTransformation,
    MappingTable,
    PropertyMapping,
    TransformationRule,
)
from reportbridge.domain.errors import ConflictError, NotFoundError, ValidationError
from reportbridge.domain.mapping_table import FILE_FORMATS, validate_rules

logger = logging.getLogger(__name__)


class RuleSetService:
    """Service for managing per-property transformation rules."""

    def __init__(self, db: Database):
        """Initialize rule set service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_property_mapping(
        self, property_id: str, property_name: str, file_format: str = "all"
    ) -> int:
        """Create an empty rule set for a property.

        Args:
            property_id: Property identifier
            property_name: Display name
            file_format: File type the rules apply to (pdf, csv, txt or all)

        Returns:
            Property mapping ID

        Raises:
            ValidationError: If the file format is unknown
            ConflictError: If the property already has a rule set
        """
        if file_format not in FILE_FORMATS:
            raise ValidationError(
                f"Invalid file format '{file_format}'. "
                f"Must be one of: {', '.join(FILE_FORMATS)}"
            )
        if self.db.get_property_mapping(property_id) is not None:
            raise ConflictError(f"Property mapping for '{property_id}' already exists")
        return self.db.create_property_mapping(property_id, property_name, file_format)

    def add_rule(self, property_id: str, rule: TransformationRule) -> int:
        """Append a rule to a property's rule set.

        Args:
            property_id: Property identifier
            rule: Rule to append

        Returns:
            Rule ID

        Raises:
            NotFoundError: If the property has no rule set
            InvalidFormatError: If the rule is incomplete
        """
        mapping = self.db.get_property_mapping(property_id)
        if mapping is None:
            raise NotFoundError(f"Property mapping for '{property_id}' not found")
        validate_rules([PropertyMapping(property_id, mapping.property_name, (rule,))])
        return self.db.add_transformation_rule(property_id, rule)

    def get_property_mapping(self, property_id: str) -> Optional[PropertyMapping]:
        return self.db.get_property_mapping(property_id)

    def list_property_mappings(self) -> list[PropertyMapping]:
        return self.db.list_property_mappings()

    def delete_property_mapping(self, property_id: str) -> None:
        """Delete a property's rule set.

        Raises:
            NotFoundError: If the property has no rule set
        """
        if self.db.get_property_mapping(property_id) is None:
            raise NotFoundError(f"Property mapping for '{property_id}' not found")
        self.db.delete_property_mapping(property_id)

    def add_custom_transformation(
        self,
        name: str,
        function: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> int:
        """Declare a named custom transformation.

        Args:
            name: Name rules refer to through ``functionName``
            function: Built-in function it calls; defaults to ``name``
            parameters: Default parameters for the call
            description: Free text

        Returns:
            Custom transformation ID

        Raises:
            ValidationError: If the function is not a built-in
        """
        target = function or name
        if target not in CUSTOM_TRANSFORMATIONS:
            raise ValidationError(
                f"Unknown custom transformation function '{target}'. "
                f"Must be one of: {', '.join(sorted(CUSTOM_TRANSFORMATIONS))}"
            )
        return self.db.add_custom_transformation(
            CustomTransformation(
                name=name,
                description=description,
                parameters=parameters or {},
                function=function,
            )
        )

    def list_custom_transformations(self) -> list[CustomTransformation]:
        return self.db.list_custom_transformations()

    def import_mapping_table(self, table: MappingTable, replace: bool = False) -> dict[str, Any]:
        """Store the rule sets and custom transformations of a mapping table.

        Args:
            table: Parsed mapping table
            replace: Overwrite rule sets of properties that already have one

        Returns:
            Dict with import statistics:
            - imported: number of rules stored
            - skipped: number of rule sets left untouched
            - warnings: list of messages for skipped rule sets
        """
        imported = 0
        skipped = 0
        warnings = []

        for mapping in table.property_mappings:
            if self.db.get_property_mapping(mapping.property_id) is not None:
                if not replace:
                    skipped += 1
                    warnings.append(
                        f"Property mapping for '{mapping.property_id}' already exists"
                    )
                    continue
                self.db.delete_property_mapping(mapping.property_id)

            self.db.create_property_mapping(
                mapping.property_id, mapping.property_name, mapping.file_format
            )
            for rule in mapping.rules:
                self.db.add_transformation_rule(mapping.property_id, rule)
                imported += 1

        for transformation in table.custom_transformations.values():
            self.db.add_custom_transformation(transformation)

        logger.info("Imported %d transformation rules, skipped %d rule sets", imported, skipped)
        return {"imported": imported, "skipped": skipped, "warnings": warnings}

    def build_mapping_table(self, date_format: str = "YYYY-MM-DD") -> MappingTable:
        """Assemble a mapping table from every stored rule set."""
        return MappingTable(
            property_mappings=tuple(self.db.list_property_mappings()),
            custom_transformations={
                t.name: t for t in self.db.list_custom_transformations()
            },
            date_format=date_format,
        )
