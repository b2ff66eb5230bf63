"""Account code mapping domain service."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from reportbridge.database.base import Database
from reportbridge.domain.code_mapping import AccountCodeResolver, build_code_mappings
from reportbridge.domain.entities import AccountCodeMapping
from reportbridge.domain.errors import duplicate_code_mapping

logger = logging.getLogger(__name__)


class CodeMappingService:
    """Service for managing stored account code mappings."""

    def __init__(self, db: Database):
        """Initialize code mapping service.

        Args:
            db: Database instance
        """
        self.db = db

    def import_rows(self, rows: Iterable[Mapping[str, Any]], strict: bool = False) -> dict[str, Any]:
        """Validate mapping rows and store the new ones.

        Args:
            rows: Spreadsheet-style rows (see build_code_mappings)
            strict: Raise on the first invalid row instead of skipping it

        Returns:
            Dict with import statistics:
            - imported: number of mappings stored
            - skipped: invalid rows plus pairs already in the database
            - warnings: list of messages for skipped rows

        Raises:
            InvalidFormatError: In strict mode, for an invalid row
        """
        mappings, metadata = build_code_mappings(rows, strict=strict)
        warnings = list(metadata.warnings)
        imported = 0
        skipped = metadata.skipped_rows

        for mapping in mappings:
            if self.db.code_mapping_exists(mapping.source_code, mapping.property_id):
                skipped += 1
                warnings.append(duplicate_code_mapping(mapping.source_code, mapping.property_id))
                continue
            self.db.add_code_mapping(mapping)
            imported += 1

        logger.info("Imported %d code mappings, skipped %d", imported, skipped)
        return {"imported": imported, "skipped": skipped, "warnings": warnings}

    def list_mappings(self, property_id: Optional[int] = None) -> list[AccountCodeMapping]:
        """List stored mappings.

        Args:
            property_id: Only mappings stored for this property (0 for global)

        Returns:
            List of mapping entities
        """
        return self.db.list_code_mappings(property_id=property_id)

    def get_resolver(self) -> AccountCodeResolver:
        """Build a resolver over every stored mapping."""
        return AccountCodeResolver(self.db.list_code_mappings())

    def resolve(self, source_code: str, property_id: int = 0) -> AccountCodeMapping:
        """Resolve a source code for a property.

        Raises:
            NoMappingError: If no property-specific or global mapping exists
        """
        return self.get_resolver().resolve(source_code, property_id)

    def clear(self, property_id: Optional[int] = None) -> int:
        """Delete stored mappings (all, or one property's). Returns count deleted."""
        deleted = self.db.delete_code_mappings(property_id=property_id)
        logger.info("Deleted %d code mappings", deleted)
        return deleted
