"""Mapping file import domain service."""

import csv
from typing import Any
from pathlib import Path

from reportbridge.database.base import Database
from reportbridge.domain.code_mapping_service import CodeMappingService
from reportbridge.domain.mapping_table import build_mapping_table
from reportbridge.domain.rule_set import RuleSetService


def read_csv_rows(csv_file_path: str) -> list[dict[str, str]]:
    """Read a CSV file into header-keyed rows, detecting the delimiter.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no header row
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        # Try to detect delimiter
        sample = f.read(1024)
        f.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            raise ValueError("CSV file has no columns")
        return [row for row in reader]


class MappingImportService:
    """Service for importing mapping files."""

    def __init__(self, db: Database):
        """Initialize mapping import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.code_mapping_service = CodeMappingService(db)
        self.rule_set_service = RuleSetService(db)

    def import_code_mappings(self, csv_file_path: str, strict: bool = False) -> dict[str, Any]:
        """Import account code mappings from a CSV file.

        Args:
            csv_file_path: Path to CSV file with source/target code columns
            strict: Reject the file on the first invalid row

        Returns:
            Dict with import statistics (imported, skipped, warnings)

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            InvalidFormatError: In strict mode, for an invalid row
        """
        rows = read_csv_rows(csv_file_path)
        return self.code_mapping_service.import_rows(rows, strict=strict)

    def import_rules(self, csv_file_path: str, replace: bool = False) -> dict[str, Any]:
        """Import transformation rules from a CSV file, one rule per row.

        Args:
            csv_file_path: Path to CSV file with propertyId, sourceField,
                targetField and optional rule columns
            replace: Overwrite existing rule sets of the same properties

        Returns:
            Dict with import statistics (imported, skipped, warnings)

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            InvalidFormatError: If a rule is incomplete
        """
        rows = read_csv_rows(csv_file_path)
        table = build_mapping_table(rows)
        return self.rule_set_service.import_mapping_table(table, replace=replace)
