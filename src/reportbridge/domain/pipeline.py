"""Report processing pipeline.

Parses report text into account lines, resolves each line's target code
for a property and hands the resulting rows to the transformation engine.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional

from reportbridge.domain.account_lines import AccountLineParser, AccountLineParserConfig
from reportbridge.domain.code_mapping import AccountCodeResolver, apply_multiplier
from reportbridge.domain.entities import AccountLine, MappingTable, RawFileData, TransformedData
from reportbridge.domain.transformation import TransformationConfig, TransformationEngine

logger = logging.getLogger(__name__)

MAPPED = "MAPPED"
UNMAPPED = "UNMAPPED"


class ReportPipeline:
    """Service wiring the parser, the code resolver and the engine together."""

    def __init__(
        self,
        resolver: AccountCodeResolver,
        mapping_table: MappingTable,
        parser_config: Optional[AccountLineParserConfig] = None,
        transformation_config: Optional[TransformationConfig] = None,
    ):
        """Initialize report pipeline.

        Args:
            resolver: Loaded account code mappings
            mapping_table: Rule sets for the transformation step
            parser_config: Parser settings; known source codes default to
                the resolver's when the config names none
            transformation_config: Engine error policy
        """
        parser_config = parser_config or AccountLineParserConfig()
        if not parser_config.valid_source_codes and resolver.source_codes:
            parser_config = replace(parser_config, valid_source_codes=resolver.source_codes)

        self.resolver = resolver
        self.mapping_table = mapping_table
        self.parser = AccountLineParser(parser_config)
        self.engine = TransformationEngine(transformation_config)

    def map_account_lines(
        self, account_lines: list[AccountLine], property_id: int
    ) -> tuple[list[dict[str, Any]], list[str]]:
        """Attach target codes to account lines.

        Args:
            account_lines: Parsed (and possibly consolidated) lines
            property_id: Property whose mappings apply

        Returns:
            Tuple of (one row per line, warnings for unmapped codes)
        """
        rows = []
        warnings = []
        for line in account_lines:
            row = line.to_row()
            mapping = self.resolver.find(line.source_code, property_id)
            if mapping is None:
                logger.warning(
                    "No mapping for source code %s on line %d", line.source_code, line.line_number
                )
                warnings.append(
                    f"No mapping found for source code '{line.source_code}' "
                    f"(line {line.line_number})"
                )
                row.update(
                    target_code=f"UNMAPPED_{line.source_code}",
                    target_name=f"Unmapped: {line.description}",
                    multiplier=Decimal("1"),
                    mapped_amount=line.amount,
                    mapping_status=UNMAPPED,
                )
            else:
                row.update(
                    target_code=mapping.target_code,
                    target_name=mapping.target_name,
                    multiplier=mapping.multiplier,
                    mapped_amount=apply_multiplier(line.amount, mapping),
                    mapping_status=MAPPED,
                )
            rows.append(row)
        return rows, warnings

    def process_report(
        self,
        text: str,
        property_id: int,
        filename: str = "report.txt",
        file_type: str = "pdf",
    ) -> TransformedData:
        """Run a report through parsing, code mapping and transformation.

        Args:
            text: Extracted report text
            property_id: Property the report belongs to
            filename: Name recorded in the output metadata
            file_type: File type used to pick the rule set

        Returns:
            TransformedData for the report

        Raises:
            NoMappingError: If the mapping table has no rule set for the
                property and file type
        """
        account_lines = self.parser.get_consolidated_account_lines(text)
        rows, warnings = self.map_account_lines(account_lines, property_id)
        logger.info(
            "Mapped %d account lines from %s (%d unmapped)",
            len(rows),
            filename,
            len(warnings),
        )

        raw = RawFileData(
            filename=filename,
            property_id=str(property_id),
            file_type=file_type,
            content={"text": text, "structuredData": rows},
            warnings=tuple(warnings),
        )
        return self.engine.transform_data(raw, self.mapping_table)
