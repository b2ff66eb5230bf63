"""Domain layer for reportbridge application.

The services that need a database (code_mapping_service, rule_set,
mapping_import) are imported from their modules; database.base imports
domain.entities, so they cannot be loaded from here.
"""

from reportbridge.domain.account_lines import AccountLineParser, AccountLineParserConfig
from reportbridge.domain.code_mapping import AccountCodeResolver, build_code_mappings
from reportbridge.domain.mapping_table import build_mapping_table
from reportbridge.domain.pipeline import ReportPipeline
from reportbridge.domain.transformation import (
    TransformationConfig,
    TransformationEngine,
    transform_file_data,
    transform_multiple_files,
)

__all__ = [
    "AccountLineParser",
    "AccountLineParserConfig",
    "AccountCodeResolver",
    "build_code_mappings",
    "build_mapping_table",
    "ReportPipeline",
    "TransformationConfig",
    "TransformationEngine",
    "transform_file_data",
    "transform_multiple_files",
]
